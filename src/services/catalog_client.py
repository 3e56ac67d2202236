"""Catalog backend client (products, likes, cart) over REST/JSON."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

import requests

from config.settings import Settings, get_settings
from core.logging import get_logger
from recs.models import Item


logger = get_logger(__name__)


class CatalogApiError(RuntimeError):
    """Raised for backend API failures."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CatalogPort(Protocol):
    """What the swipe core needs from the backend."""

    def fetch_catalog(self) -> List[Item]: ...

    def like(self, item_id: str) -> bool: ...

    def unlike(self, item_id: str) -> bool: ...

    def add_to_cart(self, item_id: str, quantity: int = 1, options: Optional[Mapping[str, str]] = None) -> bool: ...

    def fetch_past_positive_interactions(self) -> List[Item]: ...


class CatalogClient:
    """
    HTTP implementation of :class:`CatalogPort`.

    Like/unlike/cart calls are idempotent on the backend (likes are a
    unique user/product pair), so callers never need to deduplicate.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    @property
    def base_url(self) -> str:
        return self._settings.api_base_url

    @property
    def user_id(self) -> str:
        return self._settings.api_user_id

    # ---------------------------------------------------------------------
    # Catalog
    # ---------------------------------------------------------------------

    def fetch_catalog(
        self,
        brand: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Item]:
        params = {k: v for k, v in (("brand", brand), ("category", category), ("search", search)) if v}
        data = self._request("GET", "/api/products", params=params or None)
        return parse_products(data)

    def fetch_past_positive_interactions(self) -> List[Item]:
        data = self._request("GET", "/api/likes", params={"userId": self.user_id})
        return parse_products(data)

    def check_health(self) -> bool:
        try:
            self._request("GET", "/health")
        except CatalogApiError:
            return False
        return True

    # ---------------------------------------------------------------------
    # Interactions
    # ---------------------------------------------------------------------

    def like(self, item_id: str) -> bool:
        self._request("POST", f"/api/likes/{item_id}", json=self._interaction(item_id, "like"))
        return True

    def unlike(self, item_id: str) -> bool:
        self._request("DELETE", f"/api/likes/{item_id}", json=self._interaction(item_id, "unlike"))
        return True

    def add_to_cart(
        self,
        item_id: str,
        quantity: int = 1,
        options: Optional[Mapping[str, str]] = None,
    ) -> bool:
        line: Dict[str, Any] = {"productId": item_id, "quantity": quantity}
        if options:
            line["options"] = dict(options)
        payload = self._interaction(item_id, "cart")
        payload.update({"items": [line], "status": "cart"})
        self._request("POST", "/api/orders", json=payload)
        return True

    # ---------------------------------------------------------------------
    # Internals
    # ---------------------------------------------------------------------

    def _interaction(self, item_id: str, action: str) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "productId": item_id,
            "action": action,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self._session.request(
                method,
                url,
                timeout=self._settings.request_timeout_seconds,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise CatalogApiError(f"{method} {path} failed: {exc}") from exc

        if resp.status_code >= 400:
            raise CatalogApiError(
                f"{method} {path} failed ({resp.status_code}): {resp.text}",
                status_code=resp.status_code,
            )
        logger.debug("Backend call", method=method, path=path, status_code=resp.status_code)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise CatalogApiError(f"{method} {path} returned invalid JSON") from exc


def parse_products(data: Any) -> List[Item]:
    """Convert a product list payload into Items, skipping malformed entries."""
    if isinstance(data, Mapping):
        data = data.get("products") or data.get("items") or []
    if not isinstance(data, list):
        return []

    items: List[Item] = []
    seen = set()
    for product in data:
        if not isinstance(product, Mapping):
            continue
        try:
            item = Item.from_product(product)
        except ValueError as exc:
            logger.warning("Skipping malformed product", product_id=product.get("_id"), error=str(exc))
            continue
        if item.id in seen:
            continue
        seen.add(item.id)
        items.append(item)
    return items


def load_catalog(port: CatalogPort) -> List[Item]:
    """Fetch the catalog; any failure is an empty deck, not an error."""
    try:
        return list(port.fetch_catalog())
    except Exception as exc:
        logger.warning("Catalog fetch failed", error=str(exc), error_type=type(exc).__name__)
        return []


def load_signal(port: CatalogPort) -> Sequence[Item]:
    """Fetch past likes; absence or failure is an empty signal."""
    try:
        return list(port.fetch_past_positive_interactions() or [])
    except Exception as exc:
        logger.warning("Signal fetch failed", error=str(exc), error_type=type(exc).__name__)
        return []
