"""
Domain models for the swipe deck.

Models cover:
- Item: display-ready product projection built from backend documents
- SwipeDirection / SwipeDecision: the outcome of a committed swipe
- Variant: typed option-value selection (size, colour) for cart lines
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from itertools import product as cartesian
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.utils import first_present, normalize_token


# =============================================================================
# Enums
# =============================================================================

class SwipeDirection(str, Enum):
    """Decision a committed swipe resolves to."""
    LIKE = "like"          # swipe right
    DISLIKE = "dislike"    # swipe left
    CART = "cart"          # swipe down

    @property
    def is_positive(self) -> bool:
        return self in (SwipeDirection.LIKE, SwipeDirection.CART)


class PriceTier(str, Enum):
    LOW = "low"
    MID = "mid"
    HIGH = "high"


# =============================================================================
# Variants
# =============================================================================

class Variant(BaseModel):
    """
    A purchasable option combination, e.g. ``{"size": "m", "color": "black"}``.

    Option names and values are normalised to lowercase so that a selection
    coming from the client matches regardless of casing.
    """
    model_config = ConfigDict(frozen=True)

    option_values: Dict[str, str] = Field(default_factory=dict)

    @field_validator("option_values", mode="before")
    @classmethod
    def normalise_options(cls, v):
        return normalize_options(v or {})

    def matches(self, selection: Mapping[str, Any]) -> bool:
        """True when every selected option equals this variant's value."""
        wanted = normalize_options(selection)
        return all(self.option_values.get(name) == value for name, value in wanted.items())

    def is_exact(self, selection: Mapping[str, Any]) -> bool:
        return self.option_values == normalize_options(selection)


def normalize_options(options: Mapping[str, Any]) -> Dict[str, str]:
    """Lowercase option names and values, dropping empty ones."""
    normalised = {}
    for name, value in options.items():
        key, val = normalize_token(name), normalize_token(value)
        if key and val:
            normalised[key] = val
    return normalised


def find_matching_variant(
    variants: Iterable[Variant],
    selection: Optional[Mapping[str, Any]],
) -> Optional[Variant]:
    """
    Find the variant a selection refers to.

    An exact match wins; otherwise the first variant consistent with every
    selected option is returned. None when nothing matches or nothing
    was selected.
    """
    if not selection or not normalize_options(selection):
        return None
    candidates = list(variants)
    for variant in candidates:
        if variant.is_exact(selection):
            return variant
    for variant in candidates:
        if variant.matches(selection):
            return variant
    return None


# =============================================================================
# Item
# =============================================================================

class Item(BaseModel):
    """Display-ready product projection shown on a swipe card."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str
    brand: str = ""
    image: str = ""
    tags: FrozenSet[str] = Field(default_factory=frozenset)
    category: str = ""
    price: float = Field(default=0.0, ge=0)

    # Detail-sheet fields
    subtitle: Optional[str] = None
    description: str = ""
    sizes: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    price_tier: Optional[PriceTier] = None

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v):
        if v is None:
            return frozenset()
        if isinstance(v, str):
            v = [v]
        return frozenset(str(t).strip() for t in v if t and str(t).strip())

    def variants(self) -> List[Variant]:
        """Expand the item's sizes and colours into concrete variants."""
        axes = []
        if self.sizes:
            axes.append([("size", s) for s in self.sizes])
        if self.colors:
            axes.append([("color", c) for c in self.colors])
        if not axes:
            return []
        return [Variant(option_values=dict(combo)) for combo in cartesian(*axes)]

    def to_card(self) -> Dict[str, Any]:
        """JSON-ready representation for clients."""
        card = self.model_dump(mode="json")
        card["tags"] = sorted(self.tags)
        return card

    @classmethod
    def from_product(cls, product: Mapping[str, Any]) -> "Item":
        """
        Build an Item from a backend product document.

        Accepts both the backend shape (``_id``, ``name``, ``images``,
        ``specifications``) and the client shape (``id``, ``title``,
        ``image``, ``tags``).
        """
        images = product.get("images") or []
        tags = product.get("tags")
        if not tags:
            tags = [
                spec.get("value")
                for spec in product.get("specifications") or []
                if isinstance(spec, Mapping)
            ]
        return cls(
            id=str(first_present(product, "_id", "id", default="")),
            title=first_present(product, "title", "name", default=""),
            brand=product.get("brand") or "",
            image=first_present(product, "image", default=images[0] if images else ""),
            tags=tags,
            category=product.get("category") or "",
            price=product.get("price") or 0,
            subtitle=product.get("subtitle"),
            description=product.get("description") or "",
            sizes=product.get("sizes") or [],
            colors=product.get("colors") or [],
            price_tier=product.get("priceTier") or product.get("price_tier"),
        )


# =============================================================================
# Swipe decisions
# =============================================================================

@dataclass(frozen=True)
class SwipeDecision:
    """
    A committed swipe. Lives only inside the engine's undo stack.

    ``item`` is the exact object that was on screen so an undo can put the
    same card back without a re-fetch.
    """
    item: Item
    direction: SwipeDirection
    index: int
    timestamp: float = field(default_factory=time.time)
    options: Optional[Dict[str, str]] = None

    @property
    def item_id(self) -> str:
        return self.item.id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "direction": self.direction.value,
            "index": self.index,
            "timestamp": self.timestamp,
            "options": self.options,
        }
