"""
Pytest configuration and shared fixtures for the swipe core tests.
"""
import os
import sys
from concurrent.futures import Executor, Future
from typing import Iterator, List, Optional

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), "src"))

# Load environment variables
from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env"))


# ============================================================================
# Helpers
# ============================================================================

class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as exc:
            future.set_exception(exc)
        return future


class FakeCatalogPort:
    """In-memory stand-in for the catalog backend."""

    def __init__(self, items=None, liked=None, fail_on=()):
        self.items = list(items or [])
        self.liked = list(liked or [])
        self.fail_on = set(fail_on)
        self.calls: List[tuple] = []

    def _maybe_fail(self, name):
        if name in self.fail_on:
            from services.catalog_client import CatalogApiError
            raise CatalogApiError(f"{name} failed", status_code=500)

    def fetch_catalog(self):
        self.calls.append(("fetch_catalog",))
        self._maybe_fail("fetch_catalog")
        return list(self.items)

    def fetch_past_positive_interactions(self):
        self.calls.append(("fetch_past_positive_interactions",))
        self._maybe_fail("fetch_past_positive_interactions")
        return list(self.liked)

    def like(self, item_id):
        self.calls.append(("like", item_id))
        self._maybe_fail("like")
        return True

    def unlike(self, item_id):
        self.calls.append(("unlike", item_id))
        self._maybe_fail("unlike")
        return True

    def add_to_cart(self, item_id, quantity=1, options=None):
        self.calls.append(("add_to_cart", item_id, quantity, options))
        self._maybe_fail("add_to_cart")
        return True

    def interaction_calls(self):
        return [c for c in self.calls if c[0] in ("like", "unlike", "add_to_cart")]


def make_item(item_id: str, tags=(), brand: str = "", category: str = "", **kwargs):
    from recs.models import Item
    return Item(
        id=item_id,
        title=kwargs.pop("title", f"Item {item_id}"),
        brand=brand,
        category=category,
        tags=list(tags),
        image=kwargs.pop("image", f"https://cdn.example.com/{item_id}.jpg"),
        price=kwargs.pop("price", 49.0),
        **kwargs,
    )


# ============================================================================
# Fixtures: Test Data Factories
# ============================================================================

@pytest.fixture
def item_factory():
    return make_item


@pytest.fixture
def sample_product_dict() -> dict:
    """Sample product as returned by GET /api/products."""
    return {
        "_id": "665f1c2ab1e4a3d9c0a1b2c3",
        "name": "Relaxed Denim Jacket",
        "description": "Washed denim with dropped shoulders.",
        "price": 89.5,
        "images": ["https://cdn.example.com/denim-1.jpg", "https://cdn.example.com/denim-2.jpg"],
        "brand": "Levi's",
        "category": "Outerwear",
        "sizes": ["S", "M", "L"],
        "specifications": [
            {"label": "Style", "value": "casual"},
            {"label": "Fabric", "value": "denim"},
        ],
        "vendor": {"_id": "v1", "name": "Levi's Store"},
        "isActive": True,
        "likes": 3,
    }


@pytest.fixture
def three_items():
    return [
        make_item("item-1", tags=["casual", "denim"], brand="Levi's", category="jackets"),
        make_item("item-2", tags=["formal"], brand="Hugo", category="suits"),
        make_item("item-3", tags=["casual"], brand="Uniqlo", category="tees"),
    ]


# ============================================================================
# Fixtures: Collaborators
# ============================================================================

@pytest.fixture
def inline_executor() -> InlineExecutor:
    return InlineExecutor()


@pytest.fixture
def fake_port(three_items) -> FakeCatalogPort:
    return FakeCatalogPort(items=three_items)


@pytest.fixture
def notifier():
    from services.notifications import Notifier
    return Notifier(capacity=10)


@pytest.fixture
def dispatcher(fake_port, notifier, inline_executor):
    from services.dispatcher import IntentDispatcher
    return IntentDispatcher(fake_port, notifier=notifier, executor=inline_executor)


@pytest.fixture
def engine(three_items, dispatcher):
    from engines.swipe_engine import SwipeEngine
    return SwipeEngine(three_items, dispatcher=dispatcher)


@pytest.fixture
def test_settings():
    from config.settings import get_settings_for_testing
    return get_settings_for_testing()


# ============================================================================
# Fixtures: FastAPI Test Client
# ============================================================================

@pytest.fixture
def api_port(three_items) -> FakeCatalogPort:
    return FakeCatalogPort(items=three_items)


@pytest.fixture
def session_manager():
    from services.session_manager import SessionManager
    return SessionManager(ttl_seconds=3600)


@pytest.fixture
def test_client(api_port, session_manager) -> Iterator:
    """TestClient with the backend port and session store replaced."""
    from fastapi.testclient import TestClient
    from api.app import create_app
    from api.routes.swipe import get_catalog_port, get_sessions

    app = create_app()
    app.dependency_overrides[get_catalog_port] = lambda: api_port
    app.dependency_overrides[get_sessions] = lambda: session_manager

    with TestClient(app) as client:
        yield client

    session_manager.close_all(wait_for_pending=False)


# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


def pytest_collection_modifyitems(config, items):
    """Auto-skip integration tests if no backend URL is configured."""
    skip_integration = pytest.mark.skip(reason="Integration tests require a running backend")
    backend_url: Optional[str] = os.getenv("TEST_BACKEND_URL")

    for item in items:
        if "integration" in item.keywords and not backend_url:
            item.add_marker(skip_integration)
