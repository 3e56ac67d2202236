"""
Engine Factory Module.

Builds a ready-to-swipe session: fetch the catalog, fetch the positive
signal, rank, and wire the engine to its dispatcher and notifier.
"""

from concurrent.futures import Executor
from typing import Optional, Sequence

from config.settings import Settings, get_settings
from core.logging import get_logger
from engines.gestures import GestureConfig
from engines.swipe_engine import SwipeEngine
from recs.models import Item
from recs.recommender import Recommender
from services.catalog_client import CatalogPort, load_catalog, load_signal
from services.dispatcher import IntentDispatcher, get_dispatch_executor
from services.notifications import NotificationLevel, Notifier
from services.session_manager import SwipeSession


logger = get_logger(__name__)


def create_swipe_session(
    port: CatalogPort,
    settings: Optional[Settings] = None,
    recommender: Optional[Recommender] = None,
    executor: Optional[Executor] = None,
) -> SwipeSession:
    """
    Create a swipe session backed by ``port``.

    A failed catalog fetch yields an empty (already exhausted) deck plus a
    toast so the client can offer a retry.

    Args:
        port: Catalog backend (CatalogClient or a fake)
        settings: Settings to use (defaults to get_settings())
        recommender: Ranker (defaults to a new Recommender)
        executor: Executor for intent dispatch (defaults to the shared dispatch pool)

    Returns:
        SwipeSession with the engine, dispatcher and notifier wired together
    """
    settings = settings or get_settings()
    recommender = recommender or Recommender()
    notifier = Notifier(capacity=settings.notification_capacity)

    catalog = load_catalog(port)
    if not catalog:
        notifier.push("Having trouble loading items. Pull to retry.", level=NotificationLevel.WARNING)
    signal = load_signal(port)
    ranked = recommender.rank(catalog, signal)

    dispatcher = IntentDispatcher(
        port,
        notifier=notifier,
        executor=executor or get_dispatch_executor(),
    )
    engine = SwipeEngine(
        ranked,
        dispatcher=dispatcher,
        recommender=recommender,
        signal=signal,
        config=GestureConfig.from_settings(settings),
        undo_depth=settings.undo_depth,
        rerank_on_positive=settings.rerank_on_positive,
    )
    logger.info("Swipe deck ready", items=len(ranked), signal=len(signal))
    return SwipeSession(
        engine=engine,
        notifier=notifier,
        dispatcher=dispatcher,
        ttl_seconds=settings.session_ttl_seconds,
    )


def reload_deck(
    session: SwipeSession,
    port: CatalogPort,
    recommender: Optional[Recommender] = None,
    catalog: Optional[Sequence[Item]] = None,
) -> int:
    """
    Refill an exhausted deck from the catalog, ranked by the session's signal.

    Pass ``catalog`` when it was already fetched (off the event loop);
    otherwise it is fetched from ``port`` here. Returns the number of
    cards loaded.
    """
    recommender = recommender or Recommender()
    engine = session.engine
    catalog = list(catalog) if catalog is not None else load_catalog(port)
    if not catalog:
        session.notifier.push("No new items right now.", level=NotificationLevel.INFO)
    engine.reset(recommender.rank(catalog, engine.signal))
    return len(catalog)
