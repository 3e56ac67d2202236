"""
Services module for the swipe core's collaborators.

Provides the catalog backend client, fire-and-forget intent dispatch,
toast notifications and swipe session management.
"""

from services.catalog_client import CatalogApiError, CatalogClient, CatalogPort
from services.dispatcher import DispatchFailed, IntentDispatcher, IntentKind
from services.notifications import Notification, NotificationLevel, Notifier
from services.session_manager import (
    SessionManager,
    SwipeSession,
    get_swipe_session_manager,
)

__all__ = [
    "CatalogApiError",
    "CatalogClient",
    "CatalogPort",
    "DispatchFailed",
    "IntentDispatcher",
    "IntentKind",
    "Notification",
    "NotificationLevel",
    "Notifier",
    "SessionManager",
    "SwipeSession",
    "get_swipe_session_manager",
]
