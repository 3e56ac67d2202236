"""
Session manager for in-memory swipe sessions.

Each session bundles an engine with the notifier and dispatcher that
were built for it. In production, this should be backed by Redis for
horizontal scaling.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import threading
import uuid

from core.logging import LoggerMixin
from services.dispatcher import IntentDispatcher
from services.notifications import Notifier

if TYPE_CHECKING:
    from engines.swipe_engine import SwipeEngine


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SwipeSession:
    """Engine plus its collaborators and TTL metadata."""

    engine: "SwipeEngine"
    notifier: Notifier
    dispatcher: Optional[IntentDispatcher] = None
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    ttl_seconds: int = 86400

    def is_expired(self) -> bool:
        """Expired when idle for longer than the TTL."""
        return _now() > self.updated_at + timedelta(seconds=self.ttl_seconds)

    def touch(self) -> None:
        self.updated_at = _now()

    def close(self, wait_for_pending: bool = False) -> None:
        if self.dispatcher is not None:
            self.dispatcher.shutdown(wait_for_pending=wait_for_pending)


class SessionManager(LoggerMixin):
    """
    Thread-safe in-memory store of swipe sessions.

    Usage:
        manager = SessionManager()
        session = manager.add(SwipeSession(engine=engine, notifier=notifier))
        manager.get(session.session_id).engine.undo_swipe()
        manager.delete_session(session.session_id)
    """

    def __init__(self, ttl_seconds: int = 86400):
        self._ttl_seconds = ttl_seconds
        self._lock = threading.RLock()
        self._sessions: Dict[str, SwipeSession] = {}

    def add(self, session: SwipeSession) -> SwipeSession:
        """Store a new session, evicting any that have expired meanwhile."""
        self.clear_expired()
        session.ttl_seconds = self._ttl_seconds
        with self._lock:
            self._sessions[session.session_id] = session
        self.logger.info("Session created", session_id=session.session_id, items=len(session.engine.items))
        return session

    def get(self, session_id: str) -> Optional[SwipeSession]:
        """Session by id, or None if unknown or expired."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if session.is_expired():
                del self._sessions[session_id]
                session.close()
                return None
            session.touch()
            return session

    def get_engine(self, session_id: str) -> Optional["SwipeEngine"]:
        session = self.get(session_id)
        return session.engine if session else None

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        return True

    def clear_expired(self) -> int:
        """Drop expired sessions. Returns the number removed."""
        with self._lock:
            expired = [k for k, v in self._sessions.items() if v.is_expired()]
            removed = [self._sessions.pop(k) for k in expired]
        for session in removed:
            session.close()
        if removed:
            self.logger.info("Cleared expired sessions", count=len(removed))
        return len(removed)

    def close_all(self, wait_for_pending: bool = True) -> int:
        """
        Drop and close every session (shutdown). Queued intents are sent
        first unless ``wait_for_pending`` is False. Returns the number closed.
        """
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close(wait_for_pending=wait_for_pending)
        return len(sessions)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "sessions": len(self._sessions),
                "exhausted": sum(1 for s in self._sessions.values() if s.engine.is_exhausted),
            }


_swipe_sessions: Optional[SessionManager] = None


def get_swipe_session_manager() -> SessionManager:
    """Get the swipe session manager singleton."""
    global _swipe_sessions
    if _swipe_sessions is None:
        from config.settings import get_settings
        _swipe_sessions = SessionManager(ttl_seconds=get_settings().session_ttl_seconds)
    return _swipe_sessions


def reset_swipe_session_manager() -> None:
    """Drop the singleton (tests)."""
    global _swipe_sessions
    _swipe_sessions = None
