"""
Non-blocking user notifications (toasts).

Background dispatch threads push here; the client drains the queue when
it next renders. Oldest toasts are dropped once capacity is reached.
"""

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, List, Optional

from core.logging import LoggerMixin


class NotificationLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    message: str
    item_id: Optional[str] = None
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level.value,
            "message": self.message,
            "item_id": self.item_id,
            "created_at": self.created_at,
        }


class Notifier(LoggerMixin):
    """Thread-safe bounded toast queue."""

    def __init__(self, capacity: int = 20):
        self._lock = threading.Lock()
        self._queue: Deque[Notification] = deque(maxlen=capacity)

    def push(
        self,
        message: str,
        level: NotificationLevel = NotificationLevel.INFO,
        item_id: Optional[str] = None,
    ) -> Notification:
        notification = Notification(level=level, message=message, item_id=item_id)
        with self._lock:
            self._queue.append(notification)
        self.logger.debug("Notification queued", level=level.value, item_id=item_id)
        return notification

    def drain(self) -> List[Notification]:
        with self._lock:
            pending = list(self._queue)
            self._queue.clear()
        return pending

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._queue)
