"""
Fire-and-forget dispatch of swipe intents to the catalog backend.

The engine hands over a decision and moves on; the API call runs on a
worker thread. Each dispatcher runs its calls one at a time in commit
order, so a like and the unlike from its undo can never overtake each
other, even when many sessions share one pool. Failures are logged and
turned into a toast; they are never retried and never undo the local
swipe.
"""

import threading
import time
from collections import deque
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, List, Optional, Tuple

from core.logging import LoggerMixin
from recs.models import SwipeDecision, SwipeDirection
from services.catalog_client import CatalogPort
from services.notifications import NotificationLevel, Notifier


class IntentKind(str, Enum):
    LIKE = "like"
    UNLIKE = "unlike"
    DISLIKE = "dislike"
    ADD_TO_CART = "add_to_cart"


_FAILURE_MESSAGES = {
    IntentKind.LIKE: "Couldn't save your like. It will show up once you're back online.",
    IntentKind.UNLIKE: "Couldn't remove your like.",
    IntentKind.ADD_TO_CART: "Couldn't add the item to your cart.",
}


@dataclass(frozen=True)
class DispatchFailed:
    """Record of an intent whose API call failed."""
    kind: IntentKind
    item_id: str
    error: str
    at: float = field(default_factory=time.time)


class IntentDispatcher(LoggerMixin):
    """
    Maps decisions to catalog calls and runs them off the caller's thread.

    like -> port.like, cart -> port.add_to_cart(id, 1, options),
    dislike -> nothing to call. Undo of a like -> port.unlike; undo of a
    dislike is client-side only; a cart line cannot be taken back from
    here, so its undo only warns the user.
    """

    def __init__(
        self,
        port: CatalogPort,
        notifier: Optional[Notifier] = None,
        executor: Optional[Executor] = None,
    ):
        self._port = port
        self._notifier = notifier
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="swipe-dispatch",
        )
        self._lock = threading.Lock()
        self._futures: List[Future] = []
        self._failures: List[DispatchFailed] = []
        self._submitted: List[tuple] = []
        self._queue: Deque[Tuple[IntentKind, str, Callable[[], object]]] = deque()
        self._draining = False
        self._closed = False

    # =========================================================================
    # Public API
    # =========================================================================

    def dispatch(self, decision: SwipeDecision) -> None:
        """Queue the side effect of a committed swipe."""
        direction = decision.direction
        if direction == SwipeDirection.LIKE:
            self._submit(IntentKind.LIKE, decision.item_id, lambda: self._port.like(decision.item_id))
        elif direction == SwipeDirection.CART:
            self._submit(
                IntentKind.ADD_TO_CART,
                decision.item_id,
                lambda: self._port.add_to_cart(decision.item_id, 1, decision.options),
            )
        else:
            self._record(IntentKind.DISLIKE, decision.item_id)
            self.logger.debug("Dislike recorded locally", item_id=decision.item_id)

    def dispatch_undo(self, decision: SwipeDecision) -> None:
        """Reverse the side effect of an undone swipe where possible."""
        direction = decision.direction
        if direction == SwipeDirection.LIKE:
            self._submit(IntentKind.UNLIKE, decision.item_id, lambda: self._port.unlike(decision.item_id))
        elif direction == SwipeDirection.CART:
            self.logger.warning("Cart swipe undone; cart line left in place", item_id=decision.item_id)
            if self._notifier is not None:
                self._notifier.push(
                    "The item is still in your cart. Remove it from the cart screen.",
                    level=NotificationLevel.WARNING,
                    item_id=decision.item_id,
                )

    def flush(self, timeout: Optional[float] = None) -> None:
        """Block until all queued calls have finished (tests, shutdown)."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                pending = [f for f in self._futures if not f.done()]
            if not pending:
                return
            remaining = None if deadline is None else max(deadline - time.monotonic(), 0.0)
            wait(pending, timeout=remaining)
            if deadline is not None and time.monotonic() >= deadline:
                return

    def shutdown(self, wait_for_pending: bool = True) -> None:
        """
        Stop accepting intents. Calls already queued still run unless
        ``wait_for_pending`` is False, in which case they are dropped.
        """
        with self._lock:
            self._closed = True
            if not wait_for_pending:
                self._queue.clear()
        if self._owns_executor:
            self._executor.shutdown(wait=wait_for_pending)
        elif wait_for_pending:
            self.flush()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def failures(self) -> List[DispatchFailed]:
        with self._lock:
            return list(self._failures)

    @property
    def submitted(self) -> List[tuple]:
        """(kind, item_id) pairs in submission order."""
        with self._lock:
            return list(self._submitted)

    # =========================================================================
    # Internals
    # =========================================================================

    def _record(self, kind: IntentKind, item_id: str) -> None:
        with self._lock:
            self._submitted.append((kind, item_id))

    def _submit(self, kind: IntentKind, item_id: str, call: Callable[[], object]) -> None:
        with self._lock:
            if self._closed:
                self.logger.warning("Dispatcher closed; intent dropped", kind=kind.value, item_id=item_id)
                return
            self._queue.append((kind, item_id, call))
            start_drain = not self._draining
            self._draining = True
        self._record(kind, item_id)
        if not start_drain:
            return

        # At most one drain job per dispatcher is in flight
        try:
            future = self._executor.submit(self._drain)
        except RuntimeError:
            with self._lock:
                self._queue.clear()
                self._draining = False
            raise
        with self._lock:
            self._futures = [f for f in self._futures if not f.done()]
            self._futures.append(future)

    def _drain(self) -> None:
        while True:
            with self._lock:
                if not self._queue:
                    self._draining = False
                    return
                kind, item_id, call = self._queue.popleft()
            self._run(kind, item_id, call)

    def _run(self, kind: IntentKind, item_id: str, call: Callable[[], object]) -> None:
        try:
            ok = call()
        except Exception as exc:
            self._fail(kind, item_id, f"{type(exc).__name__}: {exc}")
            return
        if ok is False:
            self._fail(kind, item_id, "backend reported failure")
            return
        self.logger.debug("Intent delivered", kind=kind.value, item_id=item_id)

    def _fail(self, kind: IntentKind, item_id: str, error: str) -> None:
        failure = DispatchFailed(kind=kind, item_id=item_id, error=error)
        with self._lock:
            self._failures.append(failure)
        self.logger.warning("Intent dispatch failed", kind=kind.value, item_id=item_id, error=error)
        if self._notifier is not None:
            self._notifier.push(
                _FAILURE_MESSAGES.get(kind, "Something went wrong."),
                level=NotificationLevel.ERROR,
                item_id=item_id,
            )


# =============================================================================
# Shared pool
# =============================================================================

_shared_executor: Optional[ThreadPoolExecutor] = None
_shared_lock = threading.Lock()


def get_dispatch_executor() -> ThreadPoolExecutor:
    """
    Process-wide pool that all session dispatchers submit to.

    Sized by ``DISPATCH_WORKERS``; ordering within a session is kept by
    the dispatcher itself.
    """
    global _shared_executor
    with _shared_lock:
        if _shared_executor is None:
            from config.settings import get_settings
            _shared_executor = ThreadPoolExecutor(
                max_workers=get_settings().dispatch_workers,
                thread_name_prefix="swipe-dispatch",
            )
        return _shared_executor


def shutdown_dispatch_executor(wait_for_pending: bool = True) -> None:
    global _shared_executor
    with _shared_lock:
        executor, _shared_executor = _shared_executor, None
    if executor is not None:
        executor.shutdown(wait=wait_for_pending)
