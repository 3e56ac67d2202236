"""
Swipe deck engine.

Owns the visible item queue and turns drag gestures into decisions:

    IDLE --begin_drag--> DRAGGING --release(commit)--> COMMITTING
      ^                     |                             |
      +----release(cancel)--+                             |
      +------------------complete_exit--------------------+

- A commit dispatches exactly one intent (like / dislike / cart) and
  advances the queue by one card.
- The most recent swipe(s) can be undone; the same Item object comes
  back at the same index.
- Dispatch is fire-and-forget: a failed API call never rewinds the queue.
- Positive swipes feed back into the recommender, which re-orders the
  cards the user has not seen yet.

The engine is single-threaded by contract: every method is called from one
event loop (UI thread or request handler) and there is no locking.
"""

import time
from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from core.logging import LoggerMixin
from engines.gestures import (
    CommitPreview,
    GestureConfig,
    GestureOutcome,
    classify_release,
    commit_preview,
)
from recs.models import (
    Item,
    SwipeDecision,
    SwipeDirection,
    find_matching_variant,
    normalize_options,
)


class EngineState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTING = "committing"


class IntentPort(Protocol):
    """Receives committed decisions and undos. Must not block."""

    def dispatch(self, decision: SwipeDecision) -> None: ...

    def dispatch_undo(self, decision: SwipeDecision) -> None: ...


class RankingPort(Protocol):
    def rank(self, candidates: Sequence[Item], signal: Optional[Sequence[Item]] = None) -> List[Item]: ...


class UndoStack:
    """Bounded LIFO of recent decisions. Depth 1 is a single undo slot."""

    def __init__(self, depth: int = 1):
        if depth < 1:
            raise ValueError("undo depth must be at least 1")
        self._entries: Deque[SwipeDecision] = deque(maxlen=depth)

    @property
    def depth(self) -> int:
        return self._entries.maxlen

    def push(self, decision: SwipeDecision) -> None:
        self._entries.append(decision)

    def pop(self) -> Optional[SwipeDecision]:
        if not self._entries:
            return None
        return self._entries.pop()

    def peek(self) -> Optional[SwipeDecision]:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)


class SwipeEngine(LoggerMixin):
    """
    Gesture-driven card queue with undo.

    Collaborators are passed in explicitly; the engine never reaches for
    global state, so it can be driven by tests with fakes.
    """

    def __init__(
        self,
        items: Sequence[Item],
        dispatcher: Optional[IntentPort] = None,
        recommender: Optional[RankingPort] = None,
        signal: Optional[Sequence[Item]] = None,
        config: Optional[GestureConfig] = None,
        undo_depth: int = 1,
        rerank_on_positive: bool = False,
        clock: Callable[[], float] = time.time,
    ):
        self._items: List[Item] = list(items)
        self._dispatcher = dispatcher
        self._recommender = recommender
        self._past_signal: List[Item] = list(signal or [])
        self._session_signal: List[Item] = []
        self.config = config or GestureConfig()
        self._undo = UndoStack(undo_depth)
        self._rerank_on_positive = rerank_on_positive
        self._clock = clock

        self._index = 0
        self._state = EngineState.IDLE
        self._pending: Optional[SwipeDecision] = None
        self._drag = (0.0, 0.0)
        self._details_open = False

    # =========================================================================
    # Read-only view
    # =========================================================================

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def index(self) -> int:
        return self._index

    @property
    def items(self) -> List[Item]:
        return list(self._items)

    @property
    def is_exhausted(self) -> bool:
        return self._index >= len(self._items)

    @property
    def remaining(self) -> int:
        return max(len(self._items) - self._index, 0)

    @property
    def current_item(self) -> Optional[Item]:
        if self.is_exhausted:
            return None
        return self._items[self._index]

    @property
    def next_item(self) -> Optional[Item]:
        if self._index + 1 >= len(self._items):
            return None
        return self._items[self._index + 1]

    @property
    def can_undo(self) -> bool:
        return bool(self._undo) and self._state == EngineState.IDLE

    @property
    def last_decision(self) -> Optional[SwipeDecision]:
        return self._undo.peek()

    @property
    def undo_depth(self) -> int:
        return self._undo.depth

    @property
    def pending_decision(self) -> Optional[SwipeDecision]:
        return self._pending

    @property
    def details_open(self) -> bool:
        return self._details_open

    @property
    def signal(self) -> List[Item]:
        """Past positive interactions plus positive swipes from this session."""
        return self._past_signal + self._session_signal

    # =========================================================================
    # Gestures
    # =========================================================================

    def begin_drag(self) -> bool:
        """Pointer down. Refused while committing, exhausted or showing details."""
        if self._state != EngineState.IDLE or self.is_exhausted or self._details_open:
            return False
        self._state = EngineState.DRAGGING
        self._drag = (0.0, 0.0)
        return True

    def drag(self, dx: float, dy: float) -> Optional[CommitPreview]:
        """Pointer move. Returns badge/tilt feedback; does not change state."""
        if self._state != EngineState.DRAGGING:
            return None
        self._drag = (dx, dy)
        return commit_preview(dx, dy, self.config)

    def release(
        self,
        dx: Optional[float] = None,
        dy: Optional[float] = None,
        vx: float = 0.0,
        vy: float = 0.0,
    ) -> GestureOutcome:
        """
        Pointer up.

        Cancel and details outcomes return to IDLE with no decision. A
        commit moves to COMMITTING; call :meth:`complete_exit` once the exit
        animation has finished.
        """
        if self._state != EngineState.DRAGGING:
            return GestureOutcome.IGNORED

        if dx is None or dy is None:
            dx, dy = self._drag
        outcome = classify_release(dx, dy, self.config, vx=vx, vy=vy)

        if outcome == GestureOutcome.CANCELLED:
            self._state = EngineState.IDLE
            self.logger.debug("Gesture cancelled", dx=dx, dy=dy)
        elif outcome == GestureOutcome.DETAILS:
            self._state = EngineState.IDLE
            self._details_open = True
        else:
            self._begin_commit(outcome.direction)
        return outcome

    def decide(
        self,
        direction: Union[SwipeDirection, str],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Optional[SwipeDecision]:
        """
        Commit without a drag (detail-sheet "Like" / "Add to Cart" buttons).

        ``options`` (e.g. size, colour) are resolved against the item's
        variants for cart decisions. Returns None when a gesture or exit
        animation is already in progress or the queue is exhausted.
        """
        direction = SwipeDirection(direction)
        if self._state != EngineState.IDLE or self.is_exhausted:
            return None
        return self._begin_commit(direction, options)

    def complete_exit(self) -> Optional[SwipeDecision]:
        """
        Exit animation finished: advance the queue and dispatch the intent.

        Returns the committed decision, or None when nothing was committing.
        """
        if self._state != EngineState.COMMITTING or self._pending is None:
            return None

        decision = self._pending
        self._pending = None
        self._index += 1
        self._state = EngineState.IDLE
        self._details_open = False
        self._undo.push(decision)

        self.logger.info(
            "Swipe committed",
            item_id=decision.item_id,
            direction=decision.direction.value,
            index=decision.index,
        )
        self._dispatch(decision)

        if decision.direction.is_positive:
            self._session_signal.append(decision.item)
            self._rerank_remaining()

        if self.is_exhausted:
            # Nothing left to return to from an empty deck
            self._undo.clear()
            self.logger.info("Queue exhausted", total=len(self._items))
        return decision

    def swipe(
        self,
        direction: Union[SwipeDirection, str],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Optional[SwipeDecision]:
        """Commit and finish in one step, for callers with no exit animation."""
        if self.decide(direction, options) is None:
            return None
        return self.complete_exit()

    # =========================================================================
    # Details sheet
    # =========================================================================

    def open_details(self) -> bool:
        if self._state != EngineState.IDLE or self.is_exhausted:
            return False
        self._details_open = True
        return True

    def close_details(self) -> None:
        self._details_open = False

    # =========================================================================
    # Undo
    # =========================================================================

    def undo_swipe(self) -> bool:
        """
        Put the most recent swiped card back.

        Returns False (and changes nothing) when there is nothing to undo
        or a gesture is in flight.
        """
        if self._state != EngineState.IDLE:
            self.logger.debug("Undo refused during gesture", state=self._state.value)
            return False

        decision = self._undo.pop()
        if decision is None:
            self.logger.debug("Undo unavailable")
            return False

        self._index = decision.index
        self._details_open = False
        if decision.direction.is_positive:
            self._withdraw_signal(decision.item)

        self.logger.info(
            "Swipe undone",
            item_id=decision.item_id,
            direction=decision.direction.value,
            index=decision.index,
        )
        if self._dispatcher is not None:
            try:
                self._dispatcher.dispatch_undo(decision)
            except Exception:
                self.logger.exception("Undo dispatch failed", item_id=decision.item_id)
        return True

    # =========================================================================
    # Queue management
    # =========================================================================

    def reset(self, items: Sequence[Item]) -> None:
        """Load a fresh batch (after exhaustion). Clears undo history."""
        self._items = list(items)
        self._index = 0
        self._state = EngineState.IDLE
        self._pending = None
        self._details_open = False
        self._undo.clear()

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view of the deck for API responses."""
        current, upcoming = self.current_item, self.next_item
        last = self.last_decision
        return {
            "state": self._state.value,
            "index": self._index,
            "total": len(self._items),
            "remaining": self.remaining,
            "exhausted": self.is_exhausted,
            "can_undo": self.can_undo,
            "details_open": self._details_open,
            "current": current.to_card() if current else None,
            "next": upcoming.to_card() if upcoming else None,
            "last_decision": last.to_dict() if last else None,
        }

    # =========================================================================
    # Internals
    # =========================================================================

    def _begin_commit(
        self,
        direction: SwipeDirection,
        options: Optional[Mapping[str, Any]] = None,
    ) -> SwipeDecision:
        item = self._items[self._index]
        decision = SwipeDecision(
            item=item,
            direction=direction,
            index=self._index,
            timestamp=self._clock(),
            options=self._resolve_options(item, direction, options),
        )
        self._pending = decision
        self._state = EngineState.COMMITTING
        return decision

    @staticmethod
    def _resolve_options(
        item: Item,
        direction: SwipeDirection,
        options: Optional[Mapping[str, Any]],
    ) -> Optional[Dict[str, str]]:
        if direction != SwipeDirection.CART or not options:
            return None
        variant = find_matching_variant(item.variants(), options)
        if variant is not None:
            return dict(variant.option_values)
        return normalize_options(options) or None

    def _dispatch(self, decision: SwipeDecision) -> None:
        if self._dispatcher is None:
            return
        try:
            self._dispatcher.dispatch(decision)
        except Exception:
            # The local swipe stands even if the intent could not be queued
            self.logger.exception("Dispatch failed", item_id=decision.item_id)

    def _rerank_remaining(self) -> None:
        if not (self._rerank_on_positive and self._recommender):
            return
        tail = self._items[self._index:]
        if len(tail) < 2:
            return
        self._items[self._index:] = self._recommender.rank(tail, self.signal)

    def _withdraw_signal(self, item: Item) -> None:
        for pos in range(len(self._session_signal) - 1, -1, -1):
            if self._session_signal[pos] is item:
                del self._session_signal[pos]
                return
