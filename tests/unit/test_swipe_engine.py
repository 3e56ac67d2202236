"""
Unit tests for the swipe deck engine.

Tests cover:
1. Drag / release state transitions and cancellation
2. Commit -> exit completion -> dispatch
3. Undo semantics (single slot and deeper history)
4. Details sheet and button decisions
5. Failure handling and exhaustion
6. Re-ranking of the unseen queue after positive swipes
"""

import pytest

from conftest import FakeCatalogPort, InlineExecutor, make_item
from engines.gestures import GestureOutcome
from engines.swipe_engine import EngineState, SwipeEngine, UndoStack
from recs.models import SwipeDirection
from recs.recommender import Recommender
from services.dispatcher import IntentDispatcher, IntentKind
from services.notifications import Notifier


def _drag(engine, dx, dy, vx=0.0, vy=0.0):
    assert engine.begin_drag()
    engine.drag(dx, dy)
    return engine.release(dx, dy, vx=vx, vy=vy)


def _swipe(engine, dx, dy):
    outcome = _drag(engine, dx, dy)
    decision = engine.complete_exit()
    return outcome, decision


class SpyDispatcher:
    def __init__(self):
        self.dispatched = []
        self.undone = []

    def dispatch(self, decision):
        self.dispatched.append(decision)

    def dispatch_undo(self, decision):
        self.undone.append(decision)


@pytest.fixture
def spy():
    return SpyDispatcher()


@pytest.fixture
def spy_engine(three_items, spy):
    return SwipeEngine(three_items, dispatcher=spy)


# =============================================================================
# Gesture transitions
# =============================================================================

class TestGestureTransitions:

    def test_initial_state(self, spy_engine, three_items):
        assert spy_engine.state == EngineState.IDLE
        assert spy_engine.index == 0
        assert spy_engine.current_item is three_items[0]
        assert spy_engine.next_item is three_items[1]
        assert not spy_engine.can_undo

    def test_begin_drag_enters_dragging(self, spy_engine):
        assert spy_engine.begin_drag()
        assert spy_engine.state == EngineState.DRAGGING
        assert not spy_engine.begin_drag()

    def test_drag_returns_preview_only_while_dragging(self, spy_engine):
        assert spy_engine.drag(30, 0) is None
        spy_engine.begin_drag()
        preview = spy_engine.drag(30, 0)
        assert preview is not None
        assert preview.like_opacity > 0
        assert spy_engine.state == EngineState.DRAGGING

    @pytest.mark.parametrize("dx,dy", [(0, 0), (40, 0), (-49, 5), (3, 60), (20, -3)])
    def test_cancel_is_a_true_no_op(self, spy_engine, spy, dx, dy):
        spy_engine.swipe(SwipeDirection.LIKE)
        index_before = spy_engine.index
        last_before = spy_engine.last_decision

        outcome = _drag(spy_engine, dx, dy)

        assert outcome == GestureOutcome.CANCELLED
        assert spy_engine.state == EngineState.IDLE
        assert spy_engine.index == index_before
        assert spy_engine.last_decision is last_before
        assert len(spy.dispatched) == 1

    def test_release_without_drag_is_ignored(self, spy_engine):
        assert spy_engine.release(100, 0) == GestureOutcome.IGNORED
        assert spy_engine.index == 0

    def test_release_uses_last_drag_position(self, spy_engine):
        spy_engine.begin_drag()
        spy_engine.drag(-120, 10)
        assert spy_engine.release() == GestureOutcome.DISLIKE

    @pytest.mark.parametrize("dx,dy,direction", [
        (120, 0, SwipeDirection.LIKE),
        (-120, 0, SwipeDirection.DISLIKE),
        (0, 150, SwipeDirection.CART),
        (120, 150, SwipeDirection.LIKE),
    ])
    def test_commit_records_one_decision_and_one_dispatch(self, spy_engine, spy, three_items, dx, dy, direction):
        outcome = _drag(spy_engine, dx, dy)

        assert outcome.direction == direction
        assert spy_engine.state == EngineState.COMMITTING
        assert spy_engine.index == 0
        assert spy.dispatched == []

        decision = spy_engine.complete_exit()

        assert spy_engine.state == EngineState.IDLE
        assert spy_engine.index == 1
        assert decision.direction == direction
        assert decision.item is three_items[0]
        assert spy.dispatched == [decision]
        assert spy_engine.last_decision is decision

    def test_complete_exit_only_once(self, spy_engine, spy):
        _drag(spy_engine, 120, 0)
        assert spy_engine.complete_exit() is not None
        assert spy_engine.complete_exit() is None
        assert len(spy.dispatched) == 1
        assert spy_engine.index == 1

    def test_no_new_drag_while_committing(self, spy_engine):
        _drag(spy_engine, 120, 0)
        assert not spy_engine.begin_drag()
        assert spy_engine.decide(SwipeDirection.LIKE) is None
        assert not spy_engine.undo_swipe()

    def test_timestamp_comes_from_clock(self, three_items, spy):
        engine = SwipeEngine(three_items, dispatcher=spy, clock=lambda: 1234.5)
        _, decision = _swipe(engine, 120, 0)
        assert decision.timestamp == 1234.5


# =============================================================================
# Undo
# =============================================================================

class TestUndo:

    def test_like_then_undo_scenario(self, spy_engine, spy, three_items):
        _, decision = _swipe(spy_engine, 120, 0)
        assert spy_engine.index == 1
        assert spy_engine.last_decision.item_id == "item-1"
        assert spy_engine.last_decision.direction == SwipeDirection.LIKE

        assert spy_engine.undo_swipe() is True
        assert spy_engine.index == 0
        assert spy_engine.last_decision is None
        assert spy_engine.current_item is three_items[0]
        assert spy.undone == [decision]

        assert spy_engine.undo_swipe() is False
        assert spy_engine.index == 0
        assert spy.undone == [decision]

    def test_undo_without_history(self, spy_engine):
        assert spy_engine.undo_swipe() is False
        assert spy_engine.index == 0

    def test_only_most_recent_swipe_is_undoable(self, spy_engine, three_items):
        _swipe(spy_engine, 120, 0)
        _swipe(spy_engine, -120, 0)

        assert spy_engine.undo_swipe()
        assert spy_engine.index == 1
        assert spy_engine.current_item is three_items[1]
        assert not spy_engine.undo_swipe()
        assert spy_engine.index == 1

    def test_swipe_after_undo_replaces_slot(self, spy_engine, three_items):
        _swipe(spy_engine, 120, 0)
        spy_engine.undo_swipe()
        _, decision = _swipe(spy_engine, -120, 0)

        assert spy_engine.last_decision is decision
        assert decision.direction == SwipeDirection.DISLIKE
        assert decision.item is three_items[0]

    def test_deeper_history(self, three_items, spy):
        engine = SwipeEngine(three_items, dispatcher=spy, undo_depth=2)
        _swipe(engine, 120, 0)
        _swipe(engine, -120, 0)

        assert engine.undo_swipe()
        assert engine.undo_swipe()
        assert engine.index == 0
        assert not engine.undo_swipe()
        assert [d.item_id for d in spy.undone] == ["item-2", "item-1"]

    def test_exhaustion_clears_undo(self, spy_engine):
        for _ in range(3):
            _swipe(spy_engine, -120, 0)

        assert spy_engine.is_exhausted
        assert spy_engine.current_item is None
        assert not spy_engine.can_undo
        assert spy_engine.undo_swipe() is False

    def test_undo_stack_rejects_zero_depth(self):
        with pytest.raises(ValueError):
            UndoStack(0)


class TestUndoSideEffects:
    """Undo through the real dispatcher and a fake backend."""

    def test_like_undo_issues_unlike(self, engine, fake_port):
        engine.swipe(SwipeDirection.LIKE)
        engine.undo_swipe()

        assert fake_port.interaction_calls() == [("like", "item-1"), ("unlike", "item-1")]

    def test_dislike_undo_is_client_side(self, engine, fake_port):
        engine.swipe(SwipeDirection.DISLIKE)
        engine.undo_swipe()

        assert fake_port.interaction_calls() == []
        assert engine.current_item.id == "item-1"

    def test_cart_undo_warns_without_reversal(self, engine, fake_port, notifier):
        engine.swipe(SwipeDirection.CART)
        assert engine.undo_swipe()

        assert fake_port.interaction_calls() == [("add_to_cart", "item-1", 1, None)]
        toasts = notifier.drain()
        assert len(toasts) == 1
        assert toasts[0].level.value == "warning"
        assert engine.index == 0


# =============================================================================
# Details sheet and button decisions
# =============================================================================

class TestDetailsAndDecide:

    def test_swipe_up_opens_details(self, spy_engine):
        outcome = _drag(spy_engine, 0, -30)
        assert outcome == GestureOutcome.DETAILS
        assert spy_engine.details_open
        assert spy_engine.index == 0
        assert not spy_engine.begin_drag()

    def test_decide_from_details_closes_sheet(self, spy_engine, spy):
        spy_engine.open_details()
        decision = spy_engine.swipe(SwipeDirection.CART)

        assert decision.direction == SwipeDirection.CART
        assert not spy_engine.details_open
        assert spy_engine.index == 1
        assert len(spy.dispatched) == 1

    def test_decide_accepts_strings(self, spy_engine):
        decision = spy_engine.swipe("like")
        assert decision.direction == SwipeDirection.LIKE

    def test_cart_options_resolve_to_variant(self, spy):
        item = make_item("dress", sizes=["S", "M"], colors=["Black", "Red"])
        engine = SwipeEngine([item], dispatcher=spy)

        decision = engine.swipe(SwipeDirection.CART, {"Size": "m", "color": "RED"})

        assert decision.options == {"size": "m", "color": "red"}

    def test_like_ignores_options(self, spy):
        engine = SwipeEngine([make_item("a", sizes=["S"])], dispatcher=spy)
        assert engine.swipe(SwipeDirection.LIKE, {"size": "s"}).options is None

    def test_decide_on_exhausted_deck(self, spy):
        engine = SwipeEngine([], dispatcher=spy)
        assert engine.is_exhausted
        assert engine.swipe(SwipeDirection.LIKE) is None
        assert not engine.begin_drag()
        assert spy.dispatched == []


# =============================================================================
# Failures, ordering and exhaustion
# =============================================================================

class TestDispatchFailures:

    def test_failed_like_keeps_queue_advanced(self, three_items):
        port = FakeCatalogPort(items=three_items, fail_on={"like"})
        notifier = Notifier()
        dispatcher = IntentDispatcher(port, notifier=notifier, executor=InlineExecutor())
        engine = SwipeEngine(three_items, dispatcher=dispatcher)

        decision = engine.swipe(SwipeDirection.LIKE)

        assert decision is not None
        assert engine.index == 1
        assert engine.last_decision is decision
        assert [f.kind for f in dispatcher.failures] == [IntentKind.LIKE]
        assert notifier.pending == 1

    def test_dispatcher_raising_does_not_break_engine(self, three_items):
        class Broken:
            def dispatch(self, decision):
                raise RuntimeError("executor shut down")

            def dispatch_undo(self, decision):
                raise RuntimeError("executor shut down")

        engine = SwipeEngine(three_items, dispatcher=Broken())
        assert engine.swipe(SwipeDirection.LIKE) is not None
        assert engine.index == 1
        assert engine.undo_swipe()
        assert engine.index == 0

    def test_dispatch_order_matches_commit_order(self, engine, dispatcher):
        engine.swipe(SwipeDirection.LIKE)
        engine.swipe(SwipeDirection.DISLIKE)
        engine.swipe(SwipeDirection.CART)

        assert dispatcher.submitted == [
            (IntentKind.LIKE, "item-1"),
            (IntentKind.DISLIKE, "item-2"),
            (IntentKind.ADD_TO_CART, "item-3"),
        ]

    def test_reset_after_exhaustion(self, spy_engine):
        for _ in range(3):
            spy_engine.swipe(SwipeDirection.DISLIKE)
        assert spy_engine.is_exhausted

        spy_engine.reset([make_item("fresh")])
        assert spy_engine.index == 0
        assert spy_engine.current_item.id == "fresh"
        assert not spy_engine.can_undo


# =============================================================================
# Re-ranking
# =============================================================================

class TestRerank:

    def test_like_reorders_unseen_cards(self, spy):
        items = [
            make_item("seed", tags=["boho"]),
            make_item("formal", tags=["formal"]),
            make_item("boho", tags=["boho"]),
        ]
        engine = SwipeEngine(items, dispatcher=spy, recommender=Recommender(), rerank_on_positive=True)

        engine.swipe(SwipeDirection.LIKE)

        assert [i.id for i in engine.items] == ["seed", "boho", "formal"]
        assert engine.current_item.id == "boho"

    def test_dislike_does_not_rerank(self, spy):
        items = [
            make_item("seed", tags=["boho"]),
            make_item("formal", tags=["formal"]),
            make_item("boho", tags=["boho"]),
        ]
        engine = SwipeEngine(items, dispatcher=spy, recommender=Recommender(), rerank_on_positive=True)

        engine.swipe(SwipeDirection.DISLIKE)

        assert [i.id for i in engine.items] == ["seed", "formal", "boho"]

    def test_undo_restores_same_card_and_withdraws_signal(self, spy):
        items = [
            make_item("seed", tags=["boho"]),
            make_item("formal", tags=["formal"]),
            make_item("boho", tags=["boho"]),
        ]
        engine = SwipeEngine(items, dispatcher=spy, recommender=Recommender(), rerank_on_positive=True)

        engine.swipe(SwipeDirection.LIKE)
        assert engine.signal == [items[0]]

        engine.undo_swipe()
        assert engine.current_item is items[0]
        assert engine.signal == []

    def test_snapshot_shape(self, spy_engine):
        spy_engine.swipe(SwipeDirection.LIKE)
        snap = spy_engine.snapshot()

        assert snap["index"] == 1
        assert snap["total"] == 3
        assert snap["remaining"] == 2
        assert snap["can_undo"] is True
        assert snap["current"]["id"] == "item-2"
        assert snap["last_decision"]["direction"] == "like"
