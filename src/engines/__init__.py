"""
Swipe deck engines.

- SwipeEngine: gesture-driven card queue with undo
- gestures: release classification and drag feedback

Factory functions:
- create_swipe_session: fetch, rank and wire a session
- reload_deck: refill an exhausted deck
"""
from .gestures import CommitPreview, GestureConfig, GestureOutcome, classify_release, commit_preview
from .swipe_engine import EngineState, SwipeEngine, UndoStack
from .factory import create_swipe_session, reload_deck

__all__ = [
    # Engine
    'SwipeEngine', 'EngineState', 'UndoStack',
    # Gestures
    'GestureConfig', 'GestureOutcome', 'CommitPreview',
    'classify_release', 'commit_preview',
    # Factory functions
    'create_swipe_session',
    'reload_deck',
]
