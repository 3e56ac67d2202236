"""
Application constants and algorithm configuration.

These are values that don't change based on environment but may need
to be tuned or referenced across the codebase. Environment-dependent
thresholds live in config.settings.
"""

from dataclasses import dataclass
from typing import Tuple


# =============================================================================
# Gesture Feedback
# =============================================================================

@dataclass(frozen=True)
class GestureConstants:
    """Presentation constants for drag feedback on the card stack."""

    # LOVE / PASS badges reach full opacity at this fraction of the width
    PREVIEW_WIDTH_FRACTION: float = 0.25

    # Card tilts up to this many degrees at half the width
    MAX_ROTATION_DEG: float = 10.0
    ROTATION_WIDTH_FRACTION: float = 0.5

    # Card grows slightly while dragged
    DRAG_SCALE_FACTOR: float = 0.03
    MAX_DRAG_SCALE: float = 1.08

    # Exit animation length reported to clients (ms)
    EXIT_DURATION_MS: int = 260


GESTURE_CONSTANTS = GestureConstants()


# =============================================================================
# Ranking
# =============================================================================

@dataclass(frozen=True)
class RankingConstants:
    """Constants for the content-overlap recommender."""

    # Attribute kinds counted by the flat scoring scheme
    ATTRIBUTE_KINDS: Tuple[str, ...] = ("tag", "brand", "category")

    # Default size of "you might also like" lists
    SIMILAR_ITEMS_LIMIT: int = 6


RANKING_CONSTANTS = RankingConstants()
