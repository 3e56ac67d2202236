"""
Gesture interpretation for the swipe deck.

Turns pan-handler displacement/velocity into either live drag feedback
(CommitPreview) or, on release, a discrete GestureOutcome. Nothing here
holds state; the engine owns the state machine.

Release rules, evaluated in order:
1. Horizontal: past the distance or velocity threshold -> LIKE (right)
   or DISLIKE (left). Horizontal wins whenever it qualifies.
2. Downward: past the down threshold -> CART.
3. Upward nudge: past the small up threshold -> DETAILS (no decision).
4. Anything else -> CANCELLED (card snaps back).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from config.constants import GESTURE_CONSTANTS
from core.utils import clamp
from recs.models import SwipeDirection


class GestureOutcome(str, Enum):
    CANCELLED = "cancelled"
    LIKE = "like"
    DISLIKE = "dislike"
    CART = "cart"
    DETAILS = "details"
    IGNORED = "ignored"  # release arrived while no drag was active

    @property
    def direction(self) -> Optional[SwipeDirection]:
        """The swipe direction this outcome commits, if any."""
        try:
            return SwipeDirection(self.value)
        except ValueError:
            return None

    @property
    def is_commit(self) -> bool:
        return self.direction is not None


@dataclass(frozen=True)
class GestureConfig:
    """Commit thresholds. Distances in points, velocities in points/ms."""
    horizontal_distance: float = 50.0
    horizontal_velocity: float = 0.22
    down_distance: float = 90.0
    down_velocity: float = 0.35
    up_distance: float = 8.0
    up_velocity: float = 0.05
    screen_width: float = 390.0
    screen_height: float = 844.0

    @classmethod
    def from_settings(cls, settings) -> "GestureConfig":
        return cls(
            horizontal_distance=settings.swipe_horizontal_distance,
            horizontal_velocity=settings.swipe_horizontal_velocity,
            down_distance=settings.swipe_down_distance,
            down_velocity=settings.swipe_down_velocity,
            up_distance=settings.details_up_distance,
            up_velocity=settings.details_up_velocity,
            screen_width=settings.screen_width,
            screen_height=settings.screen_height,
        )


@dataclass(frozen=True)
class CommitPreview:
    """Live drag feedback. Presentation only."""
    like_opacity: float
    nope_opacity: float
    rotation_deg: float
    scale: float

    def to_dict(self):
        return {
            "like_opacity": round(self.like_opacity, 4),
            "nope_opacity": round(self.nope_opacity, 4),
            "rotation_deg": round(self.rotation_deg, 4),
            "scale": round(self.scale, 4),
        }


def commit_preview(dx: float, dy: float, config: GestureConfig) -> CommitPreview:
    """Badge opacity, tilt and scale for the current displacement."""
    c = GESTURE_CONSTANTS
    preview_span = config.screen_width * c.PREVIEW_WIDTH_FRACTION
    rotation_span = config.screen_width * c.ROTATION_WIDTH_FRACTION

    displacement = max(abs(dx) / config.screen_width, abs(dy) / config.screen_height)
    return CommitPreview(
        like_opacity=clamp(dx / preview_span),
        nope_opacity=clamp(-dx / preview_span),
        rotation_deg=clamp(dx / rotation_span, -1.0, 1.0) * c.MAX_ROTATION_DEG,
        scale=min(1 + displacement * c.DRAG_SCALE_FACTOR, c.MAX_DRAG_SCALE),
    )


def classify_release(
    dx: float,
    dy: float,
    config: GestureConfig,
    vx: float = 0.0,
    vy: float = 0.0,
) -> GestureOutcome:
    """Resolve a pointer-up into an outcome. See module docstring for rules."""
    if dx > config.horizontal_distance or vx > config.horizontal_velocity:
        return GestureOutcome.LIKE
    if dx < -config.horizontal_distance or vx < -config.horizontal_velocity:
        return GestureOutcome.DISLIKE
    if dy > config.down_distance or vy > config.down_velocity:
        return GestureOutcome.CART
    if dy < -config.up_distance or vy < -config.up_velocity:
        return GestureOutcome.DETAILS
    return GestureOutcome.CANCELLED
