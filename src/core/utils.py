"""
Core Utility Functions.

Small helpers shared by the models, the recommender and the engine.
"""

from typing import Any, Optional


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp ``value`` into ``[low, high]``."""
    return max(low, min(high, value))


def normalize_token(value: Optional[str]) -> str:
    """Lowercase and strip a single attribute value; None becomes ''."""
    if not value:
        return ""
    return str(value).lower().strip()


def first_present(mapping: dict, *keys: str, default: Any = None) -> Any:
    """Return the value of the first key in ``mapping`` that is set and non-empty."""
    for key in keys:
        value = mapping.get(key)
        if value not in (None, "", []):
            return value
    return default
