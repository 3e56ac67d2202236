"""
Item models and the content-overlap recommender.
"""

from recs.models import Item, SwipeDecision, SwipeDirection, Variant, find_matching_variant
from recs.recommender import Recommender, rank

__all__ = [
    "Item",
    "SwipeDecision",
    "SwipeDirection",
    "Variant",
    "find_matching_variant",
    "Recommender",
    "rank",
]
