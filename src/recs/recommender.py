"""
Content-overlap recommender.

Scores each candidate by how many of its attributes (tags, brand,
category) appear among the items the user already reacted positively to,
then orders candidates by descending score. Every attribute counts the
same; this is a heuristic, not a learned model.

The module-level functions are pure: no I/O, no mutation of inputs, and
identical arguments always produce identical output.
"""

from collections import Counter
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from config.constants import RANKING_CONSTANTS
from core.logging import LoggerMixin
from core.utils import normalize_token
from recs.models import Item


AttributeKey = Tuple[str, str]


def item_attributes(item: Item) -> List[AttributeKey]:
    """Normalised (kind, value) attributes of an item."""
    attributes = [("tag", normalize_token(t)) for t in item.tags]
    attributes.append(("brand", normalize_token(item.brand)))
    attributes.append(("category", normalize_token(item.category)))
    return [(kind, value) for kind, value in attributes if value]


def build_attribute_profile(signal: Iterable[Item]) -> Counter:
    """Attribute-frequency table aggregated over the positive signal."""
    profile: Counter = Counter()
    for item in signal:
        # set(): one item contributes each attribute once
        profile.update(set(item_attributes(item)))
    return profile


def score_item(item: Item, profile: Counter) -> int:
    """Count of the item's distinct attributes present in the profile."""
    return sum(1 for attribute in set(item_attributes(item)) if profile[attribute] > 0)


def score_items(candidates: Sequence[Item], signal: Sequence[Item]) -> np.ndarray:
    profile = build_attribute_profile(signal)
    return np.array([score_item(item, profile) for item in candidates], dtype=np.int64)


def rank(candidates: Sequence[Item], signal: Optional[Sequence[Item]] = None) -> List[Item]:
    """
    Order candidates by descending overlap score.

    Ties keep their input order, so an empty signal returns the
    candidates unchanged. The result is a new list containing exactly
    the input items.
    """
    candidates = list(candidates)
    if not candidates:
        return []
    if not signal:
        return candidates

    scores = score_items(candidates, signal)
    order = np.argsort(-scores, kind="stable")
    return [candidates[i] for i in order]


class Recommender(LoggerMixin):
    """
    Object wrapper around :func:`rank` for injection into the engine.

    Also provides the "you might also like" surface.
    """

    def rank(self, candidates: Sequence[Item], signal: Optional[Sequence[Item]] = None) -> List[Item]:
        ranked = rank(candidates, signal)
        self.logger.debug(
            "Ranked candidates",
            candidates=len(ranked),
            signal=len(signal or []),
        )
        return ranked

    def similar_items(
        self,
        anchor: Item,
        candidates: Sequence[Item],
        limit: int = RANKING_CONSTANTS.SIMILAR_ITEMS_LIMIT,
    ) -> List[Item]:
        """
        Items sharing at least one attribute with ``anchor``, best first.

        The anchor itself is excluded.
        """
        pool = [c for c in candidates if c.id != anchor.id]
        if not pool or limit <= 0:
            return []
        scores = score_items(pool, [anchor])
        order = np.argsort(-scores, kind="stable")
        return [pool[i] for i in order if scores[i] > 0][:limit]
