"""Random picks over a set of candidate foods.

Both functions are pure apart from the random source, which can be passed in
(anything with a `random()` method returning floats in [0, 1)).
"""

import math
import random as _random
from typing import Any, Dict, Optional, Sequence


def _food_id(candidate: Any):
    if isinstance(candidate, dict):
        return candidate.get("id")
    return getattr(candidate, "id", None)


def pick_random(candidates: Sequence[Any], rng=None) -> Optional[Any]:
    """Uniformly pick one candidate, or None when there are none."""
    if not candidates:
        return None
    rng = rng or _random
    index = math.floor(rng.random() * len(candidates))
    return candidates[min(index, len(candidates) - 1)]


def pick_weighted_by_rating(
    candidates: Sequence[Any],
    ratings_by_food_id: Dict[Any, float],
    rng=None,
) -> Optional[Any]:
    """Roulette-wheel pick among rated candidates, weighted by rating.

    Candidates without a positive rating are never picked. Returns None if no
    candidate is rated.
    """
    ratings_by_food_id = ratings_by_food_id or {}
    weighted = []
    for candidate in candidates or []:
        weight = ratings_by_food_id.get(_food_id(candidate)) or 0
        if weight > 0:
            weighted.append((candidate, weight))
    if not weighted:
        return None

    rng = rng or _random
    total_weight = sum(weight for _, weight in weighted)
    remaining = rng.random() * total_weight
    for candidate, weight in weighted:
        remaining -= weight
        if remaining <= 0:
            return candidate
    return weighted[-1][0]
