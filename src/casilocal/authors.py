"""Byline assignment for refined reviews."""

import random
from typing import Sequence, TypeVar

T = TypeVar("T")

# (weight, author slug); weights are relative
AUTHOR_WEIGHTS: list[tuple[int, str]] = [
    (40, "murad"),
    (15, "isabella"),
    (15, "mikelia"),
    (15, "sara"),
    (15, "robert"),
]


def weighted_choice(table: Sequence[tuple[float, T]], rng: random.Random | None = None) -> T:
    """Pick one value from a (weight, value) table.

    A draw u in [0, total) selects the first entry whose cumulative weight
    exceeds u, so the table order defines the buckets.

    Raises:
        ValueError: If the table is empty or has no positive weight
    """
    total = sum(weight for weight, _ in table if weight > 0)
    if not table or total <= 0:
        raise ValueError("weighted_choice needs at least one positive weight")

    u = (rng or random).random() * total
    cumulative = 0.0
    for weight, value in table:
        if weight <= 0:
            continue
        cumulative += weight
        if u < cumulative:
            return value
    # Float rounding can leave u == total; the last positive entry owns it
    return [value for weight, value in table if weight > 0][-1]


def pick_author(rng: random.Random | None = None) -> str:
    return weighted_choice(AUTHOR_WEIGHTS, rng)
