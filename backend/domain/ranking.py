"""Ranking helpers."""
from __future__ import annotations

from typing import Dict, Hashable, Iterable, List


def dense_rank(values: Iterable[Hashable], *, descending: bool = True) -> List[int]:
    """Dense rank of each value, in input order.

    Equal values share a rank and the next distinct value is exactly one rank
    further, so ranks form a contiguous sequence starting at 1.
    """
    values = list(values)
    ranks: Dict[Hashable, int] = {}
    for position, value in enumerate(sorted(set(values), reverse=descending), start=1):
        ranks[value] = position
    return [ranks[value] for value in values]
