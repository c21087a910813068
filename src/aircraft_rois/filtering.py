from __future__ import annotations

import math
from typing import Iterable, List

from .geometry import Point


def filter_by_min_distance(points: Iterable[Point], min_distance: float) -> List[Point]:
    """
    Greedy spatial de-duplication: walk the points in lexicographic (x, y) order and
    keep a point only if it is at least `min_distance` away from every point kept so far.
    """

    if min_distance < 0:
        raise ValueError(f"min_distance must be non-negative, got {min_distance}")

    accepted: List[Point] = []
    for point in sorted(points):
        if all(math.dist(point, kept) >= min_distance for kept in accepted):
            accepted.append(point)
    return accepted
