from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from .geometry import Point, Rect, any_box_contains


def classify_points(
    points: Sequence[Point],
    boxes: Sequence[Rect],
) -> Tuple[List[Point], List[Point]]:
    """Split match points into (inside some ground-truth box, outside every box), keeping input order."""

    inside: List[Point] = []
    outside: List[Point] = []
    for point in points:
        if any_box_contains(point, boxes):
            inside.append(point)
        else:
            outside.append(point)
    return inside, outside


def associate_points_with_boxes(
    boxes: Sequence[Rect],
    points: Sequence[Point],
) -> Dict[int, List[Point]]:
    """
    Group points under the first box (in `boxes` order) that contains them. Every box
    index is present in the result, possibly with an empty list. A point lying in
    overlapping boxes only counts for the first one.
    """

    groups: Dict[int, List[Point]] = {index: [] for index in range(len(boxes))}
    for point in points:
        for index, box in enumerate(boxes):
            if box.contains(point):
                groups[index].append(point)
                break
    return groups
