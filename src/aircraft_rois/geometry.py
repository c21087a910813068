from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

Point = Tuple[int, int]
Size = Tuple[int, int]  # (width, height)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle with an integer top-left origin. The far edges are exclusive."""

    x: int
    y: int
    width: int
    height: int

    @property
    def x_max(self) -> int:
        return self.x + self.width

    @property
    def y_max(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        if self.width <= 0 or self.height <= 0:
            return 0
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def contains(self, point: Point) -> bool:
        px, py = point
        return self.x <= px < self.x_max and self.y <= py < self.y_max

    def intersection(self, other: "Rect") -> "Rect":
        x_min = max(self.x, other.x)
        y_min = max(self.y, other.y)
        x_max = min(self.x_max, other.x_max)
        y_max = min(self.y_max, other.y_max)
        if x_max <= x_min or y_max <= y_min:
            return Rect(0, 0, 0, 0)
        return Rect(x_min, y_min, x_max - x_min, y_max - y_min)

    def intersects(self, other: "Rect") -> bool:
        return self.intersection(other).area != 0


def point_in_rect(point: Point, rect: Rect) -> bool:
    return rect.contains(point)


def any_box_contains(point: Point, boxes: Iterable[Rect]) -> bool:
    return any(box.contains(point) for box in boxes)


def compute_iou(box_a: Rect, box_b: Rect) -> float:
    """Intersection-over-Union for axis-aligned rectangles (0.0 when the union is empty)."""

    intersection = box_a.intersection(box_b).area
    union = box_a.area + box_b.area - intersection
    if union <= 0:
        return 0.0
    return intersection / union


def roi_fully_in_image(roi: Rect, width: int, height: int) -> bool:
    if roi.is_empty:
        return False
    return roi.x >= 0 and roi.y >= 0 and roi.x_max <= width and roi.y_max <= height


def roi_centered_at(point: Point, size: Size) -> Rect:
    roi_w, roi_h = size
    return Rect(point[0] - roi_w // 2, point[1] - roi_h // 2, roi_w, roi_h)


def generate_candidate_rois(
    point: Point,
    sizes: Sequence[Size],
    width: int,
    height: int,
) -> List[Rect]:
    """
    Centre every configured size on `point` and keep the rectangles lying fully inside
    the image. The output follows the order of `sizes`, which downstream max-IoU
    selection relies on for tie-breaking.
    """

    candidates: List[Rect] = []
    for size in sizes:
        roi = roi_centered_at(point, size)
        if roi_fully_in_image(roi, width, height):
            candidates.append(roi)
    return candidates


def generate_rois_from_points(
    points: Iterable[Point],
    sizes: Sequence[Size],
    width: int,
    height: int,
) -> List[Rect]:
    """Flattened candidates for several points, point-major then size order."""

    rois: List[Rect] = []
    for point in points:
        rois.extend(generate_candidate_rois(point, sizes, width, height))
    return rois
