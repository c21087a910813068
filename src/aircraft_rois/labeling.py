from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .classification import associate_points_with_boxes, classify_points
from .filtering import filter_by_min_distance
from .geometry import (
    Point,
    Rect,
    Size,
    compute_iou,
    generate_rois_from_points,
    roi_centered_at,
    roi_fully_in_image,
)

LOGGER = logging.getLogger(__name__)

TP = "TP"
FP = "FP"
LABELS = (TP, FP)


@dataclass(frozen=True)
class LabelingConfig:
    """Sizes of the ROIs centred on every match point and the IoU needed to call one a TP."""

    roi_sizes: Tuple[Size, ...]
    iou_threshold: float = 0.1

    def __post_init__(self) -> None:
        object.__setattr__(self, "roi_sizes", tuple((int(w), int(h)) for w, h in self.roi_sizes))
        if not self.roi_sizes:
            raise ValueError("roi_sizes must contain at least one size")
        for width, height in self.roi_sizes:
            if width <= 0 or height <= 0:
                raise ValueError(f"ROI sizes must be positive, got {width}x{height}")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError(f"iou_threshold must be in [0, 1], got {self.iou_threshold}")


@dataclass(frozen=True)
class LabelledRoi:
    roi: Rect
    label: str


def _check_image_size(image_size: Tuple[int, int]) -> None:
    width, height = image_size
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image dimensions {width}x{height}")


def select_max_iou_roi(
    box: Rect,
    candidates: Sequence[Rect],
    iou_threshold: float,
) -> Optional[Rect]:
    """
    Return the candidate with the highest IoU against `box`, or None when there are no
    candidates or the best IoU is below `iou_threshold`. Ties keep the earliest candidate.
    """

    best_roi: Optional[Rect] = None
    best_iou = 0.0
    for roi in candidates:
        iou = compute_iou(roi, box)
        if best_roi is None or iou > best_iou:
            best_roi = roi
            best_iou = iou

    if best_roi is None or best_iou < iou_threshold:
        return None
    return best_roi


def label_box_rois(
    boxes: Sequence[Rect],
    groups: Dict[int, List[Point]],
    image_size: Tuple[int, int],
    config: LabelingConfig,
) -> List[LabelledRoi]:
    """At most one TP per ground-truth box; the remaining candidates of that box are discarded."""

    width, height = image_size
    labelled: List[LabelledRoi] = []
    for index, box in enumerate(boxes):
        candidates = generate_rois_from_points(groups.get(index, []), config.roi_sizes, width, height)
        best = select_max_iou_roi(box, candidates, config.iou_threshold)
        if best is None:
            LOGGER.debug("Box %d %s has no candidate above IoU %.2f", index, box, config.iou_threshold)
            continue
        labelled.append(LabelledRoi(best, TP))
    return labelled


def label_outside_points(
    points: Sequence[Point],
    image_size: Tuple[int, int],
    config: LabelingConfig,
) -> List[LabelledRoi]:
    width, height = image_size
    rois = generate_rois_from_points(points, config.roi_sizes, width, height)
    return [LabelledRoi(roi, FP) for roi in rois]


def label_rois(
    boxes: Sequence[Rect],
    points: Sequence[Point],
    image_size: Tuple[int, int],
    config: LabelingConfig,
) -> List[LabelledRoi]:
    """
    Turn correlation-match points and ground-truth boxes into labelled ROIs.

    Points inside a box are grouped under the first box containing them and, per box,
    the candidate with the largest IoU (if it reaches the threshold) becomes a TP.
    Every in-image candidate of a point outside all boxes becomes an FP. TPs come
    first in box order, followed by FPs in point order.
    """

    _check_image_size(image_size)
    inside, outside = classify_points(points, boxes)
    groups = associate_points_with_boxes(boxes, inside)

    positives = label_box_rois(boxes, groups, image_size, config)
    negatives = label_outside_points(outside, image_size, config)
    LOGGER.debug(
        "%d points (%d inside, %d outside) -> %d TP, %d FP",
        len(points),
        len(inside),
        len(outside),
        len(positives),
        len(negatives),
    )
    return positives + negatives


def build_training_rois(
    boxes: Sequence[Rect],
    points: Sequence[Point],
    image_size: Tuple[int, int],
    config: LabelingConfig,
    *,
    min_distance: float = 100.0,
    rng: Optional[random.Random] = None,
) -> Tuple[List[Rect], List[Rect]]:
    """
    Sample (TP, FP) ROIs for classifier training.

    TPs follow the same max-IoU rule as `label_rois`. Outside points are thinned with
    `filter_by_min_distance` and each one gets a single ROI of a randomly drawn size;
    an FP is kept only if it lies in the image and touches neither a TP ROI nor a
    ground-truth box.
    """

    _check_image_size(image_size)
    rng = rng or random.Random()
    width, height = image_size

    inside, outside = classify_points(points, boxes)
    groups = associate_points_with_boxes(boxes, inside)
    tp_rois = [entry.roi for entry in label_box_rois(boxes, groups, image_size, config)]

    fp_rois: List[Rect] = []
    for point in filter_by_min_distance(outside, min_distance):
        roi = roi_centered_at(point, rng.choice(config.roi_sizes))
        if not roi_fully_in_image(roi, width, height):
            continue
        if any(roi.intersects(tp) for tp in tp_rois):
            continue
        if any(roi.intersects(box) for box in boxes):
            continue
        fp_rois.append(roi)

    return tp_rois, fp_rois


def extract_rois(labelled: Sequence[LabelledRoi]) -> List[Rect]:
    return [entry.roi for entry in labelled]
