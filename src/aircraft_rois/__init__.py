"""
Aircraft detection over aerial imagery: from correlation-match points to a labelled
ROI dataset for an SVM classifier.

The submodules provide the following functionality:

```
geometry       – Rectangles, IoU and multi-size ROI candidates around a point.
annotations    – YOLO annotation parsing and the image/annotation dataset index.
classification – Split match points by ground-truth boxes and group them per box.
filtering      – Minimum-distance de-duplication of points.
labeling       – TP/FP labelling of candidate ROIs (max IoU per box) and training sampling.
matching       – Multi-angle normalised cross-correlation template matching.
templates      – K-means clustering of extracted templates and eigenplane averaging.
features       – HOG descriptors of ROIs and their CSV export.
export         – ROI-label and classifier-score CSV files.
metrics        – Binary classification metrics and precision/recall curves.
visualization  – Draw labelled ROIs and plot precision/recall.
pipeline       – The step-by-step pipeline driven by `run_pipeline.py`.
```
"""

from .annotations import (
    DatasetIndex,
    ImageRecord,
    parse_yolo_file,
    parse_yolo_line,
)
from .classification import associate_points_with_boxes, classify_points
from .filtering import filter_by_min_distance
from .geometry import (
    Rect,
    any_box_contains,
    compute_iou,
    generate_candidate_rois,
    point_in_rect,
    roi_fully_in_image,
)
from .labeling import (
    FP,
    TP,
    LabelingConfig,
    LabelledRoi,
    build_training_rois,
    label_rois,
)

__all__ = [
    "DatasetIndex",
    "ImageRecord",
    "parse_yolo_file",
    "parse_yolo_line",
    "associate_points_with_boxes",
    "classify_points",
    "filter_by_min_distance",
    "Rect",
    "any_box_contains",
    "compute_iou",
    "generate_candidate_rois",
    "point_in_rect",
    "roi_fully_in_image",
    "FP",
    "TP",
    "LabelingConfig",
    "LabelledRoi",
    "build_training_rois",
    "label_rois",
]
