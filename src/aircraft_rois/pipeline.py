"""
Pipeline steps, from template extraction to the evaluation of the classified ROIs.

```
extract-templates   – crop every ground-truth box of the training set.
kmeans-by-size      – cluster the crops by (width, height).
kmeans-by-intensity – split every size cluster by mean intensity.
resize-clusters     – bring each intensity cluster to its average size.
eigenplanes         – build one average template per resized cluster.
training            – HOG features of sampled TP/FP ROIs for classifier training.
detection           – label the ROIs of testing images and export their HOG features.
evaluate            – precision/recall of the externally classified ROIs.
```

Every step leaves a `<step>.done` marker in `<work_dir>/steps_completed` and refuses
to start while the marker of its prerequisite is missing.
"""

from __future__ import annotations

import json
import logging
import random
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np
from tqdm import tqdm

from .annotations import DatasetIndex, ImageRecord, parse_yolo_file
from .config import DEFAULT_ROI_SIZES, PipelineConfig, format_roi_sizes
from .export import load_scored_labels, save_roi_labels, write_text
from .features import extract_hog_features, write_hog_features_csv
from .geometry import Rect, Size, roi_fully_in_image
from .imaging import (
    create_directory,
    list_directories,
    list_images,
    load_color,
    load_grayscale,
    save_image,
)
from .labeling import TP, build_training_rois, extract_rois, label_rois
from .matching import load_average_templates, match_templates
from .metrics import Metric, compute_metric, precision_recall_curve, trapezoid_auc
from .templates import (
    average_dimensions,
    cluster_sizes,
    eigenplane,
    kmeans_by_intensity,
    kmeans_by_size,
    resize_to_same_dimensions,
    save_clusters,
)
from .visualization import draw_labelled_rois, plot_precision_recall

LOGGER = logging.getLogger(__name__)

STEP_DEPENDENCIES: Dict[str, Optional[str]] = {
    "extract-templates": None,
    "kmeans-by-size": "extract-templates",
    "kmeans-by-intensity": "kmeans-by-size",
    "resize-clusters": "kmeans-by-intensity",
    "eigenplanes": "resize-clusters",
    "training": "eigenplanes",
    "detection": "eigenplanes",
    "evaluate": "detection",
}
STEPS = tuple(STEP_DEPENDENCIES)


def mark_step_done(config: PipelineConfig, step: str) -> Path:
    config.steps_dir.mkdir(parents=True, exist_ok=True)
    marker = config.steps_dir / f"{step}.done"
    marker.touch()
    return marker


def check_previous_step(config: PipelineConfig, step: str) -> None:
    if step not in STEP_DEPENDENCIES:
        raise ValueError(f"Unknown step '{step}' (available: {', '.join(STEPS)})")
    previous = STEP_DEPENDENCIES[step]
    if previous is None:
        return
    if not (config.steps_dir / f"{previous}.done").exists():
        raise RuntimeError(f"The step '{previous}' has not been executed yet. Cannot execute '{step}'.")


def _read_gray_images(paths: Sequence[Path]) -> List[np.ndarray]:
    return [load_grayscale(path) for path in paths]


def resolve_roi_sizes(config: PipelineConfig) -> Tuple[Size, ...]:
    """Configured sizes, else the average size of every k-means-by-size cluster, else defaults."""

    if config.roi_sizes:
        return tuple(config.roi_sizes)

    clusters_root = config.work_dir / "kmeans_by_size"
    if clusters_root.exists():
        sizes = cluster_sizes(
            [_read_gray_images(list_images(cluster_dir)) for cluster_dir in list_directories(clusters_root)]
        )
        if sizes:
            LOGGER.info("ROI sizes from the size clusters: %s", format_roi_sizes(sizes))
            return tuple(sizes)

    LOGGER.warning("No ROI sizes configured or clustered, using defaults %s", format_roi_sizes(DEFAULT_ROI_SIZES))
    return DEFAULT_ROI_SIZES


def load_annotated_image(record: ImageRecord, config: PipelineConfig) -> Tuple[np.ndarray, List[Rect]]:
    gray = load_grayscale(record.image_path)
    height, width = gray.shape[:2]
    boxes: List[Rect] = []
    if record.annotation_path is not None:
        boxes = parse_yolo_file(
            record.annotation_path,
            width,
            height,
            reject_out_of_bounds=config.reject_out_of_bounds,
        )
    return gray, boxes


# ---------------------------------------------------------------------------
# Template preparation
# ---------------------------------------------------------------------------


def extract_templates(config: PipelineConfig) -> int:
    output_dir = create_directory(config.work_dir, "extracted_templates")
    dataset = DatasetIndex(config.training_dir)
    saved = 0
    for record in tqdm(dataset, desc="Extracting templates"):
        try:
            gray, boxes = load_annotated_image(record, config)
        except (OSError, ValueError, cv2.error):
            LOGGER.exception("Skipping '%s'", record.image_id)
            continue
        height, width = gray.shape[:2]
        for index, box in enumerate(boxes):
            if not roi_fully_in_image(box, width, height):
                LOGGER.warning("Box %d of '%s' exceeds the image, not extracted", index, record.image_id)
                continue
            crop = gray[box.y : box.y_max, box.x : box.x_max]
            save_image(crop, output_dir / f"{record.image_id}_{index}.png")
            saved += 1
    LOGGER.info("Extracted %d templates to %s", saved, output_dir)
    return saved


def cluster_by_size(config: PipelineConfig) -> List[Path]:
    paths = list_images(config.work_dir / "extracted_templates")
    templates = _read_gray_images(paths)
    labels = kmeans_by_size(templates, config.size_clusters)

    root = create_directory(config.work_dir, "kmeans_by_size")
    cluster_dirs = [create_directory(root, f"Cluster_{i}") for i in range(config.size_clusters)]
    save_clusters(templates, [p.stem for p in paths], labels, cluster_dirs)
    LOGGER.info("Clustered %d templates into %d size clusters", len(templates), len(cluster_dirs))
    return cluster_dirs


def cluster_by_intensity(config: PipelineConfig) -> List[Path]:
    root = create_directory(config.work_dir, "kmeans_by_intensity")
    all_dirs: List[Path] = []
    for group, size_dir in enumerate(list_directories(config.work_dir / "kmeans_by_size")):
        paths = list_images(size_dir)
        if not paths:
            LOGGER.warning("Size cluster %s is empty", size_dir.name)
            continue
        templates = _read_gray_images(paths)
        labels = kmeans_by_intensity(templates, config.intensity_clusters)

        group_dir = create_directory(root, f"Group_{group}")
        cluster_dirs = [
            create_directory(group_dir, f"Cluster_By_Intensity_{j}") for j in range(config.intensity_clusters)
        ]
        save_clusters(templates, [p.stem for p in paths], labels, cluster_dirs)
        all_dirs.extend(cluster_dirs)
    return all_dirs


def resize_clusters(config: PipelineConfig) -> List[Path]:
    output_root = create_directory(config.work_dir, "resized_clusters")
    written: List[Path] = []
    cluster_dirs = [
        leaf
        for group_dir in list_directories(config.work_dir / "kmeans_by_intensity")
        for leaf in list_directories(group_dir)
    ]
    index = 0
    for cluster_dir in cluster_dirs:
        paths = list_images(cluster_dir)
        if not paths:
            continue
        images = _read_gray_images(paths)
        resized = resize_to_same_dimensions(images, average_dimensions(images))
        out_dir = create_directory(output_root, f"Cluster_same_size_{index}")
        for path, image in zip(paths, resized):
            save_image(image, out_dir / path.name)
        written.append(out_dir)
        index += 1
    return written


def generate_eigenplanes(config: PipelineConfig) -> List[Path]:
    output_dir = create_directory(config.work_dir, "avg_airplanes")
    saved: List[Path] = []
    for index, cluster_dir in enumerate(list_directories(config.work_dir / "resized_clusters")):
        images = _read_gray_images(list_images(cluster_dir))
        if not images:
            continue
        height, width = images[0].shape[:2]
        average = images[0] if len(images) == 1 else eigenplane(images, (width, height))
        saved.append(save_image(average, output_dir / f"avg_airplane{index}.png"))
    LOGGER.info("Saved %d average templates to %s", len(saved), output_dir)
    return saved


# ---------------------------------------------------------------------------
# Training / detection
# ---------------------------------------------------------------------------


def extract_training_features(config: PipelineConfig) -> Tuple[Path, Path]:
    templates = load_average_templates(config.average_templates_dir)
    labeling = config.labeling(resolve_roi_sizes(config), training=True)
    rng = random.Random(config.seed)
    dataset = DatasetIndex(config.training_dir)

    tp_features: List[np.ndarray] = []
    fp_features: List[np.ndarray] = []
    for record in tqdm(dataset, desc="Sampling training ROIs"):
        try:
            gray, boxes = load_annotated_image(record, config)
            points = match_templates(
                gray, templates, angle_step=config.angle_step, max_workers=config.max_workers
            )
            height, width = gray.shape[:2]
            tp_rois, fp_rois = build_training_rois(
                boxes,
                points,
                (width, height),
                labeling,
                min_distance=config.min_point_distance,
                rng=rng,
            )
            tp_features.extend(extract_hog_features(tp_rois, gray))
            fp_features.extend(extract_hog_features(fp_rois, gray))
        except (OSError, ValueError, cv2.error):
            LOGGER.exception("Skipping '%s'", record.image_id)

    output_dir = create_directory(config.work_dir, "svm_training_input")
    tp_path = write_hog_features_csv(tp_features, output_dir / "tp_training.csv")
    fp_path = write_hog_features_csv(fp_features, output_dir / "fp_training.csv")
    LOGGER.info("Wrote %d TP and %d FP training samples to %s", len(tp_features), len(fp_features), output_dir)
    return tp_path, fp_path


def detect_image(
    record: ImageRecord,
    config: PipelineConfig,
    templates: Sequence[np.ndarray],
    roi_sizes: Tuple[Size, ...],
) -> Dict[str, object]:
    gray, boxes = load_annotated_image(record, config)
    height, width = gray.shape[:2]
    points = match_templates(gray, templates, angle_step=config.angle_step, max_workers=config.max_workers)
    labelled = label_rois(boxes, points, (width, height), config.labeling(roi_sizes))

    output_dir = create_directory(config.work_dir / "detection", record.image_id)
    save_roi_labels(labelled, output_dir / "roi_label_pairs.csv")
    write_hog_features_csv(extract_hog_features(extract_rois(labelled), gray), output_dir / "testing_samples.csv")
    write_text(output_dir / "testing_img_id.txt", record.image_id)
    draw_labelled_rois(
        load_color(record.image_path),
        labelled,
        output_dir / "result.png",
        ground_truth=boxes,
        title=record.image_id,
    )

    num_tp = sum(1 for entry in labelled if entry.label == TP)
    return {
        "image_id": record.image_id,
        "ground_truth": len(boxes),
        "points": len(points),
        "tp": num_tp,
        "fp": len(labelled) - num_tp,
    }


def run_detection(config: PipelineConfig, image_ids: Sequence[str]) -> List[Dict[str, object]]:
    if not image_ids:
        raise ValueError("At least one testing image id is required")
    templates = load_average_templates(config.average_templates_dir)
    roi_sizes = resolve_roi_sizes(config)
    dataset = DatasetIndex(config.testing_dir)

    summaries: List[Dict[str, object]] = []
    for image_id in tqdm(image_ids, desc="Detecting"):
        try:
            summary = detect_image(dataset.get(image_id), config, templates, roi_sizes)
        except (OSError, ValueError, cv2.error):
            LOGGER.exception("Detection failed for '%s', skipping", image_id)
            continue
        LOGGER.info(
            "%s: %d points, %d TP, %d FP", image_id, summary["points"], summary["tp"], summary["fp"]
        )
        summaries.append(summary)
    return summaries


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def evaluate_scores(
    scores_path: Path,
    output_dir: Path,
    *,
    total_positives: Optional[int] = None,
    threshold: float = 0.5,
) -> Dict[str, object]:
    """PR curve, its AUC and the thresholded metrics of `label,score` rows."""

    rows = load_scored_labels(scores_path)
    labels = [label for label, _ in rows]
    scores = [score for _, score in rows]

    precision, recall = precision_recall_curve(labels, scores, total_positives=total_positives)
    pr_auc = trapezoid_auc(recall, precision)
    metrics: Dict[str, object] = {
        "num_samples": len(rows),
        "total_positives": total_positives if total_positives is not None else labels.count(TP),
        "pr_auc": pr_auc,
        "threshold": threshold,
    }
    for metric in Metric:
        metrics[metric.value] = compute_metric(metric, labels, scores, threshold=threshold)

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    with open(output_dir / "metrics.json", "w", encoding="utf-8") as handle:
        json.dump(metrics, handle, indent=2)
    plot_precision_recall(precision, recall, pr_auc, output_dir / "pr_curve.png")
    return metrics
