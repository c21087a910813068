from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).resolve().parent
SRC_DIR = PROJECT_ROOT / "src"
if SRC_DIR.exists() and str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from aircraft_rois.config import PipelineConfig, environment_defaults, parse_roi_sizes
from aircraft_rois.pipeline import (
    STEPS,
    check_previous_step,
    cluster_by_intensity,
    cluster_by_size,
    evaluate_scores,
    extract_templates,
    extract_training_features,
    generate_eigenplanes,
    mark_step_done,
    resize_clusters,
    run_detection,
)

logging.basicConfig(format="%(levelname)s: %(message)s", level=logging.INFO)
LOGGER = logging.getLogger("aircraft_pipeline")


def parse_args(argv=None) -> argparse.Namespace:
    env = environment_defaults()
    parser = argparse.ArgumentParser(description="Aircraft detection – template and ROI labelling pipeline")
    parser.add_argument("steps", nargs="+", choices=STEPS, help="Pipeline steps to run, in order")
    parser.add_argument("--work-dir", type=Path, default=env["work_dir"], help="Where every step writes its outputs")
    parser.add_argument("--training-dir", type=Path, default=env["training_dir"], help="Training images with YOLO .txt labels")
    parser.add_argument("--testing-dir", type=Path, default=env["testing_dir"], help="Testing images with YOLO .txt labels")
    parser.add_argument(
        "--templates-dir",
        type=Path,
        default=env["templates_dir"],
        help="Average templates used for matching (defaults to <work-dir>/avg_airplanes)",
    )
    parser.add_argument(
        "--roi-sizes",
        type=parse_roi_sizes,
        default=env["roi_sizes"],
        help="Ordered ROI sizes, e.g. '40x40,60x60'. Defaults to the k-means-by-size cluster averages",
    )
    parser.add_argument("--iou-threshold", type=float, default=env["iou_threshold"], help="Minimum IoU for a TP at detection time")
    parser.add_argument(
        "--training-iou-threshold",
        type=float,
        default=0.0,
        help="Minimum IoU for a TP when sampling training ROIs",
    )
    parser.add_argument("--min-point-distance", type=float, default=100.0, help="Minimum distance between FP training points")
    parser.add_argument("--angle-step", type=int, default=5, help="Rotation step (degrees) of the template matching")
    parser.add_argument("--size-clusters", type=int, default=5, help="K for the k-means by size")
    parser.add_argument("--intensity-clusters", type=int, default=6, help="K for the k-means by intensity")
    parser.add_argument(
        "--reject-out-of-bounds",
        action="store_true",
        help="Drop ground-truth boxes that are not fully inside their image",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for the training ROI size sampling")
    parser.add_argument("--workers", type=int, default=None, help="Threads used by the template matching")
    parser.add_argument("--image-ids", nargs="+", default=[], help="Testing image ids for the detection step")
    parser.add_argument("--scores", type=Path, default=None, help="label,score CSV produced by the classifier (evaluate step)")
    parser.add_argument("--total-positives", type=int, default=None, help="Number of ground-truth aircraft (evaluate step)")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> PipelineConfig:
    return PipelineConfig(
        work_dir=args.work_dir,
        training_dir=args.training_dir,
        testing_dir=args.testing_dir,
        templates_dir=args.templates_dir,
        roi_sizes=args.roi_sizes,
        iou_threshold=args.iou_threshold,
        training_iou_threshold=args.training_iou_threshold,
        min_point_distance=args.min_point_distance,
        angle_step=args.angle_step,
        size_clusters=args.size_clusters,
        intensity_clusters=args.intensity_clusters,
        reject_out_of_bounds=args.reject_out_of_bounds,
        seed=args.seed,
        max_workers=args.workers,
    )


def execute_step(step: str, config: PipelineConfig, args: argparse.Namespace) -> None:
    check_previous_step(config, step)
    LOGGER.info("Running step '%s'", step)

    if step == "extract-templates":
        extract_templates(config)
    elif step == "kmeans-by-size":
        cluster_by_size(config)
    elif step == "kmeans-by-intensity":
        cluster_by_intensity(config)
    elif step == "resize-clusters":
        resize_clusters(config)
    elif step == "eigenplanes":
        generate_eigenplanes(config)
    elif step == "training":
        extract_training_features(config)
    elif step == "detection":
        run_detection(config, args.image_ids)
    elif step == "evaluate":
        if args.scores is None:
            raise ValueError("The evaluate step needs --scores")
        metrics = evaluate_scores(
            args.scores,
            config.work_dir / "evaluation",
            total_positives=args.total_positives,
        )
        LOGGER.info("PR AUC: %.4f", metrics["pr_auc"])

    mark_step_done(config, step)


def main(argv=None) -> None:
    args = parse_args(argv)
    config = build_config(args)
    for step in args.steps:
        execute_step(step, config, args)


if __name__ == "__main__":
    main()
