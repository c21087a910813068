from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

# Ensure local modules are importable (aircraft_rois lives in src/)
PROJECT_ROOT = Path(__file__).resolve().parent
SRC_DIR = PROJECT_ROOT / "src"
if SRC_DIR.exists() and str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from aircraft_rois.pipeline import evaluate_scores

LOGGER = logging.getLogger("detection_eval")
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Precision/recall of classified ROIs from a label,score CSV.")
    parser.add_argument("scores", type=Path, help="CSV with one 'label,score' row per classified ROI")
    parser.add_argument("--total-positives", type=int, default=None, help="Number of ground-truth aircraft (defaults to the TP rows)")
    parser.add_argument("--threshold", type=float, default=0.5, help="Score threshold for the confusion-based metrics")
    parser.add_argument("--output-dir", type=Path, default=Path("outputs/evaluation"), help="Where to save metrics.json and pr_curve.png")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    metrics = evaluate_scores(
        args.scores,
        args.output_dir,
        total_positives=args.total_positives,
        threshold=args.threshold,
    )
    for name, value in metrics.items():
        LOGGER.info("%s: %s", name, value)
    LOGGER.info("Saved metrics and PR curve to %s", args.output_dir)


if __name__ == "__main__":
    main()
