from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from .geometry import Size
from .labeling import LabelingConfig

DEFAULT_ROI_SIZES: Tuple[Size, ...] = ((40, 40), (56, 56), (72, 72), (96, 96), (128, 128))


def parse_roi_sizes(text: str) -> Tuple[Size, ...]:
    """Parse `"40x40,60x80"` into ((40, 40), (60, 80)), keeping the given order."""

    sizes = []
    for chunk in text.split(","):
        chunk = chunk.strip().lower()
        if not chunk:
            continue
        try:
            width, height = (int(part) for part in chunk.split("x"))
        except ValueError:
            raise ValueError(f"Invalid ROI size '{chunk}', expected WIDTHxHEIGHT") from None
        sizes.append((width, height))
    if not sizes:
        raise ValueError(f"No ROI sizes found in '{text}'")
    return tuple(sizes)


def format_roi_sizes(sizes: Tuple[Size, ...]) -> str:
    return ",".join(f"{w}x{h}" for w, h in sizes)


@dataclass(frozen=True)
class PipelineConfig:
    work_dir: Path
    training_dir: Path
    testing_dir: Path
    templates_dir: Optional[Path] = None
    roi_sizes: Optional[Tuple[Size, ...]] = None
    iou_threshold: float = 0.1
    training_iou_threshold: float = 0.0
    min_point_distance: float = 100.0
    angle_step: int = 5
    size_clusters: int = 5
    intensity_clusters: int = 6
    reject_out_of_bounds: bool = False
    seed: Optional[int] = None
    max_workers: Optional[int] = None

    def __post_init__(self) -> None:
        if self.min_point_distance < 0:
            raise ValueError(f"min_point_distance must be non-negative, got {self.min_point_distance}")
        if self.angle_step <= 0:
            raise ValueError(f"angle_step must be positive, got {self.angle_step}")
        if self.size_clusters <= 0 or self.intensity_clusters <= 0:
            raise ValueError("Cluster counts must be positive")
        for threshold in (self.iou_threshold, self.training_iou_threshold):
            if not 0.0 <= threshold <= 1.0:
                raise ValueError(f"IoU thresholds must be in [0, 1], got {threshold}")

    @property
    def average_templates_dir(self) -> Path:
        return self.templates_dir or (self.work_dir / "avg_airplanes")

    @property
    def steps_dir(self) -> Path:
        return self.work_dir / "steps_completed"

    def labeling(self, roi_sizes: Tuple[Size, ...], *, training: bool = False) -> LabelingConfig:
        threshold = self.training_iou_threshold if training else self.iou_threshold
        return LabelingConfig(roi_sizes=roi_sizes, iou_threshold=threshold)


def environment_defaults(dotenv_path: Optional[Path] = None) -> dict:
    """Defaults for the CLI read from the environment (and a `.env` file when present)."""

    load_dotenv(dotenv_path)
    roi_sizes = os.getenv("AIRCRAFT_ROI_SIZES")
    templates_dir = os.getenv("AIRCRAFT_TEMPLATES_DIR")
    work_dir = Path(os.getenv("AIRCRAFT_WORK_DIR", "outputs"))
    return {
        "work_dir": work_dir,
        "training_dir": Path(os.getenv("AIRCRAFT_TRAINING_DIR", "data/training")),
        "testing_dir": Path(os.getenv("AIRCRAFT_TESTING_DIR", "data/testing")),
        "templates_dir": Path(templates_dir) if templates_dir else None,
        "roi_sizes": parse_roi_sizes(roi_sizes) if roi_sizes else None,
        "iou_threshold": float(os.getenv("AIRCRAFT_IOU_THRESHOLD", "0.1")),
    }
