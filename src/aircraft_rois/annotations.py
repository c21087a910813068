from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence

from .geometry import Rect, roi_fully_in_image

LOGGER = logging.getLogger(__name__)

IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png")


class FailureKind(enum.Enum):
    PARSE_ERROR = "parse_error"
    OUT_OF_BOUNDS = "out_of_bounds"


@dataclass(frozen=True)
class LineFailure:
    line_number: int
    line: str
    kind: FailureKind
    reason: str


@dataclass(frozen=True)
class YoloLineResult:
    """Outcome of parsing one annotation line: exactly one of `box` / `failure` is set."""

    box: Optional[Rect] = None
    failure: Optional[LineFailure] = None

    @property
    def ok(self) -> bool:
        return self.box is not None


@dataclass
class YoloParseReport:
    boxes: List[Rect] = field(default_factory=list)
    failures: List[LineFailure] = field(default_factory=list)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def yolo_to_rect(
    center_x: float,
    center_y: float,
    width: float,
    height: float,
    image_width: int,
    image_height: int,
) -> Rect:
    """Convert normalised YOLO coordinates into a pixel rectangle."""

    width_px = _round_half_up(width * image_width)
    height_px = _round_half_up(height * image_height)
    x = _round_half_up(center_x * image_width) - width_px // 2
    y = _round_half_up(center_y * image_height) - height_px // 2
    return Rect(x, y, width_px, height_px)


def parse_yolo_line(
    line: str,
    image_width: int,
    image_height: int,
    *,
    line_number: int = 0,
    reject_out_of_bounds: bool = False,
) -> YoloLineResult:
    """
    Parse `class_id center_x center_y width height`. Malformed lines and, when
    `reject_out_of_bounds` is set, boxes not fully inside the image are returned as
    failures instead of raising.
    """

    tokens = line.split()
    if len(tokens) != 5:
        return YoloLineResult(
            failure=LineFailure(
                line_number, line, FailureKind.PARSE_ERROR, f"expected 5 fields, got {len(tokens)}"
            )
        )

    try:
        int(float(tokens[0]))
        center_x, center_y, width, height = (float(token) for token in tokens[1:])
    except ValueError as exc:
        return YoloLineResult(
            failure=LineFailure(line_number, line, FailureKind.PARSE_ERROR, str(exc))
        )

    if not all(math.isfinite(v) for v in (center_x, center_y, width, height)):
        return YoloLineResult(
            failure=LineFailure(line_number, line, FailureKind.PARSE_ERROR, "non-finite coordinate")
        )

    rect = yolo_to_rect(center_x, center_y, width, height, image_width, image_height)
    if reject_out_of_bounds and not roi_fully_in_image(rect, image_width, image_height):
        return YoloLineResult(
            failure=LineFailure(
                line_number,
                line,
                FailureKind.OUT_OF_BOUNDS,
                f"{rect} exceeds image {image_width}x{image_height}",
            )
        )
    return YoloLineResult(box=rect)


def parse_yolo_lines(
    lines: Iterable[str],
    image_width: int,
    image_height: int,
    *,
    reject_out_of_bounds: bool = False,
) -> YoloParseReport:
    report = YoloParseReport()
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        result = parse_yolo_line(
            line.strip(),
            image_width,
            image_height,
            line_number=line_number,
            reject_out_of_bounds=reject_out_of_bounds,
        )
        if result.ok:
            report.boxes.append(result.box)  # type: ignore[arg-type]
        else:
            report.failures.append(result.failure)  # type: ignore[arg-type]
    return report


def parse_yolo_file(
    path: Path,
    image_width: int,
    image_height: int,
    *,
    reject_out_of_bounds: bool = False,
) -> List[Rect]:
    """Read every box of a YOLO `.txt` file. Bad lines are logged and skipped."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Annotation file '{path}' does not exist")
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Invalid image dimensions {image_width}x{image_height}")

    with open(path, "r", encoding="utf-8") as handle:
        report = parse_yolo_lines(
            handle, image_width, image_height, reject_out_of_bounds=reject_out_of_bounds
        )

    for failure in report.failures:
        LOGGER.warning(
            "%s:%d skipped (%s): %s", path.name, failure.line_number, failure.kind.value, failure.reason
        )
    if report.failures:
        LOGGER.warning("%d of %d annotation lines rejected in %s",
                       len(report.failures), len(report.failures) + len(report.boxes), path)
    return report.boxes


@dataclass(frozen=True)
class ImageRecord:
    """An image of the dataset paired with its (optional) YOLO annotation file."""

    image_id: str
    image_path: Path
    annotation_path: Optional[Path]


class DatasetIndex:
    """Images of a directory matched to the `.txt` annotation sharing their basename."""

    def __init__(self, dataset_dir: Path, *, suffixes: Sequence[str] = IMAGE_SUFFIXES):
        self.root = Path(dataset_dir).expanduser().resolve()
        if not self.root.exists():
            raise FileNotFoundError(f"Dataset directory '{self.root}' does not exist")
        self.suffixes = tuple(s.lower() for s in suffixes)
        self.records = self._build_records()

    def _build_records(self) -> List[ImageRecord]:
        records: List[ImageRecord] = []
        for image_path in sorted(self.root.iterdir()):
            if image_path.suffix.lower() not in self.suffixes:
                continue
            ann_path = image_path.with_suffix(".txt")
            if not ann_path.exists():
                LOGGER.warning("No annotation found for '%s'", image_path.name)
                ann_path = None
            records.append(ImageRecord(image_path.stem, image_path, ann_path))
        return records

    def get(self, image_id: str) -> ImageRecord:
        for record in self.records:
            if record.image_id == image_id:
                return record
        raise FileNotFoundError(f"Image '{image_id}' not found in {self.root}")

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[ImageRecord]:
        return iter(self.records)
