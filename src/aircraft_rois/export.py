from __future__ import annotations

import csv
from pathlib import Path
from typing import List, Sequence, Tuple

from .geometry import Rect
from .labeling import LABELS, LabelledRoi


def save_roi_labels(labelled: Sequence[LabelledRoi], output_path: Path) -> Path:
    """Write `x,y,width,height,label` rows (no header)."""

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, lineterminator="\n")
        for entry in labelled:
            roi = entry.roi
            writer.writerow([roi.x, roi.y, roi.width, roi.height, entry.label])
    return output_path


def load_roi_labels(path: Path) -> List[LabelledRoi]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"ROI label file '{path}' does not exist")

    labelled: List[LabelledRoi] = []
    with open(path, "r", encoding="utf-8", newline="") as handle:
        for row_number, row in enumerate(csv.reader(handle), start=1):
            if not row:
                continue
            if len(row) != 5:
                raise ValueError(f"{path}:{row_number}: expected 5 columns, got {len(row)}")
            x, y, width, height = (int(value) for value in row[:4])
            label = row[4].strip()
            if label not in LABELS:
                raise ValueError(f"{path}:{row_number}: unknown label '{label}'")
            labelled.append(LabelledRoi(Rect(x, y, width, height), label))
    return labelled


def load_scored_labels(path: Path) -> List[Tuple[str, float]]:
    """Read the `label,score` rows produced by the external classifier."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scores file '{path}' does not exist")

    rows: List[Tuple[str, float]] = []
    with open(path, "r", encoding="utf-8", newline="") as handle:
        for row_number, row in enumerate(csv.reader(handle), start=1):
            if not row:
                continue
            if len(row) != 2:
                raise ValueError(f"{path}:{row_number}: expected 'label,score', got {row}")
            label = row[0].strip()
            if label not in LABELS:
                raise ValueError(f"{path}:{row_number}: unknown label '{label}'")
            rows.append((label, float(row[1])))
    return rows


def write_text(output_path: Path, text: str) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(text, encoding="utf-8")
    return output_path
