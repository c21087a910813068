from __future__ import annotations

from pathlib import Path
from typing import Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
from matplotlib import patches

from .geometry import Rect
from .labeling import FP, TP, LabelledRoi

LABEL_COLORS = {TP: "lime", FP: "red"}


def draw_labelled_rois(
    image: np.ndarray,
    labelled: Sequence[LabelledRoi],
    output_path: Path,
    *,
    ground_truth: Sequence[Rect] = (),
    title: str | None = None,
) -> Path:
    """Save `image` with TP ROIs in green, FP ROIs in red and ground truth dashed in yellow."""

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(10, 8))
    ax.imshow(image, cmap="gray" if image.ndim == 2 else None)
    ax.set_axis_off()
    if title:
        ax.set_title(title)

    for box in ground_truth:
        ax.add_patch(
            patches.Rectangle(
                (box.x, box.y),
                box.width,
                box.height,
                linewidth=1,
                linestyle="--",
                edgecolor="yellow",
                facecolor="none",
            )
        )

    # FPs first so TPs stay visible on top
    for entry in sorted(labelled, key=lambda e: e.label == TP):
        roi = entry.roi
        ax.add_patch(
            patches.Rectangle(
                (roi.x, roi.y),
                roi.width,
                roi.height,
                linewidth=2,
                edgecolor=LABEL_COLORS.get(entry.label, "red"),
                facecolor="none",
            )
        )

    fig.tight_layout()
    fig.savefig(output_path, bbox_inches="tight", dpi=160)
    plt.close(fig)
    return output_path


def plot_precision_recall(
    precision: Sequence[float],
    recall: Sequence[float],
    auc: float,
    output_path: Path,
) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(8, 6))
    ax.plot(recall, precision, drawstyle="steps-post")
    ax.fill_between(recall, precision, step="post", alpha=0.2, color="b")
    ax.set_xlabel("Recall")
    ax.set_ylabel("Precision")
    ax.set_title(f"Precision-Recall Curve (AUC = {auc:.2f})")

    fig.tight_layout()
    fig.savefig(output_path, dpi=160)
    plt.close(fig)
    return output_path
