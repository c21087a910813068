from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import cv2
import numpy as np

from .geometry import Rect

HOG_WINDOW = (64, 64)


def build_hog_descriptor() -> cv2.HOGDescriptor:
    # window, block, block stride, cell, bins
    return cv2.HOGDescriptor(HOG_WINDOW, (8, 8), (8, 8), (8, 8), 9)


def extract_hog_features(rois: Sequence[Rect], image: np.ndarray) -> List[np.ndarray]:
    """HOG descriptor of every ROI, each crop resized to the 64x64 detection window."""

    hog = build_hog_descriptor()
    features: List[np.ndarray] = []
    for roi in rois:
        crop = image[roi.y : roi.y_max, roi.x : roi.x_max]
        if crop.size == 0:
            raise ValueError(f"ROI {roi} lies outside the image")
        resized = cv2.resize(crop, HOG_WINDOW, interpolation=cv2.INTER_AREA)
        features.append(hog.compute(resized).ravel().astype(np.float32))
    return features


def write_hog_features_csv(features: Sequence[np.ndarray], output_path: Path) -> Path:
    """One comma-separated row of fixed 6-decimal floats per ROI, no header."""

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as handle:
        for vector in features:
            handle.write(",".join(f"{value:.6f}" for value in np.asarray(vector).ravel()))
            handle.write("\n")
    return output_path
