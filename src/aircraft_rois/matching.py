from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence

import cv2
import numpy as np

from .geometry import Point
from .imaging import list_images, load_grayscale, map_point_back, rotate_image

LOGGER = logging.getLogger(__name__)


def angle_range(start: int, end: int, step: int) -> List[int]:
    if step <= 0:
        raise ValueError(f"Angle step must be positive, got {step}")
    return list(range(start, end, step))


def load_average_templates(templates_dir: Path) -> List[np.ndarray]:
    """Load the eigenplane templates (grayscale PNGs) in name order."""

    paths = list_images(templates_dir, (".png",))
    if not paths:
        raise RuntimeError(f"No average templates found in {templates_dir}")
    return [load_grayscale(path) for path in paths]


def match_template_at_angle(image: np.ndarray, template: np.ndarray, angle: int) -> Optional[Point]:
    """
    Rotate `image` by `angle`, run normalised cross-correlation and return the centre of
    the best match in source-image coordinates. Returns None when the template does not
    fit inside the rotated image.
    """

    rotated, matrix = rotate_image(image, angle)
    tpl_h, tpl_w = template.shape[:2]
    if rotated.shape[0] < tpl_h or rotated.shape[1] < tpl_w:
        return None

    response = cv2.matchTemplate(rotated, template, cv2.TM_CCOEFF_NORMED)
    _, _, _, max_loc = cv2.minMaxLoc(response)
    center = (max_loc[0] + tpl_w // 2, max_loc[1] + tpl_h // 2)
    return map_point_back(center, matrix)


def match_templates(
    image: np.ndarray,
    templates: Sequence[np.ndarray],
    *,
    angle_step: int = 5,
    max_workers: Optional[int] = None,
) -> List[Point]:
    """
    Best-match point of every template at every rotation in [0, 360). One task per
    (template, angle) pair runs on a thread pool; results are collected in submission
    order, template-major.
    """

    angles = angle_range(0, 360, angle_step)
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [
            pool.submit(match_template_at_angle, image, template, angle)
            for template in templates
            for angle in angles
        ]
        points = [future.result() for future in futures]

    matched = [point for point in points if point is not None]
    if len(matched) < len(points):
        LOGGER.warning("%d template/angle pairs skipped (template larger than image)", len(points) - len(matched))
    return matched
