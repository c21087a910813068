from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import List, Sequence, Tuple

import cv2
import numpy as np
from PIL import Image

from .geometry import Point

LOGGER = logging.getLogger(__name__)


def _open(image_path: Path) -> Image.Image:
    image_path = Path(image_path)
    if not image_path.exists():
        raise FileNotFoundError(f"Image '{image_path}' does not exist")
    return Image.open(image_path)


def load_grayscale(image_path: Path) -> np.ndarray:
    return np.asarray(_open(image_path).convert("L"), dtype=np.uint8)


def load_color(image_path: Path) -> np.ndarray:
    return np.asarray(_open(image_path).convert("RGB"), dtype=np.uint8)


def save_image(image: np.ndarray, output_path: Path) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(image).save(output_path)
    return output_path


def list_images(directory: Path, suffixes: Sequence[str] = (".png",)) -> List[Path]:
    directory = Path(directory)
    if not directory.exists():
        raise FileNotFoundError(f"Directory '{directory}' does not exist")
    wanted = {s.lower() for s in suffixes}
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in wanted)


def list_directories(parent: Path) -> List[Path]:
    parent = Path(parent)
    if not parent.exists():
        raise FileNotFoundError(f"Directory '{parent}' does not exist")
    return sorted(p for p in parent.iterdir() if p.is_dir())


def create_directory(parent: Path, name: str) -> Path:
    path = Path(parent) / name
    path.mkdir(parents=True, exist_ok=True)
    return path


def rotate_image(image: np.ndarray, angle: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Rotate `image` by `angle` degrees (counter-clockwise) about its centre on a canvas
    large enough to hold the whole result. Returns the rotated image and the 2x3 affine
    matrix mapping source pixels into it.
    """

    height, width = image.shape[:2]
    center = (width // 2, height // 2)
    matrix = cv2.getRotationMatrix2D(center, angle, 1.0)

    radians = math.radians(angle)
    cos_a, sin_a = abs(math.cos(radians)), abs(math.sin(radians))
    bound_w = width * cos_a + height * sin_a
    bound_h = width * sin_a + height * cos_a

    matrix[0, 2] += bound_w / 2.0 - center[0]
    matrix[1, 2] += bound_h / 2.0 - center[1]

    rotated = cv2.warpAffine(image, matrix, (int(round(bound_w)), int(round(bound_h))))
    return rotated, matrix


def map_point_back(point: Point, matrix: np.ndarray) -> Point:
    """Map a point of the rotated frame back into the source frame."""

    inverse = cv2.invertAffineTransform(matrix)
    x, y = point
    src_x = inverse[0, 0] * x + inverse[0, 1] * y + inverse[0, 2]
    src_y = inverse[1, 0] * x + inverse[1, 1] * y + inverse[1, 2]
    return (int(round(src_x)), int(round(src_y)))
