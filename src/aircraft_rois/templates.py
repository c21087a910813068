"""Template clustering (k-means by size, then by intensity) and eigenplane averaging."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence, Tuple

import cv2
import numpy as np

from .geometry import Size
from .imaging import save_image

LOGGER = logging.getLogger(__name__)


def _kmeans(samples: np.ndarray, k: int, *, epsilon: float, attempts: int) -> np.ndarray:
    if len(samples) == 0:
        return np.zeros(0, dtype=np.int32)
    if k <= 0:
        raise ValueError(f"Number of clusters must be positive, got {k}")
    if k > len(samples):
        LOGGER.warning("Requested %d clusters for %d samples, clamping", k, len(samples))
        k = len(samples)

    criteria = (cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER, 10, epsilon)
    _, labels, _ = cv2.kmeans(samples, k, None, criteria, attempts, cv2.KMEANS_PP_CENTERS)
    return labels.ravel().astype(np.int32)


def kmeans_by_size(templates: Sequence[np.ndarray], k: int) -> np.ndarray:
    dims = np.array([[t.shape[1], t.shape[0]] for t in templates], dtype=np.float32).reshape(-1, 2)
    return _kmeans(dims, k, epsilon=1.0, attempts=50)


def kmeans_by_intensity(templates: Sequence[np.ndarray], k: int) -> np.ndarray:
    means = np.array([float(np.mean(t)) for t in templates], dtype=np.float32).reshape(-1, 1)
    return _kmeans(means, k, epsilon=0.1, attempts=100)


def average_dimensions(images: Sequence[np.ndarray]) -> Size:
    """Integer mean (width, height) of a set of images."""

    if not images:
        raise ValueError("Cannot average the dimensions of an empty image set")
    width = int(sum(img.shape[1] for img in images) / len(images))
    height = int(sum(img.shape[0] for img in images) / len(images))
    return width, height


def resize_to_same_dimensions(images: Sequence[np.ndarray], size: Size) -> List[np.ndarray]:
    return [cv2.resize(img, size, interpolation=cv2.INTER_CUBIC) for img in images]


def save_clusters(
    images: Sequence[np.ndarray],
    names: Sequence[str],
    labels: Sequence[int],
    cluster_dirs: Sequence[Path],
) -> None:
    for image, name, label in zip(images, names, labels):
        save_image(image, Path(cluster_dirs[int(label)]) / f"{name}.png")


def eigenplane(
    images: Sequence[np.ndarray],
    size: Size,
    *,
    retained_variance: float = 0.95,
) -> np.ndarray:
    """
    Average template of a cluster computed in PCA space: project every mean-centred
    image, average the projections, back-project and add the mean back. The result is
    min-max normalised to uint8 with shape (height, width).
    """

    if not images:
        raise ValueError("Cannot build an eigenplane from an empty cluster")
    width, height = size
    data = np.stack([img.astype(np.float64).reshape(-1) for img in images])
    if data.shape[1] != width * height:
        raise ValueError(f"Images do not match the requested size {width}x{height}")

    mean = data.mean(axis=0, keepdims=True)
    centered = data - mean
    if not np.any(centered):
        # identical crops: nothing to project, and min-max normalisation would flatten them to 0
        return mean.reshape(height, width).astype(np.uint8)

    _, eigenvectors = cv2.PCACompute(centered, mean=None, retainedVariance=retained_variance)
    projections = cv2.PCAProject(centered, np.zeros_like(mean), eigenvectors)
    average_projection = projections.mean(axis=0, keepdims=True)
    average = cv2.PCABackProject(average_projection, np.zeros_like(mean), eigenvectors) + mean

    normalised = cv2.normalize(average, None, 0, 255, cv2.NORM_MINMAX)
    return normalised.reshape(height, width).astype(np.uint8)


def cluster_sizes(cluster_images: Sequence[Sequence[np.ndarray]]) -> List[Tuple[int, int]]:
    """ROI sizes derived from the size clusters, one per non-empty cluster, in cluster order."""

    return [average_dimensions(images) for images in cluster_images if images]
