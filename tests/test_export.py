"""Tests for the ROI label, score and HOG feature CSV files."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from aircraft_rois.export import load_roi_labels, load_scored_labels, save_roi_labels
from aircraft_rois.features import (
    HOG_WINDOW,
    build_hog_descriptor,
    extract_hog_features,
    write_hog_features_csv,
)
from aircraft_rois.geometry import Rect
from aircraft_rois.labeling import FP, TP, LabelledRoi


def test_roi_labels_file_layout(tmp_path: Path) -> None:
    labelled = [LabelledRoi(Rect(90, 90, 60, 60), TP), LabelledRoi(Rect(5, 180, 40, 40), FP)]

    path = save_roi_labels(labelled, tmp_path / "out" / "roi_label_pairs.csv")

    assert path.read_text(encoding="utf-8") == "90,90,60,60,TP\n5,180,40,40,FP\n"
    assert load_roi_labels(path) == labelled


def test_roi_labels_reject_unknown_label(tmp_path: Path) -> None:
    path = tmp_path / "labels.csv"
    path.write_text("1,2,3,4,MAYBE\n", encoding="utf-8")

    with pytest.raises(ValueError, match="unknown label"):
        load_roi_labels(path)


def test_roi_labels_reject_short_rows(tmp_path: Path) -> None:
    path = tmp_path / "labels.csv"
    path.write_text("1,2,3,TP\n", encoding="utf-8")

    with pytest.raises(ValueError, match="5 columns"):
        load_roi_labels(path)


def test_load_scored_labels(tmp_path: Path) -> None:
    path = tmp_path / "scores.csv"
    path.write_text("TP,0.9\n\nFP,-1.25\n", encoding="utf-8")

    assert load_scored_labels(path) == [(TP, 0.9), (FP, -1.25)]


def test_load_scored_labels_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_scored_labels(tmp_path / "nope.csv")


def test_hog_csv_uses_six_decimals(tmp_path: Path) -> None:
    path = write_hog_features_csv([np.array([0.5, 1 / 3]), np.array([0.0, 2.0])], tmp_path / "features.csv")

    assert path.read_text(encoding="utf-8") == "0.500000,0.333333\n0.000000,2.000000\n"


def test_hog_descriptor_layout() -> None:
    hog = build_hog_descriptor()

    assert hog.getDescriptorSize() == 576


def test_hog_features_have_fixed_length() -> None:
    rng = np.random.default_rng(0)
    image = rng.integers(0, 256, size=(100, 100), dtype=np.uint8)

    features = extract_hog_features([Rect(10, 10, 30, 20), Rect(0, 0, *HOG_WINDOW)], image)

    assert len(features) == 2
    assert all(vector.shape == (576,) for vector in features)
    assert all(vector.dtype == np.float32 for vector in features)


def test_hog_features_reject_rois_outside_the_image() -> None:
    image = np.zeros((50, 50), dtype=np.uint8)

    with pytest.raises(ValueError):
        extract_hog_features([Rect(60, 60, 10, 10)], image)
