"""Tests for ROI size parsing, environment defaults and pipeline configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from aircraft_rois.config import (
    DEFAULT_ROI_SIZES,
    PipelineConfig,
    environment_defaults,
    format_roi_sizes,
    parse_roi_sizes,
)

ENV_VARS = (
    "AIRCRAFT_WORK_DIR",
    "AIRCRAFT_TRAINING_DIR",
    "AIRCRAFT_TESTING_DIR",
    "AIRCRAFT_TEMPLATES_DIR",
    "AIRCRAFT_ROI_SIZES",
    "AIRCRAFT_IOU_THRESHOLD",
)


@pytest.fixture
def clean_env(monkeypatch):
    # set before deleting so that values loaded from a .env file are undone afterwards
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


def _config(tmp_path: Path, **kwargs) -> PipelineConfig:
    return PipelineConfig(work_dir=tmp_path, training_dir=tmp_path / "train", testing_dir=tmp_path / "test", **kwargs)


def test_parse_roi_sizes_keeps_order() -> None:
    assert parse_roi_sizes(" 60X80, 40x40 ,") == ((60, 80), (40, 40))
    assert format_roi_sizes(((60, 80), (40, 40))) == "60x80,40x40"


@pytest.mark.parametrize("text", ["", "40", "40x", "axb", "10x10x10"])
def test_parse_roi_sizes_rejects_garbage(text: str) -> None:
    with pytest.raises(ValueError):
        parse_roi_sizes(text)


def test_environment_defaults(clean_env, tmp_path: Path) -> None:
    defaults = environment_defaults(tmp_path / "missing.env")

    assert defaults["work_dir"] == Path("outputs")
    assert defaults["training_dir"] == Path("data/training")
    assert defaults["templates_dir"] is None
    assert defaults["roi_sizes"] is None
    assert defaults["iou_threshold"] == pytest.approx(0.1)


def test_environment_overrides(clean_env, tmp_path: Path) -> None:
    clean_env.setenv("AIRCRAFT_ROI_SIZES", "20x20,30x40")
    clean_env.setenv("AIRCRAFT_IOU_THRESHOLD", "0.25")
    clean_env.setenv("AIRCRAFT_TEMPLATES_DIR", str(tmp_path / "tpl"))

    defaults = environment_defaults(tmp_path / "missing.env")

    assert defaults["roi_sizes"] == ((20, 20), (30, 40))
    assert defaults["iou_threshold"] == pytest.approx(0.25)
    assert defaults["templates_dir"] == tmp_path / "tpl"


def test_dotenv_file_is_read(clean_env, tmp_path: Path) -> None:
    dotenv = tmp_path / ".env"
    dotenv.write_text("AIRCRAFT_WORK_DIR=runs/today\n", encoding="utf-8")

    defaults = environment_defaults(dotenv)

    assert defaults["work_dir"] == Path("runs/today")


def test_pipeline_config_paths(tmp_path: Path) -> None:
    config = _config(tmp_path)

    assert config.average_templates_dir == tmp_path / "avg_airplanes"
    assert config.steps_dir == tmp_path / "steps_completed"
    assert _config(tmp_path, templates_dir=tmp_path / "mine").average_templates_dir == tmp_path / "mine"


def test_pipeline_config_labeling_thresholds(tmp_path: Path) -> None:
    config = _config(tmp_path, iou_threshold=0.3)

    assert config.labeling(DEFAULT_ROI_SIZES).iou_threshold == pytest.approx(0.3)
    assert config.labeling(DEFAULT_ROI_SIZES, training=True).iou_threshold == 0.0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"iou_threshold": 1.1},
        {"training_iou_threshold": -0.5},
        {"angle_step": 0},
        {"min_point_distance": -1.0},
        {"size_clusters": 0},
    ],
)
def test_pipeline_config_validation(tmp_path: Path, kwargs) -> None:
    with pytest.raises(ValueError):
        _config(tmp_path, **kwargs)
