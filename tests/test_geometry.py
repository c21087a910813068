"""Tests for rectangles, IoU and ROI candidate generation."""

from __future__ import annotations

import pytest

from aircraft_rois.geometry import (
    Rect,
    any_box_contains,
    compute_iou,
    generate_candidate_rois,
    generate_rois_from_points,
    point_in_rect,
    roi_fully_in_image,
)


def test_point_in_rect_is_half_open() -> None:
    rect = Rect(0, 0, 10, 10)

    assert point_in_rect((0, 0), rect)
    assert point_in_rect((9, 9), rect)
    assert not point_in_rect((10, 5), rect)
    assert not point_in_rect((5, 10), rect)
    assert not point_in_rect((-1, 5), rect)


def test_any_box_contains() -> None:
    boxes = [Rect(0, 0, 10, 10), Rect(50, 50, 10, 10)]

    assert any_box_contains((55, 55), boxes)
    assert not any_box_contains((30, 30), boxes)
    assert not any_box_contains((1, 1), [])


def test_iou_properties() -> None:
    a = Rect(0, 0, 10, 10)
    b = Rect(5, 5, 10, 10)

    assert compute_iou(a, a) == 1.0
    assert compute_iou(a, b) == pytest.approx(compute_iou(b, a))
    assert compute_iou(a, b) == pytest.approx(25 / 175)
    assert compute_iou(a, Rect(20, 20, 5, 5)) == 0.0
    # touching edges do not overlap
    assert compute_iou(a, Rect(10, 0, 10, 10)) == 0.0


def test_iou_of_roi_covering_box() -> None:
    roi = Rect(90, 90, 60, 60)
    box = Rect(100, 100, 50, 50)

    assert compute_iou(roi, box) == pytest.approx(2500 / 3600)


def test_iou_of_degenerate_rects_is_zero() -> None:
    assert compute_iou(Rect(0, 0, 0, 0), Rect(0, 0, 0, 0)) == 0.0


def test_roi_fully_in_image() -> None:
    assert roi_fully_in_image(Rect(0, 0, 100, 100), 100, 100)
    assert not roi_fully_in_image(Rect(1, 0, 100, 100), 100, 100)
    assert not roi_fully_in_image(Rect(-1, 0, 10, 10), 100, 100)
    assert not roi_fully_in_image(Rect(0, 95, 10, 10), 100, 100)
    assert not roi_fully_in_image(Rect(0, 0, 0, 5), 100, 100)


def test_candidate_is_centred_with_floor_division() -> None:
    assert generate_candidate_rois((120, 120), [(60, 60)], 1000, 1000) == [Rect(90, 90, 60, 60)]
    assert generate_candidate_rois((10, 10), [(5, 5)], 100, 100) == [Rect(8, 8, 5, 5)]


def test_candidates_follow_size_order_and_skip_out_of_bounds() -> None:
    sizes = [(30, 30), (50, 50), (40, 40)]

    rois = generate_candidate_rois((20, 20), sizes, 100, 100)

    assert rois == [Rect(5, 5, 30, 30), Rect(0, 0, 40, 40)]
    assert all(roi_fully_in_image(roi, 100, 100) for roi in rois)
    assert generate_candidate_rois((20, 20), sizes, 100, 100) == rois


def test_candidates_near_the_edge() -> None:
    sizes = [(20, 20), (40, 40), (60, 60), (80, 80), (100, 100)]

    rois = generate_candidate_rois((25, 200), sizes, 500, 500)

    assert rois == [Rect(15, 190, 20, 20), Rect(5, 180, 40, 40)]


def test_rois_from_points_are_point_major() -> None:
    rois = generate_rois_from_points([(50, 50), (60, 60)], [(10, 10), (20, 20)], 200, 200)

    assert rois == [
        Rect(45, 45, 10, 10),
        Rect(40, 40, 20, 20),
        Rect(55, 55, 10, 10),
        Rect(50, 50, 20, 20),
    ]
