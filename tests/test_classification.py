"""Tests for point partitioning, box association and minimum-distance filtering."""

from __future__ import annotations

import pytest

from aircraft_rois.classification import associate_points_with_boxes, classify_points
from aircraft_rois.filtering import filter_by_min_distance
from aircraft_rois.geometry import Rect, any_box_contains


def test_classify_partitions_points_in_order() -> None:
    boxes = [Rect(0, 0, 10, 10), Rect(50, 50, 20, 20)]
    points = [(5, 5), (30, 30), (55, 60), (10, 10), (0, 0)]

    inside, outside = classify_points(points, boxes)

    assert inside == [(5, 5), (55, 60), (0, 0)]
    assert outside == [(30, 30), (10, 10)]
    assert len(inside) + len(outside) == len(points)
    assert all(any_box_contains(p, boxes) for p in inside)
    assert not any(any_box_contains(p, boxes) for p in outside)


def test_classify_without_boxes() -> None:
    inside, outside = classify_points([(1, 1), (2, 2)], [])

    assert inside == []
    assert outside == [(1, 1), (2, 2)]


def test_associate_first_box_wins() -> None:
    boxes = [Rect(0, 0, 100, 100), Rect(50, 50, 100, 100), Rect(300, 300, 10, 10)]
    points = [(75, 75), (120, 120), (10, 10)]

    groups = associate_points_with_boxes(boxes, points)

    assert groups == {0: [(75, 75), (10, 10)], 1: [(120, 120)], 2: []}


def test_associate_without_points_keeps_every_box() -> None:
    assert associate_points_with_boxes([Rect(0, 0, 5, 5), Rect(9, 9, 5, 5)], []) == {0: [], 1: []}


def test_filter_by_min_distance_is_greedy_on_sorted_points() -> None:
    points = [(10, 0), (0, 0), (3, 4), (100, 100)]

    assert filter_by_min_distance(points, 5) == [(0, 0), (3, 4), (10, 0), (100, 100)]
    assert filter_by_min_distance(points, 6) == [(0, 0), (10, 0), (100, 100)]


def test_filter_by_min_distance_rejects_negative_distance() -> None:
    with pytest.raises(ValueError):
        filter_by_min_distance([(0, 0)], -1)


def test_filter_by_min_distance_empty() -> None:
    assert filter_by_min_distance([], 100) == []
