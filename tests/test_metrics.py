"""Tests for confusion counts, metric dispatch and ROC / precision-recall curves."""

from __future__ import annotations

import pytest

from aircraft_rois.labeling import FP, TP
from aircraft_rois.metrics import (
    ConfusionCounts,
    Metric,
    compute_metric,
    confusion_from_samples,
    precision_recall_curve,
    roc_auc,
    roc_curve,
    trapezoid_auc,
)

LABELS = [TP, TP, FP, FP]
SCORES = [0.9, 0.4, 0.6, 0.1]


def test_confusion_counts_use_inclusive_threshold() -> None:
    assert confusion_from_samples(LABELS, SCORES, 0.5) == ConfusionCounts(tp=1, fp=1, tn=1, fn=1)
    assert confusion_from_samples(LABELS, SCORES, 0.6) == ConfusionCounts(tp=1, fp=1, tn=1, fn=1)
    assert confusion_from_samples(LABELS, SCORES, 0.0) == ConfusionCounts(tp=2, fp=2, tn=0, fn=0)


@pytest.mark.parametrize("metric", [Metric.TPR, Metric.FPR, Metric.PRECISION, Metric.ACCURACY, Metric.F1])
def test_balanced_counts_give_one_half(metric: Metric) -> None:
    assert compute_metric(metric, LABELS, SCORES, threshold=0.5) == pytest.approx(0.5)


def test_metrics_without_denominator_are_zero() -> None:
    assert compute_metric(Metric.PRECISION, [TP], [0.1], threshold=0.5) == 0.0
    assert compute_metric(Metric.FPR, [TP], [0.9], threshold=0.5) == 0.0


def test_mismatched_lengths_are_rejected() -> None:
    with pytest.raises(ValueError):
        confusion_from_samples([TP], [0.1, 0.2], 0.5)


def test_perfect_ranking_has_unit_auc() -> None:
    labels = [FP, TP, TP]
    scores = [0.1, 0.9, 0.8]

    fpr, tpr = roc_curve(labels, scores)

    assert fpr == [0.0, 0.0, 0.0, 1.0]
    assert tpr == [0.0, 0.5, 1.0, 1.0]
    assert roc_auc(labels, scores) == pytest.approx(1.0)
    assert compute_metric(Metric.AUC, labels, scores) == pytest.approx(1.0)


def test_tied_scores_form_a_single_roc_point() -> None:
    fpr, tpr = roc_curve([TP, FP], [0.5, 0.5])

    assert fpr == [0.0, 1.0]
    assert tpr == [0.0, 1.0]


def test_precision_recall_curve() -> None:
    precision, recall = precision_recall_curve([TP, FP, TP], [0.9, 0.8, 0.7], total_positives=2)

    assert precision == pytest.approx([1.0, 0.5, 2 / 3])
    assert recall == pytest.approx([0.5, 0.5, 1.0])


def test_precision_recall_counts_missed_objects() -> None:
    _, recall = precision_recall_curve([TP, FP], [0.9, 0.1], total_positives=4)

    assert recall == pytest.approx([0.25, 0.25])


def test_trapezoid_auc() -> None:
    assert trapezoid_auc([0.0, 1.0], [1.0, 1.0]) == pytest.approx(1.0)
    assert trapezoid_auc([0.0, 0.5, 1.0], [0.0, 0.5, 1.0]) == pytest.approx(0.5)
    assert trapezoid_auc([0.3], [1.0]) == 0.0


def test_metric_from_name() -> None:
    assert Metric.from_name(" F1 ") is Metric.F1
    with pytest.raises(ValueError, match="available"):
        Metric.from_name("recall@k")
