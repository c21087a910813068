from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .labeling import TP


@dataclass(frozen=True)
class ConfusionCounts:
    tp: int
    fp: int
    tn: int
    fn: int


def confusion_from_samples(
    labels: Sequence[str],
    scores: Sequence[float],
    threshold: float,
) -> ConfusionCounts:
    """Samples scoring >= threshold are predicted positive; `labels` hold the truth (TP/FP)."""

    if len(labels) != len(scores):
        raise ValueError("labels and scores must have the same length")
    tp = fp = tn = fn = 0
    for label, score in zip(labels, scores):
        positive = label == TP
        predicted = score >= threshold
        if positive and predicted:
            tp += 1
        elif positive:
            fn += 1
        elif predicted:
            fp += 1
        else:
            tn += 1
    return ConfusionCounts(tp, fp, tn, fn)


def _ratio(num: float, den: float) -> float:
    return num / den if den else 0.0


def true_positive_rate(counts: ConfusionCounts) -> float:
    return _ratio(counts.tp, counts.tp + counts.fn)


def false_positive_rate(counts: ConfusionCounts) -> float:
    return _ratio(counts.fp, counts.fp + counts.tn)


def precision(counts: ConfusionCounts) -> float:
    return _ratio(counts.tp, counts.tp + counts.fp)


def accuracy(counts: ConfusionCounts) -> float:
    return _ratio(counts.tp + counts.tn, counts.tp + counts.fp + counts.tn + counts.fn)


def f1_score(counts: ConfusionCounts) -> float:
    p = precision(counts)
    r = true_positive_rate(counts)
    return _ratio(2 * p * r, p + r)


def trapezoid_auc(x: Sequence[float], y: Sequence[float]) -> float:
    if len(x) < 2:
        return 0.0
    xs = np.asarray(x, dtype=np.float64)
    ys = np.asarray(y, dtype=np.float64)
    return float(np.sum((xs[1:] - xs[:-1]) * (ys[1:] + ys[:-1]) / 2.0))


def roc_curve(labels: Sequence[str], scores: Sequence[float]) -> Tuple[List[float], List[float]]:
    """(FPR, TPR) points obtained by lowering the threshold through every distinct score."""

    if len(labels) != len(scores):
        raise ValueError("labels and scores must have the same length")
    positives = sum(1 for label in labels if label == TP)
    negatives = len(labels) - positives

    order = np.argsort(-np.asarray(scores, dtype=np.float64), kind="stable")
    sorted_scores = np.asarray(scores, dtype=np.float64)[order]
    fpr: List[float] = [0.0]
    tpr: List[float] = [0.0]
    tp = fp = 0
    for rank, idx in enumerate(order):
        if labels[idx] == TP:
            tp += 1
        else:
            fp += 1
        last_of_score = rank + 1 == len(order) or sorted_scores[rank + 1] != sorted_scores[rank]
        if last_of_score:
            fpr.append(_ratio(fp, negatives))
            tpr.append(_ratio(tp, positives))
    return fpr, tpr


def roc_auc(labels: Sequence[str], scores: Sequence[float]) -> float:
    fpr, tpr = roc_curve(labels, scores)
    return trapezoid_auc(fpr, tpr)


def precision_recall_curve(
    labels: Sequence[str],
    scores: Sequence[float],
    *,
    total_positives: Optional[int] = None,
) -> Tuple[List[float], List[float]]:
    """
    Cumulative precision/recall walking the detections by descending score.
    `total_positives` is the number of ground-truth objects; it defaults to the number
    of TP labels among the detections.
    """

    if len(labels) != len(scores):
        raise ValueError("labels and scores must have the same length")
    if total_positives is None:
        total_positives = sum(1 for label in labels if label == TP)

    order = np.argsort(-np.asarray(scores, dtype=np.float64), kind="stable")
    is_tp = np.array([labels[i] == TP for i in order], dtype=np.float64)
    tp_cum = np.cumsum(is_tp)
    fp_cum = np.cumsum(1.0 - is_tp)

    precision_curve = (tp_cum / np.maximum(tp_cum + fp_cum, 1e-8)).tolist()
    recall_curve = (tp_cum / total_positives).tolist() if total_positives else [0.0] * len(order)
    return precision_curve, recall_curve


class Metric(enum.Enum):
    TPR = "tpr"
    FPR = "fpr"
    PRECISION = "precision"
    ACCURACY = "accuracy"
    F1 = "f1"
    AUC = "auc"

    @classmethod
    def from_name(cls, name: str) -> "Metric":
        try:
            return cls(name.strip().lower())
        except ValueError:
            available = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown metric '{name}' (available: {available})") from None


_COUNT_METRICS: Dict[Metric, Callable[[ConfusionCounts], float]] = {
    Metric.TPR: true_positive_rate,
    Metric.FPR: false_positive_rate,
    Metric.PRECISION: precision,
    Metric.ACCURACY: accuracy,
    Metric.F1: f1_score,
}


def compute_metric(
    metric: Metric,
    labels: Sequence[str],
    scores: Sequence[float],
    *,
    threshold: float = 0.5,
) -> float:
    if metric is Metric.AUC:
        return roc_auc(labels, scores)
    counts = confusion_from_samples(labels, scores, threshold)
    return _COUNT_METRICS[metric](counts)
