# src/nep_ml/metrics.py
from __future__ import annotations
from typing import Callable, Sequence
import numpy as np
from numpy.typing import NDArray
from sklearn.metrics import accuracy_score, confusion_matrix, precision_recall_fscore_support

from nep_ml.errors import InvalidInput
from nep_ml.schemas import ModelMetrics


def normalize_importance(values: Sequence[float], names: Sequence[str]) -> dict[str, float]:
    """
    Clip to non-negative and scale to sum 1. A measure that carries no signal
    (all zero, e.g. a forest that never split) becomes a uniform ranking.
    """
    if len(values) != len(names):
        raise InvalidInput(f"{len(values)} importances for {len(names)} features")
    imp = np.nan_to_num(np.asarray(values, dtype=np.float64), nan=0.0)
    imp = np.clip(imp, 0.0, None)
    total = float(imp.sum())
    if total <= 0.0:
        imp = np.full(len(names), 1.0 / len(names))
    else:
        imp = imp / total
    return {n: float(v) for n, v in zip(names, imp)}


def permutation_importance(
    predict_fn: Callable[[NDArray[np.float64]], NDArray[np.int64]],
    X: NDArray[np.float64],
    y: NDArray[np.int64],
    n_repeats: int = 5,
    seed: int = 0,
) -> NDArray[np.float64]:
    """Mean accuracy drop when each column is shuffled, one column at a time."""
    rng = np.random.default_rng(seed)
    baseline = float(accuracy_score(y, predict_fn(X)))
    drops = np.zeros(X.shape[1], dtype=np.float64)
    for j in range(X.shape[1]):
        scores = []
        for _ in range(n_repeats):
            Xp = X.copy()
            Xp[:, j] = rng.permutation(Xp[:, j])
            scores.append(float(accuracy_score(y, predict_fn(Xp))))
        drops[j] = baseline - float(np.mean(scores))
    return drops


def classification_metrics(
    actual: Sequence[int],
    predicted: Sequence[int],
    labels: Sequence[str],
    feature_importance: dict[str, float],
) -> ModelMetrics:
    """
    actual/predicted are class indices into `labels`.
    Rows of the confusion matrix are actual classes, columns predicted.
    """
    if len(actual) != len(predicted):
        raise InvalidInput(f"{len(actual)} actual labels vs {len(predicted)} predictions")
    if len(actual) == 0:
        raise InvalidInput("cannot score an empty prediction set")

    idx = list(range(len(labels)))
    y_true = np.asarray(actual, dtype=np.int64)
    y_pred = np.asarray(predicted, dtype=np.int64)

    prec, rec, f1, _ = precision_recall_fscore_support(
        y_true, y_pred, labels=idx, average=None, zero_division=0
    )
    cm = confusion_matrix(y_true, y_pred, labels=idx)

    return ModelMetrics(
        accuracy=float(accuracy_score(y_true, y_pred)),
        precision={lab: float(p) for lab, p in zip(labels, prec)},
        recall={lab: float(r) for lab, r in zip(labels, rec)},
        f1_score={lab: float(f) for lab, f in zip(labels, f1)},
        confusion_matrix=cm.astype(int).tolist(),
        feature_importance=feature_importance,
    )
