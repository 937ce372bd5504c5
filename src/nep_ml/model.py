# src/nep_ml/model.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence
import numpy as np
from numpy.typing import NDArray
import structlog

from nep_common.settings import Settings, load_settings
from nep_ml.backends import ClassifierBackend, make_backend
from nep_ml.errors import FeatureSchemaError, InvalidInput, NotTrained
from nep_ml.features import build_feature_frame, extract_features, get_feature_names
from nep_ml.hashers import training_data_hash
from nep_ml.metrics import classification_metrics, normalize_importance
from nep_ml.normalizer import NormalizationStats, Normalizer, fit_stats
from nep_ml.schemas import (
    CANONICAL_PARTIES,
    InputRecord,
    ModelMetrics,
    ModelType,
    Party,
    PredictionResult,
    UncertaintyRange,
    VoteShares,
)
from nep_ml.training_io import coerce_record

logger = structlog.get_logger(__name__)

# last-resort distribution when a probability vector carries no mass
DEFAULT_VOTE_SHARES: dict[str, float] = {"APC": 0.4, "PDP": 0.3, "LP": 0.2, "Other": 0.1}
SHARE_TOLERANCE = 0.01

TURNOUT_BASE = 0.3
TURNOUT_MIN, TURNOUT_MAX = 0.1, 0.8
UNCERTAINTY_HALF_WIDTH = 0.1


@dataclass(frozen=True)
class TrainingSummary:
    examples: int
    regions: int
    parties: tuple[str, ...]
    data_hash: str
    model_type: ModelType


@dataclass(frozen=True)
class TrainedModel:
    """
    Everything inference needs from one training run. Built once by
    train_model and never mutated, so it can be shared across threads.
    """
    backend: ClassifierBackend
    stats: NormalizationStats
    labels: tuple[str, ...]
    metrics: ModelMetrics
    summary: TrainingSummary
    feature_names: tuple[str, ...] = field(default_factory=lambda: tuple(get_feature_names()))
    trained_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def model_type(self) -> ModelType:
        return self.backend.model_type

    def class_probabilities(self, record: InputRecord) -> dict[str, float]:
        """Probability per trained label, in label order."""
        if tuple(get_feature_names()) != self.feature_names:
            raise FeatureSchemaError(
                f"model was trained on {len(self.feature_names)} features, extractor now emits {len(get_feature_names())}"
            )
        row = Normalizer(self.stats).transform_single(extract_features(record))
        proba = self.backend.predict_proba(row)
        return {lab: float(p) for lab, p in zip(self.labels, proba)}


def encode_labels(outputs: Sequence[str]) -> tuple[tuple[str, ...], NDArray[np.int64]]:
    """Class ids follow first-occurrence order of the labels, not sorted order."""
    labels = tuple(dict.fromkeys(outputs))
    index = {lab: i for i, lab in enumerate(labels)}
    return labels, np.asarray([index[o] for o in outputs], dtype=np.int64)


def _parse_model_type(model_type: ModelType | str) -> ModelType:
    try:
        return ModelType(model_type)
    except ValueError:
        raise InvalidInput(
            f"unknown model type {model_type!r}; expected one of {[m.value for m in ModelType]}"
        ) from None


def _as_record(raw: InputRecord | Mapping[str, Any], preferred_year: int, index: int | None = None) -> InputRecord:
    if isinstance(raw, InputRecord):
        return raw
    return coerce_record(raw, preferred_year=preferred_year, index=index)


def train_model(
    inputs: Sequence[InputRecord | Mapping[str, Any]],
    outputs: Sequence[str],
    model_type: ModelType | str = ModelType.RANDOM_FOREST,
    settings: Settings | None = None,
) -> TrainedModel:
    """
    Fit normalization stats and a backend on the batch and score it in-sample.
    All validation happens before any fitting.
    """
    settings = settings or load_settings()
    mtype = _parse_model_type(model_type)

    if not inputs or not outputs:
        raise InvalidInput("training needs at least one input and one output")
    if len(inputs) != len(outputs):
        raise InvalidInput(f"{len(inputs)} inputs but {len(outputs)} outputs")
    for i, o in enumerate(outputs):
        if not isinstance(o, str) or not o.strip():
            raise InvalidInput(f"output {i} must be a non-empty party label")

    records = [_as_record(r, settings.preferred_year, i) for i, r in enumerate(inputs)]
    logger.info("training_started", examples=len(records), model_type=mtype.value)

    frame = build_feature_frame(records)
    X_raw = frame.to_numpy(dtype="float64")
    labels, y = encode_labels(outputs)

    stats = fit_stats(X_raw)
    X = Normalizer(stats).transform(X_raw)

    backend = make_backend(mtype, settings).fit(X, y, n_classes=len(labels))

    predicted = backend.predict_classes(X)
    importance = normalize_importance(backend.feature_importances(X, y), list(frame.columns))
    metrics = classification_metrics(y, predicted, labels, importance)

    summary = TrainingSummary(
        examples=len(records),
        regions=len({r.region for r in records}),
        parties=labels,
        data_hash=training_data_hash(frame, outputs),
        model_type=mtype,
    )
    logger.info(
        "training_completed",
        model_type=mtype.value,
        accuracy=round(metrics.accuracy, 4),
        classes=len(labels),
        data_hash=summary.data_hash,
    )
    return TrainedModel(
        backend=backend,
        stats=stats,
        labels=labels,
        metrics=metrics,
        summary=summary,
        feature_names=tuple(frame.columns),
    )


# -----------------------
# Inference
# -----------------------
def vote_shares_from_proba(labels: Sequence[str], proba: Sequence[float]) -> dict[str, float]:
    """Fold per-label probabilities onto the four canonical keys; unknown labels count as Other."""
    shares = {p: 0.0 for p in CANONICAL_PARTIES}
    for lab, p in zip(labels, proba):
        shares[Party.canonical(lab).value] += max(0.0, float(p))
    return shares


def repair_vote_shares(shares: Mapping[str, float]) -> dict[str, float]:
    """Renormalize when the mass drifts past tolerance; fall back to the default split if empty."""
    out = {p: max(0.0, float(shares.get(p, 0.0))) for p in CANONICAL_PARTIES}
    total = sum(out.values())
    if abs(total - 1.0) <= SHARE_TOLERANCE:
        return out
    if total > 0.0:
        logger.debug("vote_shares_renormalized", total=total)
        return {p: v / total for p, v in out.items()}
    logger.warning("vote_shares_defaulted")
    return dict(DEFAULT_VOTE_SHARES)


def predict_turnout(record: InputRecord) -> float:
    t = (
        TURNOUT_BASE
        + 0.2 * record.demographic.education_index
        - 0.1 * record.security.violence_index
        - 0.002 * record.economic.unemployment_rate
    )
    return float(min(TURNOUT_MAX, max(TURNOUT_MIN, t)))


def uncertainty_range(confidence: float) -> UncertaintyRange:
    return UncertaintyRange(
        min=max(0.0, confidence - UNCERTAINTY_HALF_WIDTH),
        max=min(1.0, confidence + UNCERTAINTY_HALF_WIDTH),
    )


def predict(
    model: TrainedModel | None,
    record: InputRecord | Mapping[str, Any],
    preferred_year: int = 2023,
) -> PredictionResult:
    """
    Score one record. Winner and confidence come from the four-key folded
    distribution, so confidence is the folded canonical share: labels outside
    the canonical set add up under Other before the argmax is taken.
    """
    if model is None:
        raise NotTrained("model must be trained before making predictions")
    rec = _as_record(record, preferred_year)

    probs = model.class_probabilities(rec)
    shares = repair_vote_shares(vote_shares_from_proba(list(probs), list(probs.values())))

    # first canonical key wins ties
    winner = max(CANONICAL_PARTIES, key=lambda p: shares[p])
    confidence = float(min(1.0, shares[winner]))

    result = PredictionResult(
        predicted_winner=Party(winner),
        confidence=confidence,
        vote_shares=VoteShares(**shares),
        turnout_prediction=predict_turnout(rec),
        uncertainty_range=uncertainty_range(confidence),
    )
    logger.info("prediction_made", region=rec.region, winner=winner, confidence=round(confidence, 4))
    return result
