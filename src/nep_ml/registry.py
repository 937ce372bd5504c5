# src/nep_ml/registry.py
from __future__ import annotations
import threading
from typing import Any, Mapping, Sequence
import structlog

from nep_common.settings import Settings
from nep_ml.errors import NotTrained
from nep_ml.model import TrainedModel, predict, train_model
from nep_ml.schemas import InputRecord, ModelType, PredictionResult
from nep_ml.training_io import coerce_record

logger = structlog.get_logger(__name__)


class ModelStore:
    """
    Holds the model currently in service. Training builds a complete new
    TrainedModel off to the side and swaps the reference in one step, so
    readers never observe a half-trained state and a failed run leaves the
    previous model in place.
    """

    def __init__(self, settings: Settings | None = None):
        self._lock = threading.Lock()
        self._model: TrainedModel | None = None
        self.settings = settings

    @property
    def is_trained(self) -> bool:
        return self._model is not None

    def current(self) -> TrainedModel:
        model = self._model
        if model is None:
            raise NotTrained("no model has been trained yet")
        return model

    def publish(self, model: TrainedModel) -> None:
        with self._lock:
            previous = self._model
            self._model = model
        logger.info(
            "model_published",
            model_type=model.model_type.value,
            data_hash=model.summary.data_hash,
            replaced=previous is not None,
        )

    def clear(self) -> None:
        with self._lock:
            self._model = None

    def train(
        self,
        inputs: Sequence[InputRecord | Mapping[str, Any]],
        outputs: Sequence[str],
        model_type: ModelType | str = ModelType.RANDOM_FOREST,
    ) -> TrainedModel:
        model = train_model(inputs, outputs, model_type=model_type, settings=self.settings)
        self.publish(model)
        return model

    def predict(self, record: InputRecord | Mapping[str, Any]) -> PredictionResult:
        year = self.settings.preferred_year if self.settings else 2023
        # malformed records are rejected whether or not a model is in service
        if not isinstance(record, InputRecord):
            record = coerce_record(record, preferred_year=year)
        return predict(self.current(), record, preferred_year=year)


_store: ModelStore | None = None
_store_lock = threading.Lock()


def get_model_store() -> ModelStore:
    global _store
    with _store_lock:
        if _store is None:
            _store = ModelStore()
        return _store
