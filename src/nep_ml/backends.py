# src/nep_ml/backends.py
from __future__ import annotations
from abc import ABC, abstractmethod
import numpy as np
from numpy.typing import NDArray
import structlog
import torch
import torch.nn as nn
import torch.optim as optim
from torch.utils.data import DataLoader, TensorDataset
from sklearn.ensemble import RandomForestClassifier

from nep_common.settings import Settings
from nep_ml.errors import InvalidInput, NotTrained
from nep_ml.metrics import permutation_importance
from nep_ml.schemas import ModelType

logger = structlog.get_logger(__name__)


class ClassifierBackend(ABC):
    """
    Trainable classifier over normalized feature rows and integer class ids.
    Class ids are 0..n_classes-1 in the caller's label order.
    """

    model_type: ModelType
    n_classes: int = 0

    @abstractmethod
    def fit(self, X: NDArray[np.float64], y: NDArray[np.int64], n_classes: int) -> "ClassifierBackend": ...

    @abstractmethod
    def predict_proba_batch(self, X: NDArray[np.float64]) -> NDArray[np.float64]: ...

    @abstractmethod
    def feature_importances(self, X: NDArray[np.float64], y: NDArray[np.int64]) -> NDArray[np.float64]: ...

    @property
    @abstractmethod
    def is_trained(self) -> bool: ...

    def _require_trained(self) -> None:
        if not self.is_trained:
            raise NotTrained(f"{self.model_type.value} backend has not been trained")

    def predict_proba(self, row: NDArray[np.float64]) -> NDArray[np.float64]:
        return self.predict_proba_batch(np.atleast_2d(row))[0]

    def predict_classes(self, X: NDArray[np.float64]) -> NDArray[np.int64]:
        return np.argmax(self.predict_proba_batch(X), axis=1).astype(np.int64)

    def predict_class(self, row: NDArray[np.float64]) -> int:
        return int(np.argmax(self.predict_proba(row)))


def _check_xy(X: NDArray[np.float64], y: NDArray[np.int64], n_classes: int) -> None:
    if X.ndim != 2 or X.shape[0] == 0:
        raise InvalidInput("training matrix must be a non-empty 2-D array")
    if y.shape != (X.shape[0],):
        raise InvalidInput(f"{X.shape[0]} rows but {y.shape[0]} labels")
    if n_classes < 1 or y.min() < 0 or y.max() >= n_classes:
        raise InvalidInput(f"labels must be class ids in [0, {n_classes})")


def _renormalize(P: NDArray[np.float64]) -> NDArray[np.float64]:
    P = np.clip(P, 0.0, None)
    sums = P.sum(axis=1, keepdims=True)
    sums[sums == 0.0] = 1.0
    return P / sums


# -----------------------
# Random forest
# -----------------------
class ForestBackend(ClassifierBackend):
    model_type = ModelType.RANDOM_FOREST

    def __init__(
        self,
        n_estimators: int = 100,
        max_depth: int | None = 10,
        min_samples_leaf: int = 2,
        seed: int = 42,
    ):
        self.n_estimators = n_estimators
        self.max_depth = max_depth
        self.min_samples_leaf = min_samples_leaf
        self.seed = seed
        self._model: RandomForestClassifier | None = None

    @property
    def is_trained(self) -> bool:
        return self._model is not None

    def fit(self, X, y, n_classes):
        _check_xy(X, y, n_classes)
        model = RandomForestClassifier(
            n_estimators=self.n_estimators,
            max_depth=self.max_depth,
            min_samples_leaf=self.min_samples_leaf,
            random_state=self.seed,
            n_jobs=1,
        )
        model.fit(X, y)
        self._model = model
        self.n_classes = n_classes
        logger.debug("forest_fitted", trees=self.n_estimators, rows=X.shape[0], classes=n_classes)
        return self

    def _fitted(self) -> RandomForestClassifier:
        if self._model is None:
            raise NotTrained(f"{self.model_type.value} backend has not been trained")
        return self._model

    def predict_proba_batch(self, X):
        model = self._fitted()
        raw = model.predict_proba(np.atleast_2d(X))
        # sklearn only emits columns for classes it saw; place them by class id
        P = np.zeros((raw.shape[0], self.n_classes), dtype=np.float64)
        P[:, model.classes_.astype(int)] = raw
        return _renormalize(P)

    def feature_importances(self, X, y):
        """Mean decrease in impurity, averaged over the trees."""
        return np.asarray(self._fitted().feature_importances_, dtype=np.float64)


# -----------------------
# Feed-forward network
# -----------------------
class _FeedForward(nn.Module):
    def __init__(self, n_in: int, hidden: tuple[int, int], dropout: tuple[float, float], n_out: int):
        super().__init__()
        self.net = nn.Sequential(
            nn.Linear(n_in, hidden[0]),
            nn.ReLU(),
            nn.Dropout(dropout[0]),
            nn.Linear(hidden[0], hidden[1]),
            nn.ReLU(),
            nn.Dropout(dropout[1]),
            nn.Linear(hidden[1], n_out),
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        # logits; softmax is applied at inference and inside the loss
        return self.net(x)


class NeuralBackend(ClassifierBackend):
    model_type = ModelType.NEURAL

    def __init__(
        self,
        hidden_units: tuple[int, int] = (64, 32),
        dropout: tuple[float, float] = (0.3, 0.2),
        learning_rate: float = 0.001,
        epochs: int = 100,
        batch_size: int = 32,
        validation_split: float = 0.2,
        seed: int = 42,
    ):
        self.hidden_units = hidden_units
        self.dropout = dropout
        self.learning_rate = learning_rate
        self.epochs = epochs
        self.batch_size = batch_size
        self.validation_split = validation_split
        self.seed = seed
        self.validation_accuracy: float | None = None
        self._net: _FeedForward | None = None

    @property
    def is_trained(self) -> bool:
        return self._net is not None

    def fit(self, X, y, n_classes):
        _check_xy(X, y, n_classes)
        torch.manual_seed(self.seed)
        gen = torch.Generator().manual_seed(self.seed)

        # hold out the trailing rows for validation when there are enough of them
        n_val = int(X.shape[0] * self.validation_split)
        if n_val >= X.shape[0]:
            n_val = 0
        X_tr, y_tr = X[: X.shape[0] - n_val], y[: X.shape[0] - n_val]
        X_val, y_val = X[X.shape[0] - n_val:], y[X.shape[0] - n_val:]

        net = _FeedForward(X.shape[1], self.hidden_units, self.dropout, n_classes)
        optimizer = optim.Adam(net.parameters(), lr=self.learning_rate)
        loss_fn = nn.CrossEntropyLoss()
        loader = DataLoader(
            TensorDataset(
                torch.as_tensor(X_tr, dtype=torch.float32),
                torch.as_tensor(y_tr, dtype=torch.long),
            ),
            batch_size=self.batch_size,
            shuffle=True,
            generator=gen,
        )

        for epoch in range(self.epochs):
            net.train()
            epoch_loss = 0.0
            for xb, yb in loader:
                optimizer.zero_grad()
                loss = loss_fn(net(xb), yb)
                loss.backward()
                optimizer.step()
                epoch_loss += float(loss.item()) * xb.shape[0]
            if epoch == self.epochs - 1:
                logger.debug("nn_epoch_done", epoch=epoch + 1, loss=epoch_loss / max(1, len(X_tr)))

        net.eval()
        self._net = net
        self.n_classes = n_classes

        self.validation_accuracy = None
        if n_val > 0:
            self.validation_accuracy = float(np.mean(self.predict_classes(X_val) == y_val))
            logger.info("nn_validation", rows=n_val, accuracy=self.validation_accuracy)
        return self

    def _fitted(self) -> _FeedForward:
        if self._net is None:
            raise NotTrained(f"{self.model_type.value} backend has not been trained")
        return self._net

    def predict_proba_batch(self, X):
        net = self._fitted()
        net.eval()
        with torch.no_grad():
            logits = net(torch.as_tensor(np.atleast_2d(X), dtype=torch.float32))
            P = torch.softmax(logits, dim=1).numpy().astype(np.float64)
        return _renormalize(P)

    def feature_importances(self, X, y):
        """Permutation importance against in-sample accuracy."""
        self._require_trained()
        return permutation_importance(self.predict_classes, X, y, seed=self.seed)


def make_backend(model_type: ModelType, settings: Settings) -> ClassifierBackend:
    if model_type is ModelType.RANDOM_FOREST:
        return ForestBackend(
            n_estimators=settings.rf_n_estimators,
            max_depth=settings.rf_max_depth,
            min_samples_leaf=settings.rf_min_samples_leaf,
            seed=settings.seed,
        )
    if model_type is ModelType.NEURAL:
        return NeuralBackend(
            hidden_units=settings.nn_hidden_units,
            dropout=settings.nn_dropout,
            learning_rate=settings.nn_learning_rate,
            epochs=settings.nn_epochs,
            batch_size=settings.nn_batch_size,
            validation_split=settings.nn_validation_split,
            seed=settings.seed,
        )
    raise InvalidInput(f"unknown model type: {model_type!r}")
