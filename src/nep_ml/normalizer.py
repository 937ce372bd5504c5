# src/nep_ml/normalizer.py
from __future__ import annotations
from dataclasses import dataclass
import numpy as np
from numpy.typing import ArrayLike, NDArray

from nep_ml.errors import InvalidInput, NotFitted


@dataclass(frozen=True)
class NormalizationStats:
    mean: NDArray[np.float64]
    std: NDArray[np.float64]

    def __post_init__(self) -> None:
        # stats are shared by every reader of a trained model
        self.mean.setflags(write=False)
        self.std.setflags(write=False)

    @property
    def n_features(self) -> int:
        return int(self.mean.shape[0])


def fit_stats(batch: ArrayLike) -> NormalizationStats:
    """
    Column-wise mean and population standard deviation over a 2-D batch.
    Zero deviations become 1 so constant columns transform to 0.
    """
    X = np.asarray(batch, dtype=np.float64)
    if X.ndim != 2 or X.shape[0] == 0 or X.shape[1] == 0:
        raise InvalidInput("cannot fit normalization statistics on an empty batch")
    mean = X.mean(axis=0)
    std = X.std(axis=0)
    std = np.where(std == 0.0, 1.0, std)
    return NormalizationStats(mean=mean, std=std)


class Normalizer:
    """Z-score scaler; fit once, then transform rows or batches with the same stats."""

    def __init__(self, stats: NormalizationStats | None = None):
        self._stats = stats

    @property
    def stats(self) -> NormalizationStats:
        if self._stats is None:
            raise NotFitted("normalizer must be fitted before use")
        return self._stats

    @property
    def is_fitted(self) -> bool:
        return self._stats is not None

    def fit(self, batch: ArrayLike) -> "Normalizer":
        # refitting replaces the stats wholesale
        self._stats = fit_stats(batch)
        return self

    def transform(self, batch: ArrayLike) -> NDArray[np.float64]:
        stats = self.stats
        X = np.asarray(batch, dtype=np.float64)
        if X.ndim != 2 or X.shape[1] != stats.n_features:
            raise InvalidInput(
                f"expected a batch with {stats.n_features} columns, got shape {X.shape}"
            )
        return (X - stats.mean) / stats.std

    def transform_single(self, row: ArrayLike) -> NDArray[np.float64]:
        stats = self.stats
        x = np.asarray(row, dtype=np.float64)
        if x.shape != (stats.n_features,):
            raise InvalidInput(
                f"expected a row of {stats.n_features} values, got shape {x.shape}"
            )
        return (x - stats.mean) / stats.std

    def fit_transform(self, batch: ArrayLike) -> NDArray[np.float64]:
        return self.fit(batch).transform(batch)
