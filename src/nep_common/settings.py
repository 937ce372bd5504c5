# src/nep_common/settings.py
from __future__ import annotations
import os
from typing import Literal
from pydantic import BaseModel, Field


class Settings(BaseModel):
    # random forest
    rf_n_estimators: int = Field(100, ge=1)
    rf_max_depth: int | None = Field(10, ge=1)
    rf_min_samples_leaf: int = Field(2, ge=1)
    seed: int = 42

    # feed-forward network
    nn_hidden_units: tuple[int, int] = (64, 32)
    nn_dropout: tuple[float, float] = (0.3, 0.2)
    nn_learning_rate: float = Field(0.001, gt=0)
    nn_epochs: int = Field(100, ge=1)
    nn_batch_size: int = Field(32, ge=1)
    nn_validation_split: float = Field(0.2, ge=0.0, lt=1.0)

    # raw record coercion: which yearly block to keep when a list is sent
    preferred_year: int = 2023

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw not in (None, "") else default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    return float(raw) if raw not in (None, "") else default


def _pair_env(name: str, default: tuple, cast=float) -> tuple:
    """Parse 'a,b' into a 2-tuple; anything else keeps the default."""
    raw = os.getenv(name)
    if not raw:
        return default
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    if len(parts) != 2:
        raise ValueError(f"{name} must hold two comma-separated values, got {raw!r}")
    return (cast(parts[0]), cast(parts[1]))


def build_settings() -> Settings:
    """
    Precedence for every field:
      1) NEP_* environment variable
      2) built-in default on Settings
    A max depth of 0 (NEP_RF_MAX_DEPTH=0) means unlimited depth.
    """
    max_depth = _int_env("NEP_RF_MAX_DEPTH", 10)
    return Settings(
        rf_n_estimators=_int_env("NEP_RF_N_ESTIMATORS", 100),
        rf_max_depth=max_depth or None,
        rf_min_samples_leaf=_int_env("NEP_RF_MIN_SAMPLES_LEAF", 2),
        seed=_int_env("NEP_SEED", 42),
        nn_hidden_units=_pair_env("NEP_NN_HIDDEN_UNITS", (64, 32), cast=int),
        nn_dropout=_pair_env("NEP_NN_DROPOUT", (0.3, 0.2)),
        nn_learning_rate=_float_env("NEP_NN_LEARNING_RATE", 0.001),
        nn_epochs=_int_env("NEP_NN_EPOCHS", 100),
        nn_batch_size=_int_env("NEP_NN_BATCH_SIZE", 32),
        nn_validation_split=_float_env("NEP_NN_VALIDATION_SPLIT", 0.2),
        preferred_year=_int_env("NEP_PREFERRED_YEAR", 2023),
        log_level=os.getenv("NEP_LOG_LEVEL", "INFO").upper(),
        log_format=os.getenv("NEP_LOG_FORMAT", "console").lower(),
    )


def load_settings() -> Settings:
    # Load .env on host only; don't override existing env
    from dotenv import load_dotenv
    load_dotenv(override=False)
    return build_settings()
