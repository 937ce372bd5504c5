# src/nep_ml/errors.py
from __future__ import annotations


class ElectionModelError(Exception):
    """Base class for every error raised by the prediction core."""


class InvalidInput(ElectionModelError, ValueError):
    """Malformed records, empty batches, or mismatched inputs/outputs."""


class NotFitted(ElectionModelError, RuntimeError):
    """A transform was requested before the normalizer was fitted."""


class NotTrained(NotFitted):
    """Inference was requested before any successful training call."""


class FeatureSchemaError(ElectionModelError):
    """Extractor output no longer matches the canonical feature-name list."""
