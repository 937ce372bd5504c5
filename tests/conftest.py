"""
Pytest configuration and shared fixtures.

Provides sample records, small-budget settings and a trained forest model.
"""

import copy

import pytest

from nep_common.settings import Settings
from nep_ml.model import train_model
from nep_ml.sample_data import SAMPLE_INPUTS, SAMPLE_OUTPUTS, sample_training_set
from nep_ml.schemas import InputRecord


@pytest.fixture
def settings() -> Settings:
    """Fast settings: fewer trees, short neural budget."""
    return Settings(
        rf_n_estimators=25,
        nn_hidden_units=(16, 8),
        nn_epochs=30,
        nn_batch_size=8,
    )


@pytest.fixture
def sample_set():
    return sample_training_set()


@pytest.fixture
def raw_lagos() -> dict:
    return copy.deepcopy(SAMPLE_INPUTS[0])


@pytest.fixture
def make_record():
    """Build an InputRecord from the Lagos sample with nested overrides."""
    def _make(region: str = "Lagos", incumbent: str = "APC", **blocks) -> InputRecord:
        raw = copy.deepcopy(SAMPLE_INPUTS[0])
        raw["state"] = region
        raw["incumbent_party"] = incumbent
        for name, values in blocks.items():
            raw[name].update(values)
        return InputRecord.model_validate(raw)
    return _make


@pytest.fixture
def lagos(make_record) -> InputRecord:
    return make_record()


@pytest.fixture
def forest_model(sample_set, settings):
    inputs, outputs = sample_set
    return train_model(inputs, outputs, model_type="random-forest", settings=settings)


@pytest.fixture
def sample_outputs() -> list:
    return list(SAMPLE_OUTPUTS)
