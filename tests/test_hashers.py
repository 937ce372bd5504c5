"""
Tests for the training-data fingerprint.
"""

import pandas as pd

from nep_ml.features import build_feature_frame
from nep_ml.hashers import training_data_hash


class TestTrainingDataHash:
    def test_stable(self, sample_set):
        inputs, outputs = sample_set
        frame = build_feature_frame(inputs)
        assert training_data_hash(frame, outputs) == training_data_hash(frame.copy(), list(outputs))

    def test_labels_matter(self, sample_set):
        inputs, outputs = sample_set
        frame = build_feature_frame(inputs)
        assert training_data_hash(frame, outputs) != training_data_hash(frame, ["APC", "APC", "LP", "PDP"])

    def test_values_matter(self, sample_set, make_record):
        inputs, outputs = sample_set
        changed = [make_record(economic={"inflation_rate": 99})] + inputs[1:]
        assert training_data_hash(build_feature_frame(inputs), outputs) != training_data_hash(
            build_feature_frame(changed), outputs
        )

    def test_does_not_mutate_frame(self, sample_set):
        inputs, outputs = sample_set
        frame = build_feature_frame(inputs)
        before = frame.copy()
        training_data_hash(frame, outputs)
        pd.testing.assert_frame_equal(frame, before)

    def test_empty(self):
        assert training_data_hash(pd.DataFrame(), []) == training_data_hash(pd.DataFrame(), [])
