"""
Tests for raw record coercion and training-file loading.
"""

import json

import pytest

from nep_ml.errors import InvalidInput
from nep_ml.sample_data import sample_payload
from nep_ml.schemas import ModelType
from nep_ml.training_io import coerce_record, load_record_file, load_training_file, select_yearly_block


class TestCoerceRecord:
    def test_wire_shape(self, raw_lagos):
        rec = coerce_record(raw_lagos)
        assert rec.region == "Lagos"
        assert rec.economic.unemployment_rate == 12

    def test_yearly_list_prefers_year(self, raw_lagos):
        old = dict(raw_lagos["economic"], year=2019, unemployment_rate=30)
        raw_lagos["economic"] = [old, raw_lagos["economic"]]
        assert coerce_record(raw_lagos, preferred_year=2023).economic.unemployment_rate == 12
        assert coerce_record(raw_lagos, preferred_year=2019).economic.unemployment_rate == 30

    def test_yearly_list_without_match_takes_first(self, raw_lagos):
        sec = raw_lagos["security"]
        raw_lagos["security"] = [dict(sec, year=2015, violence_index=0.9), dict(sec, year=2016)]
        assert coerce_record(raw_lagos).security.violence_index == 0.9

    def test_empty_yearly_list(self):
        with pytest.raises(InvalidInput):
            select_yearly_block([], 2023, "economic", index=3)

    @pytest.mark.parametrize("key", ["state", "demographic", "economic", "security"])
    def test_missing_required_block(self, raw_lagos, key):
        raw_lagos.pop(key)
        with pytest.raises(InvalidInput, match="missing required fields"):
            coerce_record(raw_lagos, index=0)

    def test_missing_unemployment_rate(self, raw_lagos):
        raw_lagos["economic"].pop("unemployment_rate")
        with pytest.raises(InvalidInput, match="unemployment_rate"):
            coerce_record(raw_lagos)

    def test_missing_violence_index(self, raw_lagos):
        raw_lagos["security"].pop("violence_index")
        with pytest.raises(InvalidInput, match="violence_index"):
            coerce_record(raw_lagos)

    def test_zero_values_are_present(self, raw_lagos):
        raw_lagos["economic"]["unemployment_rate"] = 0
        raw_lagos["security"]["violence_index"] = 0
        assert coerce_record(raw_lagos).security.violence_index == 0

    def test_out_of_range_value(self, raw_lagos):
        raw_lagos["demographic"]["youth_ratio"] = 2.5
        with pytest.raises(InvalidInput, match="input 7"):
            coerce_record(raw_lagos, index=7)

    def test_blank_region(self, raw_lagos):
        raw_lagos["state"] = "   "
        with pytest.raises(InvalidInput):
            coerce_record(raw_lagos)

    def test_not_a_mapping(self):
        with pytest.raises(InvalidInput):
            coerce_record(["Lagos"])


class TestFiles:
    def test_load_training_file(self, tmp_path):
        payload = sample_payload()
        payload["modelType"] = "tensorflow"
        path = tmp_path / "train.json"
        path.write_text(json.dumps(payload), encoding="utf-8")

        records, outputs, model_type = load_training_file(path)
        assert [r.region for r in records] == ["Lagos", "Kano", "Rivers", "Anambra"]
        assert outputs == ["APC", "APC", "PDP", "LP"]
        assert model_type is ModelType.NEURAL

    def test_default_model_type(self, tmp_path):
        payload = sample_payload()
        payload.pop("modelType")
        path = tmp_path / "train.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        assert load_training_file(path)[2] is ModelType.RANDOM_FOREST

    def test_mismatched_file(self, tmp_path):
        payload = sample_payload()
        payload["outputs"] = payload["outputs"][:2]
        path = tmp_path / "train.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        with pytest.raises(InvalidInput):
            load_training_file(path)

    def test_bad_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(InvalidInput):
            load_training_file(path)

    def test_record_file(self, tmp_path, raw_lagos):
        path = tmp_path / "lagos.json"
        path.write_text(json.dumps(raw_lagos), encoding="utf-8")
        assert load_record_file(path).region == "Lagos"
