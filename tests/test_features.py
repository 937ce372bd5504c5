"""
Tests for feature extraction.

Tests:
- output length always matches the canonical name list
- positions carry the documented raw, rescaled, one-hot and derived values
- unknown regions fall back to the North-Central zone
"""

import numpy as np
import pytest

from nep_ml.errors import FeatureSchemaError
from nep_ml.features import (
    FEATURE_NAMES,
    STATE_ZONES,
    ZONES,
    build_feature_frame,
    check_schema,
    extract_features,
    geopolitical_zone,
    get_feature_names,
)


def _at(vec, name):
    return vec[FEATURE_NAMES.index(name)]


class TestSchema:
    def test_length_matches_names(self, lagos):
        assert len(extract_features(lagos)) == len(get_feature_names())

    def test_schema_has_28_named_positions(self):
        names = get_feature_names()
        assert len(names) == 28
        assert len(set(names)) == len(names)

    def test_get_feature_names_returns_copy(self):
        names = get_feature_names()
        names.append("extra")
        assert len(get_feature_names()) == 28

    def test_mismatch_is_a_configuration_error(self):
        with pytest.raises(FeatureSchemaError):
            check_schema([0.0] * 27)

    def test_deterministic(self, lagos):
        assert np.array_equal(extract_features(lagos), extract_features(lagos))

    def test_every_sample_state_has_same_length(self, sample_set):
        inputs, _ = sample_set
        assert {len(extract_features(r)) for r in inputs} == {len(FEATURE_NAMES)}


class TestValues:
    def test_raw_and_rescaled_blocks(self, lagos):
        v = extract_features(lagos)
        assert _at(v, "youth_ratio") == pytest.approx(0.6)
        assert _at(v, "christian_percentage") == pytest.approx(60.0)
        assert _at(v, "unemployment_rate") == pytest.approx(12.0)
        assert _at(v, "security_incidents") == pytest.approx(0.2)
        assert _at(v, "communal_conflicts") == pytest.approx(0.1)
        assert _at(v, "boko_haram_activity") == 0.0
        assert _at(v, "campaign_spending_ratio") == pytest.approx(1.2)

    def test_derived_block(self, lagos):
        v = extract_features(lagos)
        assert _at(v, "economic_pressure") == pytest.approx((12 + 15 + 25) / 3)
        assert _at(v, "religious_dominance") == pytest.approx(20.0)
        assert _at(v, "development_index") == pytest.approx((0.8 + 0.9 + 0.85) / 3)
        assert _at(v, "high_security_threat") == 0.0

    @pytest.mark.parametrize("incidents, expected", [(50, 0.0), (51, 1.0)])
    def test_high_threat_threshold(self, make_record, incidents, expected):
        v = extract_features(make_record(security={"security_incidents": incidents}))
        assert _at(v, "high_security_threat") == expected

    def test_boko_haram_flag(self, make_record):
        v = extract_features(make_record(security={"boko_haram_activity": True}))
        assert _at(v, "boko_haram_activity") == 1.0

    @pytest.mark.parametrize("party, apc, pdp", [("APC", 1.0, 0.0), ("PDP", 0.0, 1.0), ("LP", 0.0, 0.0), ("Other", 0.0, 0.0)])
    def test_incumbent_indicators(self, make_record, party, apc, pdp):
        v = extract_features(make_record(incumbent=party))
        assert (_at(v, "incumbent_apc"), _at(v, "incumbent_pdp")) == (apc, pdp)

    def test_missing_optional_oil_production_is_fine(self, lagos):
        assert lagos.economic.oil_production is None
        assert not np.isnan(extract_features(lagos)).any()


class TestZones:
    def test_lookup_covers_36_states_and_fct(self):
        assert len(STATE_ZONES) == 37
        assert set(STATE_ZONES.values()) == set(ZONES)

    def test_known_state_one_hot(self, lagos):
        v = extract_features(lagos)
        zone_vals = [_at(v, f"zone_{z.lower()}") for z in ZONES]
        assert zone_vals == [0.0, 0.0, 0.0, 1.0, 0.0, 0.0]

    def test_unknown_state_defaults_to_nc(self, make_record):
        v = extract_features(make_record(region="Lagoss"))
        zone_vals = [_at(v, f"zone_{z.lower()}") for z in ZONES]
        assert zone_vals == [0.0, 0.0, 1.0, 0.0, 0.0, 0.0]

    def test_lookup_ignores_case_and_padding(self):
        assert geopolitical_zone("  akwa ibom ") == "SS"
        assert geopolitical_zone("Atlantis") == "NC"

    def test_nested_block_region_is_ignored(self, make_record):
        a = make_record(demographic={"state": "Kano"}, economic={"state": "Borno", "year": 2019})
        b = make_record()
        assert np.array_equal(extract_features(a), extract_features(b))


class TestFrame:
    def test_frame_columns_and_index(self, sample_set):
        inputs, _ = sample_set
        frame = build_feature_frame(inputs)
        assert list(frame.columns) == FEATURE_NAMES
        assert list(frame.index) == ["Lagos", "Kano", "Rivers", "Anambra"]
        assert frame.shape == (4, len(FEATURE_NAMES))

    def test_empty_frame(self):
        frame = build_feature_frame([])
        assert frame.empty
        assert list(frame.columns) == FEATURE_NAMES
