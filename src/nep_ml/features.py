# src/nep_ml/features.py
from __future__ import annotations
from typing import Iterable, Sequence
import numpy as np
from numpy.typing import NDArray
import pandas as pd

from nep_ml.errors import FeatureSchemaError
from nep_ml.schemas import InputRecord

ZONES: tuple[str, ...] = ("NW", "NE", "NC", "SW", "SE", "SS")
DEFAULT_ZONE = "NC"

# 36 states + FCT
STATE_ZONES: dict[str, str] = {
    # North-West
    "Kano": "NW", "Kaduna": "NW", "Katsina": "NW", "Kebbi": "NW",
    "Jigawa": "NW", "Sokoto": "NW", "Zamfara": "NW",
    # North-East
    "Borno": "NE", "Yobe": "NE", "Bauchi": "NE", "Gombe": "NE",
    "Adamawa": "NE", "Taraba": "NE",
    # North-Central
    "Niger": "NC", "Kwara": "NC", "Kogi": "NC", "Benue": "NC",
    "Plateau": "NC", "Nasarawa": "NC", "FCT": "NC",
    # South-West
    "Lagos": "SW", "Ogun": "SW", "Oyo": "SW", "Osun": "SW",
    "Ondo": "SW", "Ekiti": "SW",
    # South-East
    "Abia": "SE", "Anambra": "SE", "Ebonyi": "SE", "Enugu": "SE",
    "Imo": "SE",
    # South-South
    "Akwa Ibom": "SS", "Bayelsa": "SS", "Cross River": "SS",
    "Delta": "SS", "Edo": "SS", "Rivers": "SS",
}
_ZONE_LOOKUP = {k.casefold(): v for k, v in STATE_ZONES.items()}

# canonical, ordered feature schema; extractor output must match it position for position
FEATURE_NAMES: list[str] = [
    "youth_ratio", "education_index", "urban_ratio", "literacy_rate",
    "christian_percentage", "muslim_percentage", "home_ownership_rate",
    "gdp_growth", "unemployment_rate", "inflation_rate", "poverty_rate",
    "security_incidents", "violence_index", "boko_haram_activity", "communal_conflicts",
    "incumbent_apc", "incumbent_pdp", "campaign_spending_ratio",
    "zone_nw", "zone_ne", "zone_nc", "zone_sw", "zone_se", "zone_ss",
    "economic_pressure", "religious_dominance", "development_index", "high_security_threat",
]

HIGH_THREAT_INCIDENTS = 50


def get_feature_names() -> list[str]:
    return list(FEATURE_NAMES)


def geopolitical_zone(region: str) -> str:
    """Zone for a state name; unknown names fall back to NC."""
    return _ZONE_LOOKUP.get(region.strip().casefold(), DEFAULT_ZONE)


def extract_features(record: InputRecord) -> NDArray[np.float64]:
    d, e, s = record.demographic, record.economic, record.security
    zone = geopolitical_zone(record.region)

    values: list[float] = [
        d.youth_ratio, d.education_index, d.urban_ratio, d.literacy_rate,
        d.christian_percentage, d.muslim_percentage, d.home_ownership_rate,

        e.gdp_growth, e.unemployment_rate, e.inflation_rate, e.poverty_rate,

        s.security_incidents / 100.0,
        s.violence_index,
        1.0 if s.boko_haram_activity else 0.0,
        s.communal_conflicts / 10.0,

        # only APC/PDP incumbency gets an indicator; other incumbents share the all-zero slot
        1.0 if record.incumbent_party == "APC" else 0.0,
        1.0 if record.incumbent_party == "PDP" else 0.0,
        record.campaign_spending_ratio,
    ]
    values.extend(1.0 if zone == z else 0.0 for z in ZONES)
    values.extend([
        (e.unemployment_rate + e.inflation_rate + e.poverty_rate) / 3.0,
        abs(d.christian_percentage - d.muslim_percentage),
        (d.education_index + d.urban_ratio + d.literacy_rate) / 3.0,
        1.0 if s.security_incidents > HIGH_THREAT_INCIDENTS else 0.0,
    ])

    vec = np.asarray(values, dtype=np.float64)
    check_schema(vec)
    return vec


def check_schema(vec: Sequence[float], names: Sequence[str] = FEATURE_NAMES) -> None:
    if len(vec) != len(names):
        raise FeatureSchemaError(
            f"extractor produced {len(vec)} values but the schema names {len(names)} features"
        )


def build_feature_frame(records: Iterable[InputRecord]) -> pd.DataFrame:
    """One row per record, columns in canonical order, indexed by region."""
    records = list(records)
    rows = [extract_features(r) for r in records]
    if not rows:
        return pd.DataFrame(columns=FEATURE_NAMES, dtype="float64")
    return pd.DataFrame(
        np.vstack(rows),
        columns=FEATURE_NAMES,
        index=pd.Index([r.region for r in records], name="region"),
    )
