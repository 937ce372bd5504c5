# src/nep_ml/sample_data.py
from __future__ import annotations
import copy

from nep_ml.schemas import InputRecord

# Historical winners for four states, one per major political profile
SAMPLE_INPUTS: list[dict] = [
    # Lagos - urban, educated, mixed religion
    {
        "state": "Lagos",
        "demographic": {
            "state": "Lagos", "population": 15_000_000, "youth_ratio": 0.6, "education_index": 0.8,
            "urban_ratio": 0.9, "literacy_rate": 0.85, "christian_percentage": 60,
            "muslim_percentage": 40, "home_ownership_rate": 0.3,
        },
        "economic": {"state": "Lagos", "year": 2023, "gdp_growth": 3.5, "unemployment_rate": 12,
                     "inflation_rate": 15, "poverty_rate": 25},
        "security": {"state": "Lagos", "year": 2023, "security_incidents": 20, "violence_index": 0.2,
                     "boko_haram_activity": False, "communal_conflicts": 1},
        "incumbent_party": "APC", "campaign_spending_ratio": 1.2,
    },
    # Kano - less urban, Muslim majority
    {
        "state": "Kano",
        "demographic": {
            "state": "Kano", "population": 13_000_000, "youth_ratio": 0.5, "education_index": 0.4,
            "urban_ratio": 0.5, "literacy_rate": 0.45, "christian_percentage": 10,
            "muslim_percentage": 90, "home_ownership_rate": 0.6,
        },
        "economic": {"state": "Kano", "year": 2023, "gdp_growth": 2.0, "unemployment_rate": 18,
                     "inflation_rate": 20, "poverty_rate": 45},
        "security": {"state": "Kano", "year": 2023, "security_incidents": 15, "violence_index": 0.3,
                     "boko_haram_activity": False, "communal_conflicts": 3},
        "incumbent_party": "APC", "campaign_spending_ratio": 1.0,
    },
    # Rivers - oil state, South-South
    {
        "state": "Rivers",
        "demographic": {
            "state": "Rivers", "population": 7_000_000, "youth_ratio": 0.55, "education_index": 0.7,
            "urban_ratio": 0.7, "literacy_rate": 0.75, "christian_percentage": 85,
            "muslim_percentage": 15, "home_ownership_rate": 0.5,
        },
        "economic": {"state": "Rivers", "year": 2023, "gdp_growth": 4.0, "unemployment_rate": 14,
                     "inflation_rate": 16, "poverty_rate": 30, "oil_production": 500_000},
        "security": {"state": "Rivers", "year": 2023, "security_incidents": 25, "violence_index": 0.4,
                     "boko_haram_activity": False, "communal_conflicts": 5},
        "incumbent_party": "PDP", "campaign_spending_ratio": 1.5,
    },
    # Anambra - South-East
    {
        "state": "Anambra",
        "demographic": {
            "state": "Anambra", "population": 5_500_000, "youth_ratio": 0.5, "education_index": 0.85,
            "urban_ratio": 0.6, "literacy_rate": 0.9, "christian_percentage": 95,
            "muslim_percentage": 5, "home_ownership_rate": 0.7,
        },
        "economic": {"state": "Anambra", "year": 2023, "gdp_growth": 3.2, "unemployment_rate": 10,
                     "inflation_rate": 14, "poverty_rate": 20},
        "security": {"state": "Anambra", "year": 2023, "security_incidents": 12, "violence_index": 0.2,
                     "boko_haram_activity": False, "communal_conflicts": 2},
        "incumbent_party": "LP", "campaign_spending_ratio": 0.8,
    },
]

SAMPLE_OUTPUTS: list[str] = ["APC", "APC", "PDP", "LP"]


def sample_payload() -> dict:
    """The sample set in the wire shape accepted by the train endpoint."""
    return {"inputs": copy.deepcopy(SAMPLE_INPUTS), "outputs": list(SAMPLE_OUTPUTS), "modelType": "random-forest"}


def sample_training_set() -> tuple[list[InputRecord], list[str]]:
    return [InputRecord.model_validate(r) for r in SAMPLE_INPUTS], list(SAMPLE_OUTPUTS)
