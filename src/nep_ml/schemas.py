# src/nep_ml/schemas.py
from __future__ import annotations
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Party(str, Enum):
    """Canonical outcome categories; any other trained label counts as OTHER."""
    APC = "APC"
    PDP = "PDP"
    LP = "LP"
    OTHER = "Other"

    @classmethod
    def canonical(cls, label: str) -> "Party":
        try:
            return cls(label)
        except ValueError:
            return cls.OTHER


CANONICAL_PARTIES: tuple[str, ...] = tuple(p.value for p in Party)


class ModelType(str, Enum):
    RANDOM_FOREST = "random-forest"
    NEURAL = "neural"

    @classmethod
    def _missing_(cls, value: object) -> Optional["ModelType"]:
        # legacy wire value for the neural variant
        if isinstance(value, str) and value.lower() in ("tensorflow", "nn", "mlp"):
            return cls.NEURAL
        return None


# -----------------------
# Input record
# -----------------------
class _Block(BaseModel):
    # nested blocks carry their own region/year for provenance only
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    region: Optional[str] = Field(None, alias="state")


class DemographicData(_Block):
    population: int = Field(0, ge=0)
    youth_ratio: float = Field(0.0, ge=0.0, le=1.0)
    education_index: float = Field(0.0, ge=0.0, le=1.0)
    urban_ratio: float = Field(0.0, ge=0.0, le=1.0)
    literacy_rate: float = Field(0.0, ge=0.0, le=1.0)
    christian_percentage: float = Field(0.0, ge=0.0, le=100.0)
    muslim_percentage: float = Field(0.0, ge=0.0, le=100.0)
    home_ownership_rate: float = Field(0.0, ge=0.0, le=1.0)


class EconomicData(_Block):
    year: Optional[int] = None
    gdp_growth: float = 0.0
    unemployment_rate: float = Field(0.0, ge=0.0, le=100.0)
    inflation_rate: float = 0.0
    poverty_rate: float = Field(0.0, ge=0.0, le=100.0)
    oil_production: Optional[float] = Field(None, ge=0.0)


class SecurityData(_Block):
    year: Optional[int] = None
    security_incidents: int = Field(0, ge=0)
    violence_index: float = Field(0.0, ge=0.0, le=1.0)
    boko_haram_activity: bool = False
    communal_conflicts: int = Field(0, ge=0)


class InputRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    region: str = Field(..., alias="state", min_length=1)
    demographic: DemographicData
    economic: EconomicData
    security: SecurityData
    incumbent_party: str = ""
    campaign_spending_ratio: float = Field(1.0, gt=0.0)

    @field_validator("region")
    @classmethod
    def _region_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("region must be a non-empty name")
        return v


# -----------------------
# Results
# -----------------------
class VoteShares(BaseModel):
    model_config = ConfigDict(frozen=True)

    APC: float = 0.0
    PDP: float = 0.0
    LP: float = 0.0
    Other: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return {p: getattr(self, p) for p in CANONICAL_PARTIES}


class UncertaintyRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: float
    max: float


class PredictionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    predicted_winner: Party
    confidence: float = Field(..., ge=0.0, le=1.0)
    vote_shares: VoteShares
    turnout_prediction: float = Field(..., ge=0.1, le=0.8)
    uncertainty_range: UncertaintyRange


class ModelMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    accuracy: float
    precision: Dict[str, float]
    recall: Dict[str, float]
    f1_score: Dict[str, float]
    confusion_matrix: List[List[int]]
    feature_importance: Dict[str, float]
