"""
Effective risk assessment: the JSON document embedded on every entity.

Serialized with camelCase keys (model_dump(by_alias=True)) so the stored
shape stays compatible with the dashboard:

    {"overall": 18, "originalScore": 43, "totalRiskReduction": 25,
     "mitigationApplied": true, "confidence": 85, "trend": "stable", ...}
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EntityKind(str, Enum):
    ASSET = "asset"
    PERSONNEL = "personnel"
    TRAVEL = "travel"


class RiskTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DETERIORATING = "deteriorating"


def _check_components(v: dict[str, int]) -> dict[str, int]:
    for name, score in v.items():
        if not 0 <= score <= 100:
            raise ValueError(f"component {name} must be within [0, 100], got {score}")
    return v


class ScoringResult(BaseModel):
    """Raw per-entity answer from the Scorer."""
    score: int = Field(ge=0, le=100)
    components: dict[str, int] = Field(default_factory=dict)
    trend: RiskTrend = RiskTrend.STABLE
    confidence: int = Field(ge=0, le=100)
    recommendations: list[str] = Field(default_factory=list)
    explanation: str = ""

    @field_validator("components")
    @classmethod
    def validate_components(cls, v: dict[str, int]) -> dict[str, int]:
        return _check_components(v)


class RiskAssessment(BaseModel):
    """
    overall            = max(0, original_score - total_risk_reduction)
    mitigation_applied = total_risk_reduction > 0

    original_score is frozen at first scoring; only the three derived
    fields move when the mitigation ledger changes.
    """
    model_config = ConfigDict(populate_by_name=True)

    overall: int = Field(ge=0, le=100)
    original_score: int = Field(ge=0, le=100, alias="originalScore")
    components: dict[str, int] = Field(default_factory=dict)
    trend: RiskTrend = RiskTrend.STABLE
    confidence: Optional[int] = Field(None, ge=0, le=100)
    recommendations: list[str] = Field(default_factory=list)
    explanation: Optional[str] = None
    mitigation_applied: bool = Field(False, alias="mitigationApplied")
    total_risk_reduction: int = Field(0, ge=0, alias="totalRiskReduction")
    last_updated: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="lastUpdated",
    )

    @field_validator("components")
    @classmethod
    def validate_components(cls, v: dict[str, int]) -> dict[str, int]:
        return _check_components(v)

    def to_document(self) -> dict:
        """JSON-ready dict for the embedded column."""
        return self.model_dump(mode="json", by_alias=True)
