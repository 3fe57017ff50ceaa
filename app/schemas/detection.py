"""
AI risk detection: candidates proposed by the Scorer and the register
entries they turn into once a human confirms them.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SourceType(str, Enum):
    ASSET = "asset"
    PERSONNEL = "personnel"
    INCIDENT = "incident"
    TRAVEL = "travel"
    PATTERN = "pattern"  # cross-entity pattern, no single source row


class RiskLevel(str, Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class RiskCategory(str, Enum):
    OPERATIONAL = "operational"
    FINANCIAL = "financial"
    STRATEGIC = "strategic"
    COMPLIANCE = "compliance"
    SECURITY = "security"
    TECHNICAL = "technical"
    ENVIRONMENTAL = "environmental"
    REPUTATIONAL = "reputational"


class RiskStatus(str, Enum):
    IDENTIFIED = "identified"
    ASSESSED = "assessed"
    MITIGATED = "mitigated"
    MONITORING = "monitoring"
    CLOSED = "closed"


class DetectedRisk(BaseModel):
    """Unconfirmed candidate. candidate_id is assigned when staged."""
    candidate_id: Optional[str] = None
    title: str
    description: str = ""
    category: RiskCategory
    impact: RiskLevel
    likelihood: RiskLevel
    confidence: int = Field(ge=0, le=100)
    source_type: SourceType
    source_id: Optional[str] = None
    department: Optional[str] = None
    recommendations: list[str] = Field(default_factory=list)


class RiskRecord(BaseModel):
    """Persisted risk-register entry."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    organization_id: str
    title: str
    description: str
    category: RiskCategory
    status: RiskStatus = RiskStatus.IDENTIFIED
    impact: RiskLevel
    likelihood: RiskLevel
    risk_score: int = Field(ge=1, le=25)
    mitigation_plan: Optional[str] = None
    department: Optional[str] = None
    is_ai_generated: bool = False
    ai_confidence: Optional[int] = Field(None, ge=0, le=100)
    ai_detection_date: Optional[datetime] = None
    source_asset_id: Optional[str] = None
    source_personnel_id: Optional[str] = None
    source_incident_id: Optional[str] = None
    source_travel_plan_id: Optional[str] = None


class OrganizationSnapshot(BaseModel):
    """Everything the Scorer sees during an org-wide detection sweep."""
    assets: list[dict[str, Any]] = Field(default_factory=list)
    personnel: list[dict[str, Any]] = Field(default_factory=list)
    incidents: list[dict[str, Any]] = Field(default_factory=list)
    travel_plans: list[dict[str, Any]] = Field(default_factory=list)
    risks: list[dict[str, Any]] = Field(default_factory=list)


class ConfirmationResult(BaseModel):
    persisted: list[RiskRecord] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list, description="candidate_ids that failed to persist")

    @property
    def persisted_count(self) -> int:
        return len(self.persisted)


class DetectionBatchResponse(BaseModel):
    batch_id: Optional[str] = Field(None, description="None when nothing was found")
    organization_id: str
    candidates: list[DetectedRisk]


class ConfirmDetectionRequest(BaseModel):
    candidate_ids: list[str] = Field(default_factory=list)


class ConfirmDetectionResponse(BaseModel):
    batch_id: str
    persisted_count: int
    failed_count: int
    risks: list[RiskRecord]
