"""
Inbound/outbound payloads for the entity screens (asset, personnel,
travel plan). The engine only cares about the snapshot; `attributes`
carries whatever the form collected and is forwarded to the Scorer as-is.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.assessment import EntityKind, RiskAssessment
from app.schemas.mitigation import AppliedMitigation


class EntityCreateRequest(BaseModel):
    organization_id: str
    name: str = Field(min_length=1, description="Asset name, employee name or traveler name")
    attributes: dict[str, Any] = Field(default_factory=dict)
    mitigation_ids: list[str] = Field(
        default_factory=list,
        description="Catalog ids applied on creation, in display order",
    )


class EntityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: EntityKind
    organization_id: str
    name: str
    attributes: dict[str, Any]
    risk_assessment: RiskAssessment
    mitigations: list[AppliedMitigation]
    scoring_fallback: bool = Field(False, description="True when the default assessment was used")


class DraftStatusResponse(BaseModel):
    draft_id: str
    status: str  # scoring | idle | cancelled
