"""
Entity risk endpoints: asset, personnel and travel-plan screens share
one flow.

POST   /v1/entities/{kind}                                 → score + create
GET    /v1/entities/{kind}/{entity_id}
POST   /v1/entities/{kind}/{entity_id}/rescore             → new raw score
POST   /v1/entities/{kind}/{entity_id}/mitigations         → apply
PATCH  /v1/entities/{kind}/{entity_id}/mitigations/{mid}   → edit reduction/notes
DELETE /v1/entities/{kind}/{entity_id}/mitigations/{mid}   → remove (no-op if absent)
GET    /v1/drafts/{draft_id}                               → scoring status
DELETE /v1/drafts/{draft_id}                               → close form, drop in-flight result
"""
from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Header

from app.api.dependencies import get_actor, get_assessment_service
from app.schemas.assessment import EntityKind
from app.schemas.entity import DraftStatusResponse, EntityCreateRequest, EntityResponse
from app.schemas.mitigation import AppliedMitigationUpdate, ApplyMitigationRequest
from app.services.assessment_service import AssessmentService
from app.services.scoring_sessions import ScoringSessions, get_scoring_sessions

logger = structlog.get_logger()
router = APIRouter(prefix="/v1", tags=["entities"])


@router.post(
    "/entities/{kind}",
    response_model=EntityResponse,
    status_code=201,
    summary="Create an entity with its AI risk assessment",
    description="Scoring is best-effort: if the Scorer fails the default assessment is stored.",
)
async def create_entity(
    kind: EntityKind,
    request: EntityCreateRequest,
    x_draft_id: Optional[str] = Header(None, alias="X-Draft-Id"),
    actor: str = Depends(get_actor),
    service: AssessmentService = Depends(get_assessment_service),
    sessions: ScoringSessions = Depends(get_scoring_sessions),
) -> EntityResponse:
    logger.info(
        "entity_create_started",
        kind=kind.value,
        organization_id=request.organization_id,
        draft_id=x_draft_id,
        caller=actor,
    )
    return await service.create_entity(kind, request, actor, sessions=sessions, draft_id=x_draft_id)


@router.get("/entities/{kind}/{entity_id}", response_model=EntityResponse)
async def get_entity(
    kind: EntityKind,
    entity_id: str,
    service: AssessmentService = Depends(get_assessment_service),
) -> EntityResponse:
    return await service.get_entity(kind, entity_id)


@router.post("/entities/{kind}/{entity_id}/rescore", response_model=EntityResponse)
async def rescore_entity(
    kind: EntityKind,
    entity_id: str,
    service: AssessmentService = Depends(get_assessment_service),
) -> EntityResponse:
    return await service.rescore_entity(kind, entity_id)


@router.post("/entities/{kind}/{entity_id}/mitigations", response_model=EntityResponse)
async def apply_mitigation(
    kind: EntityKind,
    entity_id: str,
    body: ApplyMitigationRequest,
    actor: str = Depends(get_actor),
    service: AssessmentService = Depends(get_assessment_service),
) -> EntityResponse:
    return await service.add_mitigation(kind, entity_id, body.mitigation_id, actor)


@router.patch("/entities/{kind}/{entity_id}/mitigations/{mitigation_id}", response_model=EntityResponse)
async def update_mitigation(
    kind: EntityKind,
    entity_id: str,
    mitigation_id: str,
    body: AppliedMitigationUpdate,
    service: AssessmentService = Depends(get_assessment_service),
) -> EntityResponse:
    return await service.update_mitigation(kind, entity_id, mitigation_id, body)


@router.delete("/entities/{kind}/{entity_id}/mitigations/{mitigation_id}", response_model=EntityResponse)
async def remove_mitigation(
    kind: EntityKind,
    entity_id: str,
    mitigation_id: str,
    service: AssessmentService = Depends(get_assessment_service),
) -> EntityResponse:
    return await service.remove_mitigation(kind, entity_id, mitigation_id)


@router.get("/drafts/{draft_id}", response_model=DraftStatusResponse)
async def draft_status(
    draft_id: str,
    sessions: ScoringSessions = Depends(get_scoring_sessions),
) -> DraftStatusResponse:
    status = "scoring" if sessions.is_scoring(draft_id) else "idle"
    return DraftStatusResponse(draft_id=draft_id, status=status)


@router.delete("/drafts/{draft_id}", response_model=DraftStatusResponse)
async def close_draft(
    draft_id: str,
    sessions: ScoringSessions = Depends(get_scoring_sessions),
) -> DraftStatusResponse:
    status = "cancelled" if sessions.cancel(draft_id) else "idle"
    return DraftStatusResponse(draft_id=draft_id, status=status)
