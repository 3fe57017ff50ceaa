"""
AI risk detection endpoints: human-in-the-loop register population.

POST   /v1/organizations/{org_id}/risk-detections  → detect + stage
GET    /v1/risk-detections/{batch_id}              → staged candidates
POST   /v1/risk-detections/{batch_id}/confirm      → persist selected subset
DELETE /v1/risk-detections/{batch_id}              → dismiss
"""
from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Response

from app.api.dependencies import get_scorer, get_store
from app.core.config import Settings, get_settings
from app.core.metrics import DETECTED_RISKS
from app.schemas.detection import (
    ConfirmDetectionRequest,
    ConfirmDetectionResponse,
    DetectionBatchResponse,
)
from app.scoring.detection import RiskDetectionAggregator
from app.services.detection_staging import DetectionStaging, get_detection_staging
from app.services.event_publisher import publish_confirmed_risk_event

logger = structlog.get_logger()
router = APIRouter(prefix="/v1", tags=["risk-detection"])


@router.post(
    "/organizations/{organization_id}/risk-detections",
    response_model=DetectionBatchResponse,
    summary="Run an AI detection sweep and stage the candidates for review",
)
async def detect_risks(
    organization_id: str,
    store=Depends(get_store),
    scorer=Depends(get_scorer),
    staging: DetectionStaging = Depends(get_detection_staging),
    settings: Settings = Depends(get_settings),
) -> DetectionBatchResponse:
    ai_enabled = await store.ai_detection_enabled(organization_id)
    if ai_enabled is None:
        ai_enabled = settings.ai_detection_default_enabled

    aggregator = RiskDetectionAggregator(organization_id)
    aggregator.check_enabled(ai_enabled)
    snapshot = await store.organization_snapshot(organization_id)
    detected = await aggregator.detect(snapshot, scorer, ai_enabled=ai_enabled)

    staged = aggregator.stage(detected)
    if not staged:
        return DetectionBatchResponse(batch_id=None, organization_id=organization_id, candidates=[])

    DETECTED_RISKS.labels("staged").inc(len(staged))
    batch_id = staging.open(aggregator)
    logger.info("detection_batch_staged", batch_id=batch_id, organization_id=organization_id, candidates=len(staged))
    return DetectionBatchResponse(batch_id=batch_id, organization_id=organization_id, candidates=staged)


@router.get("/risk-detections/{batch_id}", response_model=DetectionBatchResponse)
async def get_detection_batch(
    batch_id: str,
    staging: DetectionStaging = Depends(get_detection_staging),
) -> DetectionBatchResponse:
    aggregator = staging.get(batch_id)
    return DetectionBatchResponse(
        batch_id=batch_id,
        organization_id=aggregator.organization_id,
        candidates=aggregator.staged,
    )


@router.post("/risk-detections/{batch_id}/confirm", response_model=ConfirmDetectionResponse)
async def confirm_detections(
    batch_id: str,
    body: ConfirmDetectionRequest,
    store=Depends(get_store),
    staging: DetectionStaging = Depends(get_detection_staging),
) -> ConfirmDetectionResponse:
    aggregator = staging.get(batch_id)
    result = await aggregator.confirm(body.candidate_ids, store)

    DETECTED_RISKS.labels("confirmed").inc(result.persisted_count)
    DETECTED_RISKS.labels("failed").inc(len(result.failed))
    for record in result.persisted:
        await publish_confirmed_risk_event(record)

    if not aggregator.staged:
        staging.close(batch_id)

    return ConfirmDetectionResponse(
        batch_id=batch_id,
        persisted_count=result.persisted_count,
        failed_count=len(result.failed),
        risks=result.persisted,
    )


@router.delete("/risk-detections/{batch_id}", status_code=204)
async def dismiss_detection_batch(
    batch_id: str,
    staging: DetectionStaging = Depends(get_detection_staging),
) -> Response:
    staging.get(batch_id)
    staging.close(batch_id)
    logger.info("detection_batch_dismissed", batch_id=batch_id)
    return Response(status_code=204)
