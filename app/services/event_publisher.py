"""
Kafka event publisher: fire-and-forget.

Publishes assessment changes and confirmed AI risks for downstream
consumers (dashboards, notifications, audit log).
Gracefully degrades if Kafka is unavailable.
"""
from __future__ import annotations

import json
from datetime import datetime, timezone

import structlog
from app.core.config import get_settings
from app.schemas.assessment import EntityKind, RiskAssessment
from app.schemas.detection import RiskRecord

logger = structlog.get_logger()

_producer = None


async def _get_producer():
    global _producer
    settings = get_settings()
    if not settings.kafka_enabled:
        return None
    if _producer is None:
        from aiokafka import AIOKafkaProducer
        _producer = AIOKafkaProducer(bootstrap_servers=settings.kafka_bootstrap)
        await _producer.start()
    return _producer


async def _publish(key: str, event: dict) -> None:
    settings = get_settings()
    if not settings.kafka_enabled:
        return

    try:
        producer = await _get_producer()
        if producer:
            await producer.send_and_wait(
                settings.kafka_topic_risk_events,
                json.dumps(event).encode("utf-8"),
                key=key.encode("utf-8"),
            )
            logger.info("kafka_event_published", event_type=event["event_type"], key=key)
    except Exception as e:
        # Fire-and-forget: log but don't fail the request
        logger.warning("kafka_publish_failed", event_type=event["event_type"], error=str(e))


async def publish_assessment_event(kind: EntityKind, entity_id: str, assessment: RiskAssessment) -> None:
    await _publish(entity_id, {
        "event_type": "RISK_ASSESSMENT_UPDATED",
        "entity_kind": kind.value,
        "entity_id": entity_id,
        "overall": assessment.overall,
        "original_score": assessment.original_score,
        "total_risk_reduction": assessment.total_risk_reduction,
        "mitigation_applied": assessment.mitigation_applied,
        "updated_at": assessment.last_updated.isoformat(),
    })


async def publish_confirmed_risk_event(record: RiskRecord) -> None:
    await _publish(record.id or record.title, {
        "event_type": "AI_RISK_CONFIRMED",
        "risk_id": record.id,
        "organization_id": record.organization_id,
        "title": record.title,
        "risk_score": record.risk_score,
        "ai_confidence": record.ai_confidence,
        "confirmed_at": datetime.now(timezone.utc).isoformat(),
    })
