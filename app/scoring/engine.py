"""
Risk assessment engine

Shared by all three entity screens (asset, personnel, travel plan):
  1. create_assessment     : raw Scorer result → unmitigated assessment
  2. default_assessment    : documented fallback when scoring fails
  3. recompute_from_ledger : apply the mitigation ledger to the frozen original
  4. restore_assessment    : load a stored document for the edit path

The effective score is ALWAYS re-derived from original_score, never from
the previous overall, so repeated recomputation cannot drift or compound.
"""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional

import structlog
from pydantic import ValidationError

from app.core.errors import InvalidAssessmentError
from app.schemas.assessment import EntityKind, RiskAssessment, RiskTrend, ScoringResult
from app.scoring.defaults import DEFAULT_COMPONENTS, DEFAULT_RISK_SCORE
from app.scoring.ledger import MitigationLedger

logger = structlog.get_logger()


def create_assessment(
    score: int,
    components: Optional[dict[str, int]] = None,
    trend: RiskTrend = RiskTrend.STABLE,
    confidence: Optional[int] = None,
    recommendations: Optional[list[str]] = None,
    explanation: Optional[str] = None,
    now: Optional[datetime] = None,
) -> RiskAssessment:
    """
    Fresh assessment, no mitigation applied yet.
    The score must already be within [0, 100]: out-of-range upstream values
    are a call-boundary policy problem (use default_assessment), not ours.
    """
    if isinstance(score, bool) or not isinstance(score, int) or not 0 <= score <= 100:
        raise ValueError(f"raw score must be an integer in [0, 100], got {score!r}")

    return RiskAssessment(
        overall=score,
        original_score=score,
        components=dict(components or {}),
        trend=trend,
        confidence=confidence,
        recommendations=list(recommendations or []),
        explanation=explanation,
        mitigation_applied=False,
        total_risk_reduction=0,
        last_updated=now or datetime.now(timezone.utc),
    )


def assessment_from_scoring(result: ScoringResult, now: Optional[datetime] = None) -> RiskAssessment:
    return create_assessment(
        score=result.score,
        components=result.components,
        trend=result.trend,
        confidence=result.confidence,
        recommendations=result.recommendations,
        explanation=result.explanation or None,
        now=now,
    )


def default_assessment(
    kind: EntityKind,
    score: int = DEFAULT_RISK_SCORE,
    now: Optional[datetime] = None,
) -> RiskAssessment:
    """Fallback: confidence and explanation stay absent."""
    return create_assessment(
        score=score,
        components=DEFAULT_COMPONENTS[kind],
        trend=RiskTrend.STABLE,
        now=now,
    )


def recompute_from_ledger(
    assessment: RiskAssessment,
    ledger: MitigationLedger,
    now: Optional[datetime] = None,
) -> RiskAssessment:
    total = ledger.total_reduction()
    overall = max(0, assessment.original_score - total)

    return assessment.model_copy(update={
        "overall": overall,
        "total_risk_reduction": total,
        "mitigation_applied": total > 0,
        "last_updated": now or datetime.now(timezone.utc),
    })


def restore_assessment(document: dict) -> tuple[RiskAssessment, bool]:
    """
    Load a stored assessment document for editing.

    Documents written before originalScore existed are backfilled from the
    stored overall. The caller persists the result, so the backfill happens
    exactly once and later edits reference the frozen value.

    Older rows also carry the Scorer's raw numbers unchecked (fractional or
    slightly out of range); those are rounded and clamped here. A document
    that still cannot be read raises InvalidAssessmentError.

    Returns (assessment, backfilled).
    """
    if not isinstance(document, dict) or not _is_number(document.get("overall")):
        raise InvalidAssessmentError("Stored risk assessment has no usable overall score")

    data = dict(document)
    backfilled = False

    if data.get("originalScore") is None and data.get("original_score") is None:
        data["originalScore"] = data["overall"]
        backfilled = True
        logger.info("original_score_backfilled", overall=data["overall"])

    # Older travel-plan documents stored confidence under aiConfidence
    if data.get("confidence") is None and "aiConfidence" in data:
        data["confidence"] = data["aiConfidence"]

    for key in _SCORE_KEYS:
        if _is_number(data.get(key)):
            data[key] = _to_score(data[key])
    for key in ("totalRiskReduction", "total_risk_reduction"):
        if _is_number(data.get(key)):
            data[key] = max(0, round(data[key]))
    if isinstance(data.get("components"), dict):
        data["components"] = {
            name: _to_score(value) if _is_number(value) else value
            for name, value in data["components"].items()
        }

    try:
        return RiskAssessment.model_validate(data), backfilled
    except ValidationError as e:
        raise InvalidAssessmentError(f"Stored risk assessment is unreadable: {e.error_count()} invalid field(s)") from e


_SCORE_KEYS = ("overall", "originalScore", "original_score", "confidence")


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _to_score(value) -> int:
    return min(100, max(0, round(value)))
