"""
AI risk detection aggregator

Orchestrates the org-wide sweep:
  detect   → one Scorer call with the whole snapshot, dedup the candidates
  stage    → hold candidates in memory for human review
  confirm  → persist the selected subset as AI-generated register entries

There is no detect → persist shortcut: only staged candidates can be
confirmed. All inference lives in the Scorer.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional, Protocol

import structlog

from app.core.errors import DetectionDisabledError, NotFoundError
from app.schemas.detection import (
    ConfirmationResult,
    DetectedRisk,
    OrganizationSnapshot,
    RiskLevel,
    RiskRecord,
    RiskStatus,
    SourceType,
)

logger = structlog.get_logger()


LEVEL_VALUES: dict[RiskLevel, int] = {
    RiskLevel.VERY_LOW: 1,
    RiskLevel.LOW: 2,
    RiskLevel.MEDIUM: 3,
    RiskLevel.HIGH: 4,
    RiskLevel.VERY_HIGH: 5,
}

SOURCE_FIELDS: dict[SourceType, str] = {
    SourceType.ASSET: "source_asset_id",
    SourceType.PERSONNEL: "source_personnel_id",
    SourceType.INCIDENT: "source_incident_id",
    SourceType.TRAVEL: "source_travel_plan_id",
}

MITIGATION_PLAN_SEPARATOR = "\n\n"


class DetectionScorer(Protocol):
    async def detect_risks(
        self, organization_id: str, snapshot: OrganizationSnapshot
    ) -> list[DetectedRisk]: ...


class RiskSink(Protocol):
    async def add_risk(self, record: RiskRecord) -> RiskRecord: ...


def _normalize_title(title: str) -> str:
    return " ".join(title.lower().split())


def dedupe_candidates(
    candidates: Iterable[DetectedRisk],
    existing_titles: Iterable[str] = (),
) -> list[DetectedRisk]:
    """
    First occurrence wins per (title, source_type, source_id).
    Candidates repeating an existing register title are dropped.
    """
    known = {_normalize_title(t) for t in existing_titles if t}
    seen: set[tuple[str, SourceType, Optional[str]]] = set()
    unique: list[DetectedRisk] = []

    for candidate in candidates:
        title = _normalize_title(candidate.title)
        key = (title, candidate.source_type, candidate.source_id)
        if title in known or key in seen:
            continue
        seen.add(key)
        unique.append(candidate)

    return unique


def risk_score(impact: RiskLevel, likelihood: RiskLevel) -> int:
    return LEVEL_VALUES[impact] * LEVEL_VALUES[likelihood]


def to_risk_record(
    detected: DetectedRisk,
    organization_id: str,
    detected_at: datetime,
) -> RiskRecord:
    # Pattern-level risks have no single source row
    sources = {}
    source_field = SOURCE_FIELDS.get(detected.source_type)
    if source_field is not None:
        sources[source_field] = detected.source_id

    return RiskRecord(
        organization_id=organization_id,
        title=detected.title,
        description=detected.description,
        category=detected.category,
        status=RiskStatus.IDENTIFIED,
        impact=detected.impact,
        likelihood=detected.likelihood,
        risk_score=risk_score(detected.impact, detected.likelihood),
        mitigation_plan=MITIGATION_PLAN_SEPARATOR.join(detected.recommendations),
        department=detected.department,
        is_ai_generated=True,
        ai_confidence=detected.confidence,
        ai_detection_date=detected_at,
        **sources,
    )


class RiskDetectionAggregator:

    def __init__(self, organization_id: str):
        self.organization_id = organization_id
        self._staged: dict[str, DetectedRisk] = {}

    @property
    def staged(self) -> list[DetectedRisk]:
        return list(self._staged.values())

    def check_enabled(self, ai_enabled: bool) -> None:
        if not ai_enabled:
            raise DetectionDisabledError(
                f"AI risk detection is disabled for organization {self.organization_id}"
            )

    async def detect(
        self,
        snapshot: OrganizationSnapshot,
        scorer: DetectionScorer,
        ai_enabled: bool,
    ) -> list[DetectedRisk]:
        self.check_enabled(ai_enabled)

        raw = await scorer.detect_risks(self.organization_id, snapshot)
        existing_titles = [r.get("title", "") for r in snapshot.risks]
        candidates = dedupe_candidates(raw, existing_titles)

        logger.info(
            "risk_detection_complete",
            organization_id=self.organization_id,
            received=len(raw),
            candidates=len(candidates),
        )
        return candidates

    def stage(self, detected: list[DetectedRisk]) -> list[DetectedRisk]:
        """Replaces whatever was staged before. An empty list is a normal outcome."""
        self._staged = {}
        if not detected:
            logger.info("risk_detection_empty", organization_id=self.organization_id)
            return []

        for candidate in detected:
            candidate_id = str(uuid.uuid4())
            self._staged[candidate_id] = candidate.model_copy(update={"candidate_id": candidate_id})
        return self.staged

    async def confirm(
        self,
        candidate_ids: list[str],
        store: RiskSink,
        now: Optional[datetime] = None,
    ) -> ConfirmationResult:
        """
        Persist each selected candidate independently. A failure on one
        item does not undo the others; failed candidates stay staged.

        Selected candidates are taken out of staging before the first await,
        so a concurrent confirm of the same batch sees them as not staged.
        """
        selected = list(dict.fromkeys(candidate_ids))
        unknown = [cid for cid in selected if cid not in self._staged]
        if unknown:
            raise NotFoundError(f"Candidates not staged: {', '.join(unknown)}")

        claimed = {cid: self._staged.pop(cid) for cid in selected}
        detected_at = now or datetime.now(timezone.utc)
        result = ConfirmationResult()

        for candidate_id, candidate in claimed.items():
            record = to_risk_record(candidate, self.organization_id, detected_at)
            try:
                saved = await store.add_risk(record)
            except Exception as e:
                logger.warning(
                    "detected_risk_persist_failed",
                    organization_id=self.organization_id,
                    candidate_id=candidate_id,
                    error=str(e),
                )
                result.failed.append(candidate_id)
                self._staged[candidate_id] = candidate
                continue
            result.persisted.append(saved)

        logger.info(
            "detected_risks_confirmed",
            organization_id=self.organization_id,
            persisted=result.persisted_count,
            failed=len(result.failed),
        )
        return result
