"""
Assessment service: the one scoring + mitigation flow shared by the
asset, personnel and travel-plan screens.

Scoring is best-effort: a ScoringUnavailableError is swallowed here,
logged, and replaced with the documented default assessment, so entity
creation always completes.
"""
from __future__ import annotations

from typing import Any, Optional, Protocol

import structlog

from app.core.errors import InvalidAssessmentError, NotFoundError, ScoringUnavailableError
from app.core.metrics import MITIGATION_CHANGES, SCORING_FALLBACKS
from app.schemas.assessment import EntityKind, RiskAssessment, ScoringResult
from app.schemas.entity import EntityCreateRequest, EntityResponse
from app.schemas.mitigation import AppliedMitigationUpdate
from app.scoring.defaults import DEFAULT_RISK_SCORE
from app.scoring.engine import (
    assessment_from_scoring,
    default_assessment,
    recompute_from_ledger,
    restore_assessment,
)
from app.scoring.ledger import MitigationLedger
from app.services.event_publisher import publish_assessment_event
from app.services.mitigation_catalog import MitigationCatalog
from app.services.scoring_sessions import ScoringSessions
from app.services.store import StoredEntity

logger = structlog.get_logger()


class EntityScorer(Protocol):
    async def score_risk(
        self, kind: EntityKind, organization_id: str, snapshot: dict[str, Any]
    ) -> ScoringResult: ...


class AssessmentService:

    def __init__(
        self,
        store,
        catalog: MitigationCatalog,
        scorer: EntityScorer,
        default_score: int = DEFAULT_RISK_SCORE,
    ):
        self.store = store
        self.catalog = catalog
        self.scorer = scorer
        self.default_score = default_score

    # ── Scoring boundary ──

    async def score_entity(
        self,
        kind: EntityKind,
        organization_id: str,
        snapshot: dict[str, Any],
    ) -> tuple[RiskAssessment, bool]:
        """Returns (assessment, used_fallback)."""
        try:
            result = await self.scorer.score_risk(kind, organization_id, snapshot)
        except ScoringUnavailableError as e:
            SCORING_FALLBACKS.labels(kind.value).inc()
            logger.warning(
                "scoring_fallback_used",
                kind=kind.value,
                organization_id=organization_id,
                default_score=self.default_score,
                error=e.message,
            )
            return default_assessment(kind, self.default_score), True
        return assessment_from_scoring(result), False

    # ── Create ──

    async def create_entity(
        self,
        kind: EntityKind,
        request: EntityCreateRequest,
        actor: str,
        sessions: Optional[ScoringSessions] = None,
        draft_id: Optional[str] = None,
    ) -> EntityResponse:
        # Resolve mitigations before the Scorer round trip so bad ids fail fast
        ledger = MitigationLedger()
        for mitigation_id in request.mitigation_ids:
            ledger.add(await self.catalog.get(mitigation_id), actor)

        snapshot = {
            "name": request.name,
            "organization_id": request.organization_id,
            **request.attributes,
        }

        async def _score():
            return await self.score_entity(kind, request.organization_id, snapshot)

        if sessions is not None and draft_id:
            assessment, fallback = await sessions.run(draft_id, _score)
        else:
            assessment, fallback = await _score()

        assessment = recompute_from_ledger(assessment, ledger)
        entity = await self.store.create_entity(
            kind,
            organization_id=request.organization_id,
            name=request.name,
            attributes=request.attributes,
            risk_assessment=assessment.to_document(),
            mitigations=ledger.to_documents() or None,
        )

        logger.info(
            "entity_created",
            kind=kind.value,
            entity_id=entity.id,
            overall=assessment.overall,
            original_score=assessment.original_score,
            mitigations=len(ledger),
            scoring_fallback=fallback,
        )
        await publish_assessment_event(kind, entity.id, assessment)
        return _response(entity, assessment, ledger, scoring_fallback=fallback)

    # ── Read ──

    async def get_entity(self, kind: EntityKind, entity_id: str) -> EntityResponse:
        entity, assessment, ledger = await self._load(kind, entity_id)
        return _response(entity, assessment, ledger)

    # ── Edit ──

    async def add_mitigation(
        self, kind: EntityKind, entity_id: str, mitigation_id: str, actor: str
    ) -> EntityResponse:
        entity, assessment, ledger = await self._load(kind, entity_id)
        ledger.add(await self.catalog.get(mitigation_id), actor)
        MITIGATION_CHANGES.labels(kind.value, "add").inc()
        return await self._save(kind, entity, assessment, ledger)

    async def update_mitigation(
        self,
        kind: EntityKind,
        entity_id: str,
        mitigation_id: str,
        changes: AppliedMitigationUpdate,
    ) -> EntityResponse:
        entity, assessment, ledger = await self._load(kind, entity_id)
        ledger.update(mitigation_id, changes.applied_reduction, changes.notes)
        MITIGATION_CHANGES.labels(kind.value, "update").inc()
        return await self._save(kind, entity, assessment, ledger)

    async def remove_mitigation(
        self, kind: EntityKind, entity_id: str, mitigation_id: str
    ) -> EntityResponse:
        entity, assessment, ledger = await self._load(kind, entity_id)
        if not ledger.remove(mitigation_id):
            return _response(entity, assessment, ledger)
        MITIGATION_CHANGES.labels(kind.value, "remove").inc()
        return await self._save(kind, entity, assessment, ledger)

    async def rescore_entity(self, kind: EntityKind, entity_id: str) -> EntityResponse:
        """
        Fetch a new raw score: this is the only path that moves
        original_score. If the Scorer is down the stored assessment is kept.
        Rescoring also replaces a stored assessment that can no longer be read;
        with the Scorer down that one falls back to the default assessment.
        """
        entity, assessment, ledger = await self._load(kind, entity_id, repair=True)
        snapshot = {"name": entity.name, "organization_id": entity.organization_id, **entity.attributes}
        try:
            result = await self.scorer.score_risk(kind, entity.organization_id, snapshot)
        except ScoringUnavailableError as e:
            logger.warning("rescore_skipped", kind=kind.value, entity_id=entity_id, error=e.message)
            if assessment is None:
                SCORING_FALLBACKS.labels(kind.value).inc()
                saved = await self._save(kind, entity, default_assessment(kind, self.default_score), ledger)
                return saved.model_copy(update={"scoring_fallback": True})
            return _response(entity, assessment, ledger, scoring_fallback=True)
        return await self._save(kind, entity, assessment_from_scoring(result), ledger)

    # ── Internals ──

    async def _load(
        self, kind: EntityKind, entity_id: str, repair: bool = False
    ) -> tuple[StoredEntity, Optional[RiskAssessment], MitigationLedger]:
        """With repair=True an unreadable assessment comes back as None instead of raising."""
        entity = await self.store.get_entity(kind, entity_id)
        if entity is None:
            raise NotFoundError(f"{kind.value} {entity_id} not found")
        ledger = MitigationLedger.from_documents(entity.mitigations)
        try:
            assessment, backfilled = restore_assessment(entity.risk_assessment)
        except InvalidAssessmentError as e:
            logger.warning("stored_assessment_unreadable", kind=kind.value, entity_id=entity_id, error=e.message)
            if not repair:
                raise
            return entity, None, ledger
        if backfilled:
            logger.info("legacy_assessment_loaded", kind=kind.value, entity_id=entity_id)
        return entity, assessment, ledger

    async def _save(
        self,
        kind: EntityKind,
        entity: StoredEntity,
        assessment: RiskAssessment,
        ledger: MitigationLedger,
    ) -> EntityResponse:
        assessment = recompute_from_ledger(assessment, ledger)
        saved = await self.store.save_assessment(
            kind,
            entity.id,
            risk_assessment=assessment.to_document(),
            mitigations=ledger.to_documents() or None,
        )
        if saved is None:
            raise NotFoundError(f"{kind.value} {entity.id} not found")

        logger.info(
            "assessment_recomputed",
            kind=kind.value,
            entity_id=entity.id,
            overall=assessment.overall,
            original_score=assessment.original_score,
            total_risk_reduction=assessment.total_risk_reduction,
        )
        await publish_assessment_event(kind, entity.id, assessment)
        return _response(saved, assessment, ledger)


def _response(
    entity: StoredEntity,
    assessment: RiskAssessment,
    ledger: MitigationLedger,
    scoring_fallback: bool = False,
) -> EntityResponse:
    return EntityResponse(
        id=entity.id,
        kind=entity.kind,
        organization_id=entity.organization_id,
        name=entity.name,
        attributes=entity.attributes,
        risk_assessment=assessment,
        mitigations=list(ledger.entries),
        scoring_fallback=scoring_fallback,
    )
