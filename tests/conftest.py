"""
Shared fixtures: in-memory Store and Scorer fakes, API client with
dependency overrides. No database or network is touched.
"""
from __future__ import annotations

import asyncio
import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import pytest

from app.core.errors import ScoringUnavailableError
from app.schemas.assessment import EntityKind, RiskTrend, ScoringResult
from app.schemas.detection import DetectedRisk, OrganizationSnapshot, RiskRecord
from app.schemas.mitigation import MitigationCategory, MitigationDefinition
from app.services.store import StoredEntity


def make_definition(
    mitigation_id: str = "mit-001",
    default_reduction: int = 10,
    category: MitigationCategory = MitigationCategory.GENERAL,
    name: Optional[str] = None,
) -> MitigationDefinition:
    return MitigationDefinition(
        id=mitigation_id,
        name=name or f"Mitigation {mitigation_id}",
        description=f"Description of {mitigation_id}",
        category=category,
        default_reduction=default_reduction,
        is_custom=False,
    )


def make_detected(**overrides) -> DetectedRisk:
    kwargs = {
        "title": "Unpatched badge readers",
        "description": "Firmware on HQ badge readers is two years old",
        "category": "security",
        "impact": "high",
        "likelihood": "medium",
        "confidence": 78,
        "source_type": "asset",
        "source_id": "asset-42",
        "department": "Facilities",
        "recommendations": ["Update firmware", "Schedule quarterly patch review"],
    }
    kwargs.update(overrides)
    return DetectedRisk(**kwargs)


class InMemoryStore:

    def __init__(self) -> None:
        self.entities: dict[tuple[EntityKind, str], StoredEntity] = {}
        self.mitigations: dict[str, MitigationDefinition] = {}
        self.risks: list[RiskRecord] = []
        self.org_settings: dict[str, dict] = {}
        self.snapshot = OrganizationSnapshot()
        self.failing_titles: set[str] = set()
        self.add_risk_delay = 0.0
        self.snapshot_calls = 0

    # ── Entities ──

    async def get_entity(self, kind: EntityKind, entity_id: str) -> Optional[StoredEntity]:
        entity = self.entities.get((kind, entity_id))
        return copy.deepcopy(entity) if entity else None

    async def create_entity(self, kind, organization_id, name, attributes, risk_assessment, mitigations):
        entity = StoredEntity(
            id=str(uuid.uuid4()),
            kind=kind,
            organization_id=organization_id,
            name=name,
            attributes=copy.deepcopy(attributes),
            risk_assessment=copy.deepcopy(risk_assessment),
            mitigations=copy.deepcopy(mitigations),
        )
        self.entities[(kind, entity.id)] = entity
        return copy.deepcopy(entity)

    async def save_assessment(self, kind, entity_id, risk_assessment, mitigations):
        entity = self.entities.get((kind, entity_id))
        if entity is None:
            return None
        entity.risk_assessment = copy.deepcopy(risk_assessment)
        entity.mitigations = copy.deepcopy(mitigations)
        return copy.deepcopy(entity)

    def put_entity(self, kind: EntityKind, entity_id: str, risk_assessment: dict, mitigations=None) -> None:
        self.entities[(kind, entity_id)] = StoredEntity(
            id=entity_id,
            kind=kind,
            organization_id="org-1",
            name=f"{kind.value} {entity_id}",
            attributes={},
            risk_assessment=risk_assessment,
            mitigations=mitigations,
        )

    # ── Catalog ──

    async def list_mitigations(self, categories):
        return sorted(
            (m for m in self.mitigations.values() if m.category in categories),
            key=lambda m: m.name,
        )

    async def get_mitigation(self, mitigation_id):
        return self.mitigations.get(mitigation_id)

    async def create_mitigation(self, **values: Any):
        definition = MitigationDefinition(id=str(uuid.uuid4()), **values)
        self.mitigations[definition.id] = definition
        return definition

    async def update_mitigation(self, mitigation_id, changes):
        current = self.mitigations.get(mitigation_id)
        if current is None:
            return None
        updated = current.model_copy(update=changes)
        self.mitigations[mitigation_id] = updated
        return updated

    async def delete_mitigation(self, mitigation_id):
        return self.mitigations.pop(mitigation_id, None) is not None

    def put_mitigation(self, definition: MitigationDefinition) -> None:
        self.mitigations[definition.id] = definition

    # ── Risks / organization ──

    async def add_risk(self, record: RiskRecord) -> RiskRecord:
        await asyncio.sleep(self.add_risk_delay)
        if record.title in self.failing_titles:
            raise RuntimeError("insert failed")
        saved = record.model_copy(update={"id": str(uuid.uuid4())})
        self.risks.append(saved)
        return saved

    async def ai_detection_enabled(self, organization_id):
        return self.org_settings.get(organization_id, {}).get("ai", {}).get("enabled")

    async def organization_snapshot(self, organization_id):
        self.snapshot_calls += 1
        return self.snapshot


class FakeScorer:

    def __init__(
        self,
        result: Optional[ScoringResult] = None,
        error: Optional[Exception] = None,
        detected: Optional[list[DetectedRisk]] = None,
    ):
        self.result = result or ScoringResult(
            score=60,
            components={"accessRisk": 40, "travelRisk": 20},
            trend=RiskTrend.STABLE,
            confidence=85,
            recommendations=["Enable 2FA"],
            explanation="Elevated access footprint",
        )
        self.error = error
        self.detected = detected or []
        self.score_calls: list[tuple[EntityKind, str, dict]] = []
        self.detect_calls: list[tuple[str, OrganizationSnapshot]] = []

    async def score_risk(self, kind, organization_id, snapshot):
        self.score_calls.append((kind, organization_id, snapshot))
        if self.error:
            raise self.error
        return self.result

    async def detect_risks(self, organization_id, snapshot):
        self.detect_calls.append((organization_id, snapshot))
        if self.error:
            raise self.error
        return list(self.detected)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def scorer() -> FakeScorer:
    return FakeScorer()


@pytest.fixture
def failing_scorer() -> FakeScorer:
    return FakeScorer(error=ScoringUnavailableError("Scorer down"))


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)
