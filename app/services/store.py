"""
SQLAlchemy-backed Store.

Thin CRUD over the entity, catalog and risk-register tables. The embedded
assessment / mitigation documents are read and written as opaque JSON;
all risk math lives in app.scoring.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.entities import Asset, Incident, Organization, Personnel, TravelPlan
from app.models.mitigation import MitigationDefinitionRow
from app.models.risk import Risk
from app.schemas.assessment import EntityKind
from app.schemas.detection import OrganizationSnapshot, RiskRecord
from app.schemas.mitigation import MitigationCategory, MitigationDefinition

ENTITY_MODELS = {
    EntityKind.ASSET: Asset,
    EntityKind.PERSONNEL: Personnel,
    EntityKind.TRAVEL: TravelPlan,
}


@dataclass
class StoredEntity:
    id: str
    kind: EntityKind
    organization_id: str
    name: str
    attributes: dict[str, Any]
    risk_assessment: dict[str, Any]
    mitigations: Optional[list[dict[str, Any]]] = field(default=None)


def _entity_from_row(kind: EntityKind, row) -> StoredEntity:
    return StoredEntity(
        id=row.id,
        kind=kind,
        organization_id=row.organization_id,
        name=row.name,
        attributes=row.attributes or {},
        risk_assessment=row.risk_assessment or {},
        mitigations=row.mitigations,
    )


def _entity_summary(row) -> dict[str, Any]:
    return {
        "id": row.id,
        "name": row.name,
        **(row.attributes or {}),
        "risk_assessment": row.risk_assessment,
        "mitigations": row.mitigations or [],
    }


class SqlStore:

    def __init__(self, session: AsyncSession):
        self.session = session

    # ── Entities ──

    async def get_entity(self, kind: EntityKind, entity_id: str) -> Optional[StoredEntity]:
        row = await self.session.get(ENTITY_MODELS[kind], entity_id)
        return _entity_from_row(kind, row) if row else None

    async def create_entity(
        self,
        kind: EntityKind,
        organization_id: str,
        name: str,
        attributes: dict[str, Any],
        risk_assessment: dict[str, Any],
        mitigations: Optional[list[dict[str, Any]]],
    ) -> StoredEntity:
        row = ENTITY_MODELS[kind](
            organization_id=organization_id,
            name=name,
            attributes=attributes,
            risk_assessment=risk_assessment,
            mitigations=mitigations,
        )
        self.session.add(row)
        await self.session.commit()
        return _entity_from_row(kind, row)

    async def save_assessment(
        self,
        kind: EntityKind,
        entity_id: str,
        risk_assessment: dict[str, Any],
        mitigations: Optional[list[dict[str, Any]]],
    ) -> Optional[StoredEntity]:
        row = await self.session.get(ENTITY_MODELS[kind], entity_id)
        if row is None:
            return None
        row.risk_assessment = risk_assessment
        row.mitigations = mitigations
        await self.session.commit()
        return _entity_from_row(kind, row)

    # ── Mitigation catalog ──

    async def list_mitigations(self, categories: list[MitigationCategory]) -> list[MitigationDefinition]:
        stmt = (
            select(MitigationDefinitionRow)
            .where(or_(*(MitigationDefinitionRow.category == c.value for c in categories)))
            .order_by(MitigationDefinitionRow.name)
        )
        result = await self.session.execute(stmt)
        return [MitigationDefinition.model_validate(r) for r in result.scalars()]

    async def get_mitigation(self, mitigation_id: str) -> Optional[MitigationDefinition]:
        row = await self.session.get(MitigationDefinitionRow, mitigation_id)
        return MitigationDefinition.model_validate(row) if row else None

    async def create_mitigation(self, **values: Any) -> MitigationDefinition:
        if isinstance(values.get("category"), MitigationCategory):
            values["category"] = values["category"].value
        row = MitigationDefinitionRow(**values)
        self.session.add(row)
        await self.session.commit()
        return MitigationDefinition.model_validate(row)

    async def update_mitigation(self, mitigation_id: str, changes: dict[str, Any]) -> Optional[MitigationDefinition]:
        row = await self.session.get(MitigationDefinitionRow, mitigation_id)
        if row is None:
            return None
        for key, value in changes.items():
            setattr(row, key, value.value if isinstance(value, MitigationCategory) else value)
        await self.session.commit()
        return MitigationDefinition.model_validate(row)

    async def delete_mitigation(self, mitigation_id: str) -> bool:
        row = await self.session.get(MitigationDefinitionRow, mitigation_id)
        if row is None:
            return False
        await self.session.delete(row)
        await self.session.commit()
        return True

    # ── Risk register ──

    async def add_risk(self, record: RiskRecord) -> RiskRecord:
        row = Risk(**record.model_dump(mode="python", exclude={"id"}, exclude_none=True))
        for enum_field in ("category", "status", "impact", "likelihood"):
            setattr(row, enum_field, getattr(record, enum_field).value)
        self.session.add(row)
        try:
            await self.session.commit()
        except Exception:
            # keep the session usable for the rest of a confirmation batch
            await self.session.rollback()
            raise
        return RiskRecord.model_validate(row)

    # ── Organization ──

    async def ai_detection_enabled(self, organization_id: str) -> Optional[bool]:
        """settings.ai.enabled, or None when the organization does not say."""
        org = await self.session.get(Organization, organization_id)
        if org is None:
            return None
        enabled = (org.settings or {}).get("ai", {}).get("enabled")
        return None if enabled is None else bool(enabled)

    async def organization_snapshot(self, organization_id: str) -> OrganizationSnapshot:
        async def rows(model):
            result = await self.session.execute(
                select(model).where(model.organization_id == organization_id)
            )
            return list(result.scalars())

        return OrganizationSnapshot(
            assets=[_entity_summary(r) for r in await rows(Asset)],
            personnel=[_entity_summary(r) for r in await rows(Personnel)],
            travel_plans=[
                {**_entity_summary(r), "status": r.status} for r in await rows(TravelPlan)
            ],
            incidents=[
                {
                    "id": r.id,
                    "title": r.title,
                    "description": r.description,
                    "severity": r.severity,
                    "status": r.status,
                }
                for r in await rows(Incident)
            ],
            risks=[
                {
                    "id": r.id,
                    "title": r.title,
                    "category": r.category,
                    "status": r.status,
                    "risk_score": r.risk_score,
                }
                for r in await rows(Risk)
            ],
        )
