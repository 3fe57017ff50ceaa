"""
Mitigation catalog: read-side lookup for the selector plus the
definitions page CRUD.

Editing or deleting a definition never touches mitigations already
applied to entities: those are snapshot copies.
"""
from __future__ import annotations

from typing import Any, Optional, Protocol

import structlog

from app.core.errors import NotFoundError
from app.schemas.mitigation import (
    MitigationCategory,
    MitigationDefinition,
    MitigationDefinitionCreate,
    MitigationDefinitionUpdate,
)

logger = structlog.get_logger()


class CatalogSource(Protocol):
    async def list_mitigations(self, categories: list[MitigationCategory]) -> list[MitigationDefinition]: ...
    async def get_mitigation(self, mitigation_id: str) -> Optional[MitigationDefinition]: ...
    async def create_mitigation(self, **values: Any) -> MitigationDefinition: ...
    async def update_mitigation(self, mitigation_id: str, changes: dict[str, Any]) -> Optional[MitigationDefinition]: ...
    async def delete_mitigation(self, mitigation_id: str) -> bool: ...


def categories_for(category: Optional[MitigationCategory]) -> list[MitigationCategory]:
    """Requested category plus the shared general one; everything if None."""
    if category is None:
        return list(MitigationCategory)
    if category == MitigationCategory.GENERAL:
        return [MitigationCategory.GENERAL]
    return [category, MitigationCategory.GENERAL]


class MitigationCatalog:

    def __init__(self, source: CatalogSource):
        self.source = source

    async def list_mitigations(self, category: Optional[MitigationCategory] = None) -> list[MitigationDefinition]:
        return await self.source.list_mitigations(categories_for(category))

    async def get(self, mitigation_id: str) -> MitigationDefinition:
        definition = await self.source.get_mitigation(mitigation_id)
        if definition is None:
            raise NotFoundError(f"Mitigation {mitigation_id} not found")
        return definition

    async def create_custom(self, data: MitigationDefinitionCreate) -> MitigationDefinition:
        definition = await self.source.create_mitigation(**data.model_dump(), is_custom=True)
        logger.info(
            "custom_mitigation_created",
            mitigation_id=definition.id,
            category=definition.category.value,
            default_reduction=definition.default_reduction,
        )
        return definition

    async def update(self, mitigation_id: str, data: MitigationDefinitionUpdate) -> MitigationDefinition:
        changes = data.model_dump(exclude_none=True)
        if not changes:
            return await self.get(mitigation_id)
        definition = await self.source.update_mitigation(mitigation_id, changes)
        if definition is None:
            raise NotFoundError(f"Mitigation {mitigation_id} not found")
        logger.info("mitigation_definition_updated", mitigation_id=mitigation_id, fields=sorted(changes))
        return definition

    async def delete(self, mitigation_id: str) -> None:
        if not await self.source.delete_mitigation(mitigation_id):
            raise NotFoundError(f"Mitigation {mitigation_id} not found")
        logger.info("mitigation_definition_deleted", mitigation_id=mitigation_id)
