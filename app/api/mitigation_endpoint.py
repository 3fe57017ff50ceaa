"""
Mitigation catalog endpoints (selector + definitions page).

GET    /v1/mitigations?category=travel  → travel + general, by name
POST   /v1/mitigations                  → custom definition
PUT    /v1/mitigations/{id}
DELETE /v1/mitigations/{id}

Definition edits never change mitigations already applied to entities.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Response

from app.api.dependencies import get_catalog
from app.schemas.mitigation import (
    MitigationCategory,
    MitigationDefinition,
    MitigationDefinitionCreate,
    MitigationDefinitionUpdate,
)
from app.services.mitigation_catalog import MitigationCatalog

router = APIRouter(prefix="/v1/mitigations", tags=["mitigations"])


@router.get("", response_model=list[MitigationDefinition])
async def list_mitigations(
    category: Optional[MitigationCategory] = None,
    catalog: MitigationCatalog = Depends(get_catalog),
) -> list[MitigationDefinition]:
    return await catalog.list_mitigations(category)


@router.post("", response_model=MitigationDefinition, status_code=201)
async def create_mitigation(
    body: MitigationDefinitionCreate,
    catalog: MitigationCatalog = Depends(get_catalog),
) -> MitigationDefinition:
    return await catalog.create_custom(body)


@router.put("/{mitigation_id}", response_model=MitigationDefinition)
async def update_mitigation(
    mitigation_id: str,
    body: MitigationDefinitionUpdate,
    catalog: MitigationCatalog = Depends(get_catalog),
) -> MitigationDefinition:
    return await catalog.update(mitigation_id, body)


@router.delete("/{mitigation_id}", status_code=204)
async def delete_mitigation(
    mitigation_id: str,
    catalog: MitigationCatalog = Depends(get_catalog),
) -> Response:
    await catalog.delete(mitigation_id)
    return Response(status_code=204)
