"""
FastAPI dependencies shared by the routers. Tests override get_store and
get_scorer with in-memory fakes.
"""
from __future__ import annotations

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.models.database import get_db
from app.services.assessment_service import AssessmentService
from app.services.mitigation_catalog import MitigationCatalog
from app.services.scorer_client import ScorerClient
from app.services.store import SqlStore


def get_store(db: AsyncSession = Depends(get_db)) -> SqlStore:
    return SqlStore(db)


def get_scorer(settings: Settings = Depends(get_settings)) -> ScorerClient:
    return ScorerClient.from_settings(settings)


def get_catalog(store=Depends(get_store)) -> MitigationCatalog:
    return MitigationCatalog(store)


def get_assessment_service(
    store=Depends(get_store),
    catalog: MitigationCatalog = Depends(get_catalog),
    scorer=Depends(get_scorer),
    settings: Settings = Depends(get_settings),
) -> AssessmentService:
    return AssessmentService(store, catalog, scorer, default_score=settings.default_risk_score)


def get_actor(x_actor: str = Header("Unknown", alias="X-Actor")) -> str:
    """Display identity stamped on applied mitigations."""
    return x_actor.strip() or "Unknown"
