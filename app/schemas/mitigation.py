"""
Mitigation catalog definitions + the per-entity applied snapshots.

An AppliedMitigation copies name/description/category from its definition
at the moment it is applied. Later edits to the definition never touch it.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MitigationCategory(str, Enum):
    PERSONNEL = "personnel"
    ASSET = "asset"
    TRAVEL = "travel"
    GENERAL = "general"  # offered alongside every other category


class MitigationDefinition(BaseModel):
    """Catalog entry: seeded or user-created (custom)."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    organization_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    category: MitigationCategory
    default_reduction: int = Field(ge=0, le=100)
    is_custom: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MitigationDefinitionCreate(BaseModel):
    organization_id: Optional[str] = None
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    category: MitigationCategory
    default_reduction: int = Field(10, ge=0, le=100)


class MitigationDefinitionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[MitigationCategory] = None
    default_reduction: Optional[int] = Field(None, ge=0, le=100)


class AppliedMitigation(BaseModel):
    """Snapshot of a definition as applied to one entity."""
    mitigation_id: str
    name: str
    description: str = ""
    category: MitigationCategory
    applied_reduction: int = Field(ge=0, le=100)
    notes: Optional[str] = None
    applied_by: str
    applied_at: datetime


class AppliedMitigationUpdate(BaseModel):
    """Only the supplied fields are replaced."""
    applied_reduction: Optional[int] = Field(None, ge=0, le=100)
    notes: Optional[str] = None


class ApplyMitigationRequest(BaseModel):
    mitigation_id: str
