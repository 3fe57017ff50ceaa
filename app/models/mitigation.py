"""
Mitigation catalog table. Applied mitigations are NOT stored here: they
are snapshot-copied onto the entity row when applied.
"""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from app.models.database import SCHEMA, Base
from app.models.entities import _now, _uuid


class MitigationDefinitionRow(Base):
    __tablename__ = "mitigation_definition"
    __table_args__ = {"schema": SCHEMA}

    id = Column(String(36), primary_key=True, default=_uuid)
    organization_id = Column(String(36), nullable=True, index=True)  # NULL for seeded entries
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(20), nullable=False, index=True)
    default_reduction = Column(Integer, nullable=False, default=10)
    is_custom = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)

    def __repr__(self):
        return f"<MitigationDefinition {self.id} {self.name!r} -{self.default_reduction}>"
