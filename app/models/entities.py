"""
Entities carrying a risk assessment (asset, personnel, travel plan) plus
the rows the detection snapshot reads (organization, incident).

The assessment and the applied mitigations are embedded JSON documents on
the entity row, not a child table.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, JSON, String, Text

from app.models.database import SCHEMA, Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Organization(Base):
    __tablename__ = "organization"
    __table_args__ = {"schema": SCHEMA}

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False)
    # {"ai": {"enabled": bool, ...}}
    settings = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)


class AssessedEntityMixin:
    id = Column(String(36), primary_key=True, default=_uuid)
    organization_id = Column(String(36), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    attributes = Column(JSON, nullable=False, default=dict)

    # ── Embedded risk documents ──
    risk_assessment = Column(JSON, nullable=False)
    mitigations = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)

    def __repr__(self):
        overall = (self.risk_assessment or {}).get("overall")
        return f"<{type(self).__name__} {self.id} overall={overall}>"


class Asset(AssessedEntityMixin, Base):
    __tablename__ = "asset"
    __table_args__ = {"schema": SCHEMA}


class Personnel(AssessedEntityMixin, Base):
    __tablename__ = "personnel"
    __table_args__ = {"schema": SCHEMA}


class TravelPlan(AssessedEntityMixin, Base):
    __tablename__ = "travel_plan"
    __table_args__ = {"schema": SCHEMA}

    status = Column(String(20), nullable=False, default="pending")


class Incident(Base):
    __tablename__ = "incident"
    __table_args__ = {"schema": SCHEMA}

    id = Column(String(36), primary_key=True, default=_uuid)
    organization_id = Column(String(36), nullable=False, index=True)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    severity = Column(String(20), nullable=False, default="medium")
    status = Column(String(20), nullable=False, default="open")
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
