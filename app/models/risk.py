"""
Organizational risk register.
AI-detected entries land here only after human confirmation.
"""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from app.models.database import SCHEMA, Base
from app.models.entities import _now, _uuid


class Risk(Base):
    __tablename__ = "risk"
    __table_args__ = {"schema": SCHEMA}

    id = Column(String(36), primary_key=True, default=_uuid)
    organization_id = Column(String(36), nullable=False, index=True)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="identified")

    # ── Impact × likelihood (1..5 each) ──
    impact = Column(String(10), nullable=False)
    likelihood = Column(String(10), nullable=False)
    risk_score = Column(Integer, nullable=False)

    mitigation_plan = Column(Text, nullable=True)
    department = Column(String(100), nullable=True)

    # ── AI provenance ──
    is_ai_generated = Column(Boolean, nullable=False, default=False)
    ai_confidence = Column(Integer, nullable=True)
    ai_detection_date = Column(DateTime(timezone=True), nullable=True)

    # ── At most one source is set ──
    source_asset_id = Column(String(36), nullable=True)
    source_personnel_id = Column(String(36), nullable=True)
    source_incident_id = Column(String(36), nullable=True)
    source_travel_plan_id = Column(String(36), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)

    def __repr__(self):
        return f"<Risk {self.id} score={self.risk_score} ai={self.is_ai_generated}>"
