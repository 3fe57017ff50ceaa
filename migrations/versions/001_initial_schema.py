"""
001: Initial schema: organizations, assessed entities, incidents,
mitigation catalog and the risk register

Assessment + applied mitigations are embedded JSON on each entity row.

Revision ID: 001
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSON

revision = "001"
down_revision = None
branch_labels = None
depends_on = None

SCHEMA = "secops"

ASSESSED_TABLES = ("asset", "personnel", "travel_plan")


def _assessed_entity_columns() -> list:
    return [
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("organization_id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("attributes", JSON, nullable=False),
        sa.Column("risk_assessment", JSON, nullable=False),
        sa.Column("mitigations", JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.execute(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA}")

    op.create_table(
        "organization",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("settings", JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        schema=SCHEMA,
    )

    for table in ASSESSED_TABLES:
        extra = []
        if table == "travel_plan":
            extra.append(sa.Column("status", sa.String(20), nullable=False, server_default="pending"))
        op.create_table(table, *_assessed_entity_columns(), *extra, schema=SCHEMA)
        op.create_index(f"ix_{table}_organization_id", table, ["organization_id"], schema=SCHEMA)

    op.create_table(
        "incident",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("organization_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("severity", sa.String(20), nullable=False, server_default="medium"),
        sa.Column("status", sa.String(20), nullable=False, server_default="open"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        schema=SCHEMA,
    )
    op.create_index("ix_incident_organization_id", "incident", ["organization_id"], schema=SCHEMA)

    op.create_table(
        "mitigation_definition",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("organization_id", sa.String(36), nullable=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("default_reduction", sa.Integer, nullable=False, server_default="10"),
        sa.Column("is_custom", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("default_reduction BETWEEN 0 AND 100", name="ck_mitigation_default_reduction"),
        sa.CheckConstraint(
            "category IN ('personnel', 'asset', 'travel', 'general')",
            name="ck_mitigation_category",
        ),
        schema=SCHEMA,
    )
    op.create_index("ix_mitigation_definition_category", "mitigation_definition", ["category"], schema=SCHEMA)
    op.create_index(
        "ix_mitigation_definition_organization_id", "mitigation_definition", ["organization_id"], schema=SCHEMA,
    )

    op.create_table(
        "risk",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("organization_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="identified"),
        sa.Column("impact", sa.String(10), nullable=False),
        sa.Column("likelihood", sa.String(10), nullable=False),
        sa.Column("risk_score", sa.Integer, nullable=False),
        sa.Column("mitigation_plan", sa.Text, nullable=True),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("is_ai_generated", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("ai_confidence", sa.Integer, nullable=True),
        sa.Column("ai_detection_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("source_asset_id", sa.String(36), nullable=True),
        sa.Column("source_personnel_id", sa.String(36), nullable=True),
        sa.Column("source_incident_id", sa.String(36), nullable=True),
        sa.Column("source_travel_plan_id", sa.String(36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("risk_score BETWEEN 1 AND 25", name="ck_risk_score_range"),
        schema=SCHEMA,
    )
    op.create_index("ix_risk_organization_id", "risk", ["organization_id"], schema=SCHEMA)
    op.create_index("ix_risk_is_ai_generated", "risk", ["is_ai_generated"], schema=SCHEMA)


def downgrade() -> None:
    op.drop_table("risk", schema=SCHEMA)
    op.drop_table("mitigation_definition", schema=SCHEMA)
    op.drop_table("incident", schema=SCHEMA)
    for table in reversed(ASSESSED_TABLES):
        op.drop_table(table, schema=SCHEMA)
    op.drop_table("organization", schema=SCHEMA)
