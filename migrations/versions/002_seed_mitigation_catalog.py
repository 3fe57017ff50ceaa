"""
002: Seed the shared mitigation catalog

Seeded entries have no organization and is_custom = false. Organizations
add their own custom definitions through the API.

Revision ID: 002
Create Date: 2026-10-18
"""
import uuid

from alembic import op
import sqlalchemy as sa

revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None

SCHEMA = "secops"

# (name, category, default_reduction, description)
SEED_MITIGATIONS = [
    # ── Personnel ──
    ("Two-factor authentication", "personnel", 10, "Enforce 2FA on all corporate accounts"),
    ("Security awareness training", "personnel", 8, "Annual phishing and social-engineering training"),
    ("Background re-screening", "personnel", 12, "Periodic background and clearance re-check"),
    ("Least-privilege access review", "personnel", 10, "Quarterly review of access rights"),
    # ── Asset ──
    ("CCTV coverage", "asset", 10, "Monitored camera coverage of entrances and perimeter"),
    ("Access control system", "asset", 15, "Badge-controlled entry with audit trail"),
    ("Perimeter fencing", "asset", 8, "Physical perimeter barrier"),
    ("Endpoint protection", "asset", 10, "Managed EDR on connected equipment"),
    ("Backup power", "asset", 5, "UPS / generator for critical systems"),
    # ── Travel ──
    ("Pre-travel security briefing", "travel", 10, "Destination-specific threat briefing"),
    ("Vetted ground transportation", "travel", 12, "Pre-arranged, vetted drivers"),
    ("GPS check-in schedule", "travel", 8, "Scheduled location check-ins with the operations center"),
    ("Restrict travel to tier-1 countries", "travel", 15, "Limit itinerary to low-risk destinations"),
    ("Travel insurance with evacuation", "travel", 8, "Medical and security evacuation coverage"),
    # ── General ──
    ("Incident response plan", "general", 10, "Documented and rehearsed incident response"),
    ("24/7 security operations monitoring", "general", 12, "Continuous monitoring by the SOC"),
    ("Emergency contact registry", "general", 5, "Up-to-date emergency contacts"),
]


def upgrade() -> None:
    table = sa.table(
        "mitigation_definition",
        sa.column("id", sa.String),
        sa.column("name", sa.String),
        sa.column("category", sa.String),
        sa.column("default_reduction", sa.Integer),
        sa.column("description", sa.Text),
        sa.column("is_custom", sa.Boolean),
        schema=SCHEMA,
    )
    op.bulk_insert(table, [
        {
            "id": str(uuid.uuid5(uuid.NAMESPACE_URL, f"secops/mitigation/{name}")),
            "name": name,
            "category": category,
            "default_reduction": reduction,
            "description": description,
            "is_custom": False,
        }
        for name, category, reduction, description in SEED_MITIGATIONS
    ])


def downgrade() -> None:
    op.execute(f"DELETE FROM {SCHEMA}.mitigation_definition WHERE is_custom = false AND organization_id IS NULL")
