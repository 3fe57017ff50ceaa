"""
Fallback assessment values used when the Scorer is unavailable or
returns something unusable. Component keys follow the dashboard's
per-kind breakdown.
"""
from __future__ import annotations

from app.schemas.assessment import EntityKind

DEFAULT_RISK_SCORE = 25

DEFAULT_COMPONENTS: dict[EntityKind, dict[str, int]] = {
    EntityKind.ASSET: {
        "physicalRisk": 30,
        "cyberRisk": 20,
        "operationalRisk": 25,
        "environmentalRisk": 25,
        "personnelRisk": 20,
    },
    EntityKind.PERSONNEL: {
        "behavioralRisk": 20,
        "travelRisk": 15,
        "accessRisk": 30,
        "complianceRisk": 10,
        "geographicRisk": 25,
    },
    EntityKind.TRAVEL: {
        "geopolitical": 20,
        "security": 25,
        "health": 15,
        "environmental": 20,
        "transportation": 30,
    },
}
