"""
Prometheus metrics, exposed on /metrics.
"""
from prometheus_client import Counter, Histogram

SCORER_CALLS = Counter(
    "secops_scorer_calls_total",
    "Calls made to the external Scorer",
    ["operation", "outcome"],  # operation: score/detect, outcome: ok/unavailable
)

SCORER_LATENCY = Histogram(
    "secops_scorer_latency_seconds",
    "Scorer round-trip time",
    ["operation"],
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

SCORING_FALLBACKS = Counter(
    "secops_scoring_fallbacks_total",
    "Assessments created from the default because scoring failed",
    ["kind"],
)

MITIGATION_CHANGES = Counter(
    "secops_mitigation_changes_total",
    "Ledger operations applied to entities",
    ["kind", "operation"],  # operation: add/remove/update
)

DETECTED_RISKS = Counter(
    "secops_detected_risks_total",
    "AI-detected risk candidates by stage",
    ["stage"],  # staged/confirmed/failed
)
