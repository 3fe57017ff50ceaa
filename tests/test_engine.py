"""
Tests for the assessment engine: creation, mitigation recomputation and
the legacy edit path.
"""
import pytest

from app.core.errors import InvalidAssessmentError
from app.schemas.assessment import EntityKind, RiskAssessment, RiskTrend, ScoringResult
from app.scoring.engine import (
    assessment_from_scoring,
    create_assessment,
    default_assessment,
    recompute_from_ledger,
    restore_assessment,
)
from app.scoring.ledger import MitigationLedger
from conftest import make_definition


def _ledger(*reductions: int) -> MitigationLedger:
    ledger = MitigationLedger()
    for i, reduction in enumerate(reductions):
        ledger.add(make_definition(f"mit-{i}", reduction), actor="tester")
    return ledger


def _assert_invariants(assessment: RiskAssessment, ledger: MitigationLedger) -> None:
    assert assessment.total_risk_reduction == ledger.total_reduction()
    assert assessment.overall == max(0, assessment.original_score - assessment.total_risk_reduction)
    assert assessment.mitigation_applied == (assessment.total_risk_reduction > 0)
    assert 0 <= assessment.overall <= 100


class TestCreate:
    def test_fresh_assessment_unmitigated(self):
        a = create_assessment(43, {"accessRisk": 30}, RiskTrend.DETERIORATING, 85, ["Enable 2FA"], "why")
        assert a.overall == a.original_score == 43
        assert a.total_risk_reduction == 0
        assert a.mitigation_applied is False
        assert a.trend == RiskTrend.DETERIORATING
        assert a.confidence == 85

    @pytest.mark.parametrize("score", [-1, 101, None, 42.5, True])
    def test_rejects_invalid_raw_score(self, score):
        with pytest.raises(ValueError):
            create_assessment(score)

    def test_from_scoring_result(self):
        result = ScoringResult(score=70, components={"geopolitical": 80}, confidence=90, explanation="")
        a = assessment_from_scoring(result)
        assert a.original_score == 70
        assert a.components == {"geopolitical": 80}
        assert a.explanation is None

    def test_default_assessment(self):
        a = default_assessment(EntityKind.PERSONNEL)
        assert a.overall == a.original_score == 25
        assert a.confidence is None
        assert a.explanation is None
        assert a.trend == RiskTrend.STABLE
        assert set(a.components) == {
            "behavioralRisk", "travelRisk", "accessRisk", "complianceRisk", "geographicRisk",
        }


class TestRecompute:
    def test_two_mitigations_then_remove(self):
        ledger = _ledger(15, 20)
        a = recompute_from_ledger(create_assessment(60), ledger)
        assert a.total_risk_reduction == 35
        assert a.overall == 25
        assert a.mitigation_applied is True

        ledger.remove("mit-1")  # the 20-point one
        a = recompute_from_ledger(a, ledger)
        assert a.total_risk_reduction == 15
        assert a.overall == 45

    def test_clamped_at_zero(self):
        a = recompute_from_ledger(create_assessment(10), _ledger(30))
        assert a.overall == 0
        assert a.original_score == 10
        assert a.total_risk_reduction == 30

    def test_edit_reduction_to_zero(self):
        ledger = _ledger(20, 5)
        before = recompute_from_ledger(create_assessment(50), ledger)

        ledger.update("mit-0", applied_reduction=0)
        after = recompute_from_ledger(before, ledger)

        assert after.total_risk_reduction == before.total_risk_reduction - 20
        assert after.overall == before.overall + 20

    def test_edit_bounded_by_original(self):
        ledger = _ledger(40)
        before = recompute_from_ledger(create_assessment(30), ledger)
        assert before.overall == 0

        ledger.update("mit-0", applied_reduction=0)
        after = recompute_from_ledger(before, ledger)
        assert after.overall == 30
        assert after.mitigation_applied is False

    def test_idempotent(self):
        ledger = _ledger(10, 7)
        once = recompute_from_ledger(create_assessment(55), ledger)
        twice = recompute_from_ledger(once, ledger)
        assert (once.overall, once.total_risk_reduction) == (twice.overall, twice.total_risk_reduction) == (38, 17)

    def test_original_score_frozen(self):
        a = create_assessment(80)
        ledger = MitigationLedger()
        for i, reduction in enumerate((10, 25, 30)):
            ledger.add(make_definition(f"mit-{i}", reduction), actor="t")
            a = recompute_from_ledger(a, ledger)
        assert a.original_score == 80
        assert a.overall == 15

    def test_invariant_holds_across_operation_sequence(self):
        a = create_assessment(64)
        ledger = MitigationLedger()
        operations = [
            ("add", "m1", 12), ("add", "m2", 30), ("update", "m1", 50),
            ("remove", "m2", None), ("remove", "m9", None), ("add", "m3", 0),
            ("update", "m3", 100), ("remove", "m1", None), ("update", "m3", 4),
        ]
        for op, mid, value in operations:
            if op == "add":
                ledger.add(make_definition(mid, value), actor="t")
            elif op == "update":
                ledger.update(mid, applied_reduction=value)
            else:
                ledger.remove(mid)
            a = recompute_from_ledger(a, ledger)
            _assert_invariants(a, ledger)
            assert a.original_score == 64

        assert a.overall == 60


class TestRestore:
    def test_round_trip_document(self):
        a = recompute_from_ledger(create_assessment(43, {"accessRisk": 30}, confidence=85), _ledger(25))
        doc = a.to_document()

        assert doc["overall"] == 18
        assert doc["originalScore"] == 43
        assert doc["totalRiskReduction"] == 25
        assert doc["mitigationApplied"] is True
        assert "lastUpdated" in doc

        restored, backfilled = restore_assessment(doc)
        assert backfilled is False
        assert restored.original_score == 43

    def test_legacy_document_backfilled_from_overall(self):
        legacy = {"overall": 40, "components": {"security": 25}, "trend": "stable"}
        restored, backfilled = restore_assessment(legacy)
        assert backfilled is True
        assert restored.original_score == 40

        # First edit persists the backfilled original; the second edit must not compound
        first = recompute_from_ledger(restored, _ledger(10))
        assert first.overall == 30
        again, backfilled_again = restore_assessment(first.to_document())
        assert backfilled_again is False
        second = recompute_from_ledger(again, _ledger(10, 5))
        assert second.overall == 25

    def test_legacy_ai_confidence_key(self):
        restored, _ = restore_assessment({"overall": 25, "aiConfidence": 85, "recommendations": []})
        assert restored.confidence == 85

    def test_fractional_legacy_numbers_rounded(self):
        restored, backfilled = restore_assessment({
            "overall": 42.7,
            "components": {"security": 30.2, "health": 104.0},
            "confidence": 84.6,
            "trend": "stable",
        })
        assert backfilled is True
        assert restored.overall == restored.original_score == 43
        assert restored.components == {"security": 30, "health": 100}
        assert restored.confidence == 85

    @pytest.mark.parametrize("document", [
        {},
        {"trend": "stable"},
        {"overall": None},
        {"overall": "high"},
        {"overall": 40, "trend": "sideways"},
    ])
    def test_unreadable_document(self, document):
        with pytest.raises(InvalidAssessmentError):
            restore_assessment(document)
