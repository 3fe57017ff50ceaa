"""
Unit tests for the mitigation ledger.
"""
from datetime import datetime, timezone

import pytest

from app.core.errors import DuplicateMitigationError, NotFoundError
from app.schemas.mitigation import MitigationCategory
from app.scoring.ledger import MitigationLedger
from conftest import make_definition


class TestAdd:
    def test_add_snapshots_definition(self):
        ledger = MitigationLedger()
        definition = make_definition("mit-2fa", 15, MitigationCategory.PERSONNEL, name="Two-factor authentication")
        applied = ledger.add(definition, actor="Dana Analyst")

        assert applied.mitigation_id == "mit-2fa"
        assert applied.name == "Two-factor authentication"
        assert applied.category == MitigationCategory.PERSONNEL
        assert applied.applied_reduction == 15
        assert applied.applied_by == "Dana Analyst"
        assert applied.applied_at.tzinfo is not None

    def test_duplicate_add_rejected(self):
        ledger = MitigationLedger()
        definition = make_definition("mit-1", 10)
        ledger.add(definition, actor="a")

        with pytest.raises(DuplicateMitigationError):
            ledger.add(definition, actor="b")
        assert len(ledger) == 1
        assert ledger.total_reduction() == 10

    def test_insertion_order_kept(self):
        ledger = MitigationLedger()
        for mid in ("mit-c", "mit-a", "mit-b"):
            ledger.add(make_definition(mid), actor="a")
        assert [e.mitigation_id for e in ledger.entries] == ["mit-c", "mit-a", "mit-b"]

    def test_definition_edit_does_not_touch_applied(self):
        ledger = MitigationLedger()
        definition = make_definition("mit-1", 10)
        ledger.add(definition, actor="a")

        definition.default_reduction = 50
        assert ledger.total_reduction() == 10


class TestRemove:
    def test_remove_existing(self):
        ledger = MitigationLedger()
        ledger.add(make_definition("mit-1", 15), actor="a")
        ledger.add(make_definition("mit-2", 20), actor="a")

        assert ledger.remove("mit-2") is True
        assert ledger.total_reduction() == 15
        assert "mit-2" not in ledger

    def test_remove_missing_is_noop(self):
        ledger = MitigationLedger()
        ledger.add(make_definition("mit-1", 15), actor="a")
        before = ledger.entries

        assert ledger.remove("mit-unknown") is False
        assert ledger.entries == before
        assert ledger.total_reduction() == 15


class TestUpdate:
    def test_update_replaces_only_supplied_fields(self):
        ledger = MitigationLedger()
        stamp = datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc)
        ledger.add(make_definition("mit-1", 20), actor="original-actor", applied_at=stamp)

        updated = ledger.update("mit-1", applied_reduction=0)
        assert updated.applied_reduction == 0
        assert updated.notes == ""
        assert updated.applied_by == "original-actor"
        assert updated.applied_at == stamp

        updated = ledger.update("mit-1", notes="Verified on site")
        assert updated.applied_reduction == 0
        assert updated.notes == "Verified on site"

    def test_update_missing_raises(self):
        ledger = MitigationLedger()
        with pytest.raises(NotFoundError):
            ledger.update("mit-unknown", applied_reduction=5)

    def test_update_rejects_out_of_range(self):
        ledger = MitigationLedger()
        ledger.add(make_definition("mit-1", 20), actor="a")
        with pytest.raises(ValueError):
            ledger.update("mit-1", applied_reduction=101)
        assert ledger.total_reduction() == 20


class TestTotalReduction:
    def test_empty_is_zero(self):
        assert MitigationLedger().total_reduction() == 0

    def test_not_clamped(self):
        ledger = MitigationLedger()
        ledger.add(make_definition("mit-1", 70), actor="a")
        ledger.add(make_definition("mit-2", 60), actor="a")
        assert ledger.total_reduction() == 130

    def test_commutative(self):
        a, b = make_definition("mit-a", 15), make_definition("mit-b", 20)
        ab, ba = MitigationLedger(), MitigationLedger()
        ab.add(a, actor="x")
        ab.add(b, actor="x")
        ba.add(b, actor="x")
        ba.add(a, actor="x")
        assert ab.total_reduction() == ba.total_reduction() == 35


class TestDocuments:
    def test_restore_from_documents(self):
        ledger = MitigationLedger()
        ledger.add(make_definition("mit-1", 15), actor="a")
        ledger.add(make_definition("mit-2", 5), actor="a")

        restored = MitigationLedger.from_documents(ledger.to_documents())
        assert restored.entries == ledger.entries

    def test_restore_none_is_empty(self):
        assert len(MitigationLedger.from_documents(None)) == 0

    def test_restore_rejects_duplicate_ids(self):
        ledger = MitigationLedger()
        ledger.add(make_definition("mit-1", 15), actor="a")
        docs = ledger.to_documents() * 2
        with pytest.raises(DuplicateMitigationError):
            MitigationLedger.from_documents(docs)
