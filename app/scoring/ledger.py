"""
Mitigation ledger: the mitigations applied to exactly one entity.

Order is insertion order (display order), never sorted.
total_reduction() is an unclamped sum; clamping happens only on the
final score in the engine.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from app.core.errors import DuplicateMitigationError, NotFoundError
from app.schemas.mitigation import AppliedMitigation, MitigationDefinition


class MitigationLedger:

    def __init__(self, entries: Optional[Iterable[AppliedMitigation]] = None):
        self._entries: list[AppliedMitigation] = []
        for entry in entries or ():
            if entry.mitigation_id in self:
                raise DuplicateMitigationError(entry.mitigation_id)
            self._entries.append(entry)

    @classmethod
    def from_documents(cls, documents: Optional[Iterable[dict]]) -> "MitigationLedger":
        """Restore from the embedded JSON array (None for legacy rows)."""
        return cls(AppliedMitigation.model_validate(d) for d in documents or ())

    # ── Queries ──

    @property
    def entries(self) -> tuple[AppliedMitigation, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, mitigation_id: object) -> bool:
        return any(e.mitigation_id == mitigation_id for e in self._entries)

    def total_reduction(self) -> int:
        return sum(e.applied_reduction for e in self._entries)

    def to_documents(self) -> list[dict]:
        return [e.model_dump(mode="json") for e in self._entries]

    # ── Mutations ──

    def add(
        self,
        definition: MitigationDefinition,
        actor: str,
        applied_at: Optional[datetime] = None,
    ) -> AppliedMitigation:
        if definition.id in self:
            raise DuplicateMitigationError(definition.id)

        applied = AppliedMitigation(
            mitigation_id=definition.id,
            name=definition.name,
            description=definition.description or "",
            category=definition.category,
            applied_reduction=definition.default_reduction,
            notes="",
            applied_by=actor,
            applied_at=applied_at or datetime.now(timezone.utc),
        )
        self._entries.append(applied)
        return applied

    def remove(self, mitigation_id: str) -> bool:
        """Returns False (not an error) when nothing was applied under that id."""
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.mitigation_id != mitigation_id]
        return len(self._entries) != before

    def update(
        self,
        mitigation_id: str,
        applied_reduction: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> AppliedMitigation:
        for i, entry in enumerate(self._entries):
            if entry.mitigation_id != mitigation_id:
                continue
            changes = {}
            if applied_reduction is not None:
                changes["applied_reduction"] = applied_reduction
            if notes is not None:
                changes["notes"] = notes
            # applied_by / applied_at stay with the original application
            updated = AppliedMitigation.model_validate({**entry.model_dump(), **changes})
            self._entries[i] = updated
            return updated

        raise NotFoundError(f"Mitigation {mitigation_id} is not applied")
