"""
Single-flight guard for entity drafts.

A draft (one open entity form, identified by the client's X-Draft-Id)
can have at most one Scorer call outstanding. If the form is closed while
the call is in flight, the result is discarded on arrival.

Process-local and asyncio-only: there is no server-side lock and nothing
is shared between drafts.
"""
from __future__ import annotations

from typing import Awaitable, Callable, TypeVar

import structlog

from app.core.errors import ScoringCancelledError, ScoringInProgressError

logger = structlog.get_logger()

T = TypeVar("T")


class ScoringSessions:

    def __init__(self) -> None:
        self._in_flight: set[str] = set()
        self._closed: set[str] = set()

    def is_scoring(self, draft_id: str) -> bool:
        return draft_id in self._in_flight

    async def run(self, draft_id: str, call: Callable[[], Awaitable[T]]) -> T:
        if draft_id in self._in_flight:
            raise ScoringInProgressError(draft_id)

        self._in_flight.add(draft_id)
        try:
            result = await call()
        finally:
            self._in_flight.discard(draft_id)
            closed = draft_id in self._closed
            self._closed.discard(draft_id)

        if closed:
            logger.info("stale_scoring_result_discarded", draft_id=draft_id)
            raise ScoringCancelledError(draft_id)
        return result

    def cancel(self, draft_id: str) -> bool:
        """Close a draft. Returns True if a Scorer call was outstanding."""
        if draft_id not in self._in_flight:
            return False
        self._closed.add(draft_id)
        logger.info("draft_closed_while_scoring", draft_id=draft_id)
        return True


scoring_sessions = ScoringSessions()


def get_scoring_sessions() -> ScoringSessions:
    return scoring_sessions
