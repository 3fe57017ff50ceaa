"""
Scorer client: the external AI risk-inference endpoint.

POST {scorer_url}/risk-scoring    → per-entity raw score
POST {scorer_url}/risk-detection  → org-wide candidate risks

Any transport failure, non-2xx status or malformed/out-of-range payload is
raised as ScoringUnavailableError. No retries here: the calling boundary
owns the fallback policy.
"""
from __future__ import annotations

import time
from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError

from app.core.config import Settings, get_settings
from app.core.errors import ScoringUnavailableError
from app.core.metrics import SCORER_CALLS, SCORER_LATENCY
from app.schemas.assessment import EntityKind, ScoringResult
from app.schemas.detection import DetectedRisk, OrganizationSnapshot

logger = structlog.get_logger()


class ScorerClient:

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ScorerClient":
        settings = settings or get_settings()
        return cls(
            base_url=settings.scorer_url,
            api_key=settings.scorer_api_key,
            timeout=settings.scorer_timeout_seconds,
        )

    async def score_risk(
        self,
        kind: EntityKind,
        organization_id: str,
        snapshot: dict[str, Any],
    ) -> ScoringResult:
        body = await self._post(
            "score",
            "/risk-scoring",
            {"type": kind.value, "data": snapshot, "organizationId": organization_id},
        )
        try:
            result = ScoringResult.model_validate(body)
        except ValidationError as e:
            SCORER_CALLS.labels("score", "unavailable").inc()
            raise ScoringUnavailableError(f"Invalid scoring payload: {e.error_count()} error(s)") from e
        SCORER_CALLS.labels("score", "ok").inc()
        return result

    async def detect_risks(
        self,
        organization_id: str,
        snapshot: OrganizationSnapshot,
    ) -> list[DetectedRisk]:
        body = await self._post(
            "detect",
            "/risk-detection",
            {"organizationId": organization_id, "data": snapshot.model_dump(mode="json")},
        )
        try:
            risks = [DetectedRisk.model_validate(r) for r in body.get("risks") or []]
        except (ValidationError, TypeError) as e:
            SCORER_CALLS.labels("detect", "unavailable").inc()
            raise ScoringUnavailableError("Invalid detection payload") from e
        SCORER_CALLS.labels("detect", "ok").inc()
        return risks

    async def _post(self, operation: str, path: str, payload: dict) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        t0 = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(f"{self.base_url}{path}", json=payload, headers=headers)
                resp.raise_for_status()
                body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            SCORER_CALLS.labels(operation, "unavailable").inc()
            logger.warning("scorer_call_failed", operation=operation, error=str(e))
            raise ScoringUnavailableError(f"Scorer {operation} call failed: {e}") from e
        finally:
            SCORER_LATENCY.labels(operation).observe(time.perf_counter() - t0)

        if not isinstance(body, dict):
            SCORER_CALLS.labels(operation, "unavailable").inc()
            raise ScoringUnavailableError(f"Scorer {operation} returned a non-object payload")

        return body
