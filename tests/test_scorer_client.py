"""
Scorer client tests against an httpx.MockTransport.
"""
import json

import httpx
import pytest

from app.core.errors import ScoringUnavailableError
from app.schemas.assessment import EntityKind, RiskTrend
from app.schemas.detection import OrganizationSnapshot, SourceType
from app.services.scorer_client import ScorerClient


def _client(handler, api_key: str = "") -> ScorerClient:
    return ScorerClient(
        base_url="https://scorer.test/functions/v1/",
        api_key=api_key,
        timeout=5.0,
        transport=httpx.MockTransport(handler),
    )


SCORE_PAYLOAD = {
    "score": 43,
    "components": {"accessRisk": 30, "travelRisk": 15},
    "trend": "deteriorating",
    "confidence": 85,
    "recommendations": ["Enable 2FA"],
    "explanation": "Frequent travel to tier-3 countries",
}


class TestScoreRisk:
    @pytest.mark.asyncio
    async def test_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=SCORE_PAYLOAD)

        result = await _client(handler, api_key="secret").score_risk(
            EntityKind.PERSONNEL, "org-1", {"name": "Jo Field"}
        )

        assert result.score == 43
        assert result.trend == RiskTrend.DETERIORATING
        assert seen["url"] == "https://scorer.test/functions/v1/risk-scoring"
        assert seen["auth"] == "Bearer secret"
        assert seen["body"] == {"type": "personnel", "data": {"name": "Jo Field"}, "organizationId": "org-1"}

    @pytest.mark.asyncio
    async def test_no_auth_header_without_key(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json=SCORE_PAYLOAD)

        await _client(handler).score_risk(EntityKind.ASSET, "org-1", {})
        assert seen["auth"] is None

    @pytest.mark.asyncio
    async def test_server_error(self):
        client = _client(lambda request: httpx.Response(500, json={"error": "boom"}))
        with pytest.raises(ScoringUnavailableError):
            await client.score_risk(EntityKind.ASSET, "org-1", {})

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ScoringUnavailableError):
            await _client(handler).score_risk(EntityKind.TRAVEL, "org-1", {})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {**SCORE_PAYLOAD, "score": 140},
        {k: v for k, v in SCORE_PAYLOAD.items() if k != "score"},
        {**SCORE_PAYLOAD, "components": {"accessRisk": -5}},
    ])
    async def test_unusable_payload(self, payload):
        client = _client(lambda request: httpx.Response(200, json=payload))
        with pytest.raises(ScoringUnavailableError):
            await client.score_risk(EntityKind.ASSET, "org-1", {})

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        client = _client(lambda request: httpx.Response(200, text="<html>gateway</html>"))
        with pytest.raises(ScoringUnavailableError):
            await client.score_risk(EntityKind.ASSET, "org-1", {})


class TestDetectRisks:
    @pytest.mark.asyncio
    async def test_parses_candidates(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"risks": [{
                "title": "Concentrated travel to one region",
                "description": "Five staff in the same city next week",
                "category": "operational",
                "impact": "high",
                "likelihood": "low",
                "confidence": 70,
                "source_type": "pattern",
                "recommendations": ["Stagger travel dates"],
            }]})

        snapshot = OrganizationSnapshot(travel_plans=[{"id": "tp-1"}])
        risks = await _client(handler).detect_risks("org-1", snapshot)

        assert seen["url"].endswith("/risk-detection")
        assert seen["body"]["organizationId"] == "org-1"
        assert seen["body"]["data"]["travel_plans"] == [{"id": "tp-1"}]
        assert len(risks) == 1
        assert risks[0].source_type == SourceType.PATTERN
        assert risks[0].source_id is None

    @pytest.mark.asyncio
    async def test_empty_result(self):
        client = _client(lambda request: httpx.Response(200, json={"risks": []}))
        assert await client.detect_risks("org-1", OrganizationSnapshot()) == []

    @pytest.mark.asyncio
    async def test_malformed_candidate(self):
        client = _client(lambda request: httpx.Response(200, json={"risks": [{"title": "no fields"}]}))
        with pytest.raises(ScoringUnavailableError):
            await client.detect_risks("org-1", OrganizationSnapshot())
