"""
Risk engine exception taxonomy + FastAPI handlers.

Ledger / assessment errors are deterministic and raised synchronously.
Entity scoring recovers from ScoringUnavailableError with the default
assessment; only a detection sweep surfaces it (503).
"""
from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = structlog.get_logger()


class RiskEngineError(Exception):
    """Base class. `code` and `status_code` drive the HTTP mapping."""

    code = "RISK_ENGINE_ERROR"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class DuplicateMitigationError(RiskEngineError):
    code = "DUPLICATE_MITIGATION"
    status_code = 409

    def __init__(self, mitigation_id: str):
        super().__init__(f"Mitigation {mitigation_id} is already applied")
        self.mitigation_id = mitigation_id


class NotFoundError(RiskEngineError):
    code = "NOT_FOUND"
    status_code = 404


class InvalidAssessmentError(RiskEngineError):
    """Stored assessment document that cannot be read back, even after legacy coercion."""
    code = "INVALID_ASSESSMENT"
    status_code = 422


class ScoringUnavailableError(RiskEngineError):
    code = "SCORING_UNAVAILABLE"
    status_code = 503


class ScoringInProgressError(RiskEngineError):
    code = "SCORING_IN_PROGRESS"
    status_code = 409

    def __init__(self, draft_id: str):
        super().__init__(f"Draft {draft_id} is already being scored")
        self.draft_id = draft_id


class ScoringCancelledError(RiskEngineError):
    code = "SCORING_CANCELLED"
    status_code = 409

    def __init__(self, draft_id: str):
        super().__init__(f"Draft {draft_id} was closed while scoring")
        self.draft_id = draft_id


class DetectionDisabledError(RiskEngineError):
    code = "AI_DETECTION_DISABLED"
    status_code = 403


async def _handle_risk_engine_error(request: Request, exc: RiskEngineError) -> JSONResponse:
    logger.info(
        "request_rejected",
        path=request.url.path,
        error=exc.code,
        detail=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RiskEngineError, _handle_risk_engine_error)
