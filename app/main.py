"""
SecOps Risk Engine: FastAPI Application Entry Point

POST /v1/entities/{kind}                          → score + mitigate + persist
POST /v1/organizations/{org_id}/risk-detections   → AI detection sweep
GET  /v1/health                                   → health check
GET  /docs                                        → OpenAPI / Swagger UI
"""
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from app.api.detection_endpoint import router as detection_router
from app.api.entity_endpoint import router as entity_router
from app.api.mitigation_endpoint import router as mitigation_router
from app.core.config import get_settings
from app.core.errors import register_exception_handlers

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.ConsoleRenderer() if get_settings().app_env == "development"
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(get_settings().log_level),
)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("risk_engine_starting", scorer_url=get_settings().scorer_url)
    yield
    logger.info("risk_engine_shutting_down")


app = FastAPI(
    title="SecOps Risk Engine",
    description="Risk scoring, mitigation ledger and AI risk detection for the security-operations dashboard",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (dashboard) ──
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # tighten in production
    allow_methods=["POST", "GET", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# ── Prometheus metrics ──
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# ── Routes ──
app.include_router(entity_router)
app.include_router(mitigation_router)
app.include_router(detection_router)


@app.get("/v1/health", tags=["health"])
async def health():
    return {"status": "ok", "service": get_settings().app_name}


@app.get("/", include_in_schema=False)
async def root():
    return {
        "service": get_settings().app_name,
        "version": "1.0.0",
        "docs": "/docs",
        "create_entity": "POST /v1/entities/{kind}",
    }
