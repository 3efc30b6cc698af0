"""
Parcel Server - Health Check Routes
====================================

What:  Liveness (GET /) and readiness (GET /health) probes.
How:   GET / answers without touching any dependency. GET /health runs a
       SELECT 1 and reads the payment gateway's circuit breaker state.
Who:   Docker health checks, load balancers, uptime monitors.

Status levels:
    - healthy:   database reachable, gateway circuit closed (HTTP 200)
    - degraded:  gateway circuit open or no gateway key (HTTP 200)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from app import __version__
from app.schemas.common import HealthResponse
from app.services.payment_gateway import CircuitBreaker

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/",
    response_class=PlainTextResponse,
    summary="Liveness probe",
)
async def root() -> str:
    return "Parcel Server is running"


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
    description=(
        "Returns the health status of the service and its dependencies. "
        "Responds 503 when the database cannot be reached."
    ),
)
async def health_check(request: Request):
    db_status = "connected"
    gateway_status = "available"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    database = getattr(request.app.state, "database", None)
    try:
        if database is None:
            raise RuntimeError("database not initialized")
        await database.ping()
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Payment Gateway ─────────────────────────────────────────────
    gateway = getattr(request.app.state, "payment_gateway", None)
    if gateway is None or not gateway.is_configured:
        gateway_status = "not_configured"
        overall = "degraded" if overall != "unhealthy" else overall
    elif gateway.circuit_breaker.state == CircuitBreaker.OPEN:
        gateway_status = "circuit_open"
        overall = "degraded" if overall != "unhealthy" else overall

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        payment_gateway=gateway_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
