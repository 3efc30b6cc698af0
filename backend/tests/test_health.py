"""
Parcel Server - Health Check Tests
===================================
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app import __version__


@pytest.mark.asyncio
async def test_root_is_plain_text(test_client):
    response = await test_client.get("/")

    assert response.status_code == 200
    assert response.text == "Parcel Server is running"
    assert response.headers["content-type"].startswith("text/plain")


@pytest.mark.asyncio
async def test_health_all_dependencies_up(test_client):
    response = await test_client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["version"] == __version__
    assert body["database"] == "connected"
    assert body["payment_gateway"] == "available"
    assert body["uptime_seconds"] >= 0


@pytest.mark.asyncio
async def test_health_degraded_when_circuit_open(app, test_client):
    breaker = app.state.payment_gateway.circuit_breaker
    for _ in range(breaker.failure_threshold):
        breaker.record_failure()

    response = await test_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["payment_gateway"] == "circuit_open"


@pytest.mark.asyncio
async def test_health_unhealthy_without_database(app, test_client):
    broken = MagicMock()
    broken.ping = AsyncMock(side_effect=OSError("connection refused"))
    app.state.database = broken

    response = await test_client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"
    assert response.json()["database"] == "disconnected"
