"""Health check endpoints tests."""

import pytest
from fastapi import status
from httpx import AsyncClient
from unittest.mock import patch

from src.modules.health.service import HealthCheckResult


@pytest.mark.asyncio
async def test_health_check(public_client: AsyncClient):
    response = await public_client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "healthy"
    assert data["services"]["database"]["connected"] is True
    assert "timestamp" in data


@pytest.mark.asyncio
async def test_health_check_database_unhealthy(public_client: AsyncClient):
    unhealthy = HealthCheckResult(
        service="database", status="unhealthy", connected=False, error="down"
    )
    with patch(
        "src.modules.health.service.HealthService.check_database_health",
        return_value=unhealthy,
    ):
        response = await public_client.get("/health")

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert response.json()["services"]["database"]["error"] == "down"


@pytest.mark.asyncio
async def test_liveness(public_client: AsyncClient):
    response = await public_client.get("/health/liveness")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "alive"


@pytest.mark.asyncio
async def test_security_headers(public_client: AsyncClient):
    response = await public_client.get("/health/liveness")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "X-Billing-API-Version" in response.headers
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(public_client: AsyncClient):
    response = await public_client.get("/api/unknown")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    data = response.json()
    assert data["success"] is False
    assert data["message_code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_oversized_request_rejected_by_size_guard(public_client: AsyncClient):
    response = await public_client.post(
        "/api/payments",
        content=b"x" * (2 * 1024 * 1024),
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == status.HTTP_413_CONTENT_TOO_LARGE
    assert response.json()["success"] is False
