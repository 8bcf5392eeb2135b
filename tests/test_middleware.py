"""Middleware tests: request ids, error rendering, CORS."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    response = await client.get("/api/health")
    assert response.headers.get("X-Request-Id")


@pytest.mark.asyncio
async def test_request_id_propagated(client: AsyncClient) -> None:
    response = await client.get("/api/health", headers={"X-Request-Id": "req-123"})
    assert response.headers["X-Request-Id"] == "req-123"


@pytest.mark.asyncio
async def test_unknown_route_is_json_404(client: AsyncClient) -> None:
    response = await client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}


@pytest.mark.asyncio
async def test_validation_error_is_400(client: AsyncClient) -> None:
    response = await client.post("/api/auth/login", json={"email": "ada@example.com"})
    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Validation error"
    assert body["errors"]


@pytest.mark.asyncio
async def test_missing_auth_is_401(client: AsyncClient) -> None:
    response = await client.get("/api/leaderboard")
    assert response.status_code == 401
    assert response.json() == {"detail": "Unauthorized"}


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient) -> None:
    response = await client.options(
        "/api/health",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
