"""Tests for GET /api/health."""
import pytest
from httpx import AsyncClient

from app import database


@pytest.mark.asyncio
async def test_health_returns_200(client: AsyncClient):
    resp = await client.get("/api/health/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["database"] == "ok"
    assert data["completion_api"] == "ok"
    assert data["storage"] == "not_configured"
    assert data["queued_jobs"] == 0
    assert "X-Process-Time" in resp.headers


@pytest.mark.asyncio
async def test_health_without_database(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(database, "AsyncSessionLocal", None)
    resp = await client.get("/api/health/")
    assert resp.status_code == 200
    assert resp.json()["database"] == "not_configured"


@pytest.mark.asyncio
async def test_root_endpoint(client: AsyncClient):
    resp = await client.get("/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "Bookgen API"
