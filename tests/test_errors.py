"""
Tests for the store-call timeout and the JSON error envelope.
"""

import asyncio

import pytest
from httpx import AsyncClient

from ticketing.api.routes import profile as profile_routes
from ticketing.core.config import get_settings
from ticketing.core.errors import StoreError
from ticketing.db.session import store_operation


@store_operation("slow_profile")
async def slow_profile(db, user):
    await asyncio.sleep(1)


@pytest.fixture
def tiny_store_timeout(monkeypatch):
    monkeypatch.setattr(get_settings(), "STORE_TIMEOUT_SECONDS", 0.05)


@pytest.fixture
def production(monkeypatch):
    monkeypatch.setattr(get_settings(), "ENVIRONMENT", "production")


@pytest.mark.asyncio
async def test_store_timeout_is_retryable(tiny_store_timeout):
    with pytest.raises(StoreError) as exc_info:
        await slow_profile(None, None)
    assert exc_info.value.retryable is True
    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_store_timeout_returns_503(client: AsyncClient, auth_headers, tiny_store_timeout, monkeypatch):
    monkeypatch.setattr(profile_routes, "get_or_create_profile", slow_profile)

    response = await client.get("/api/v1/profile", headers=auth_headers)
    assert response.status_code == 503
    assert response.json()["error"] == "The service is busy, please try again"
    assert "exceeded" in response.json()["details"]


@pytest.mark.asyncio
async def test_production_hides_details(
    client: AsyncClient, auth_headers, tiny_store_timeout, production, monkeypatch
):
    invalid = await client.patch("/api/v1/profile", json={"phone": "call me"}, headers=auth_headers)
    assert invalid.status_code == 400
    assert invalid.json() == {"error": "Invalid request"}

    monkeypatch.setattr(profile_routes, "get_or_create_profile", slow_profile)
    busy = await client.get("/api/v1/profile", headers=auth_headers)
    assert busy.status_code == 503
    assert busy.json() == {"error": "The service is busy, please try again"}


@pytest.mark.asyncio
async def test_details_shown_outside_production(client: AsyncClient, auth_headers):
    invalid = await client.patch("/api/v1/profile", json={"phone": "call me"}, headers=auth_headers)
    assert invalid.status_code == 400
    assert invalid.json()["details"][0]["loc"][-1] == "phone"
