"""Tests for the system configuration API routes."""
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient, ASGITransport

from cms_config.services.config_store import ConfigStoreError

API_BASE_URL = "http://test"
PREFIX = "/api/system-config"


@pytest.fixture
async def client(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url=API_BASE_URL) as client:
        yield client


async def test_create_and_read_config(client):
    """A created key is readable straight away."""

    response = await client.post(PREFIX, json={
        "key": "GUEST_COMPLAINT_ENABLED",
        "value": True,
        "type": "citizen",
        "description": "Allow guest complaints",
    })
    assert response.status_code == 201
    assert response.json()["value"] == "true"

    response = await client.get(f"{PREFIX}/GUEST_COMPLAINT_ENABLED")
    assert response.status_code == 200
    data = response.json()
    assert data["value"] == "true"
    assert data["type"] == "citizen"
    assert data["updated_at"].endswith("Z")


async def test_create_rejects_invalid_value(client):
    response = await client.post(PREFIX, json={"key": "OTP_EXPIRY_MINUTES", "value": "soon"})
    assert response.status_code == 400


async def test_create_existing_key_conflicts(client):
    await client.post(PREFIX, json={"key": "APP_NAME", "value": "NLC-CMS"})

    response = await client.post(PREFIX, json={"key": "APP_NAME", "value": "Other"})
    assert response.status_code == 409


async def test_update_and_delete(client):
    await client.post(PREFIX, json={"key": "APP_NAME", "value": "NLC-CMS", "type": "app"})

    response = await client.put(f"{PREFIX}/APP_NAME", json={"value": "Renamed"})
    assert response.status_code == 200
    assert response.json()["value"] == "Renamed"
    assert response.json()["type"] == "app"

    response = await client.delete(f"{PREFIX}/APP_NAME")
    assert response.status_code == 200
    assert response.json()["success"] is True

    assert (await client.get(f"{PREFIX}/APP_NAME")).status_code == 404
    assert (await client.delete(f"{PREFIX}/APP_NAME")).status_code == 404


async def test_update_missing_key(client):
    response = await client.put(f"{PREFIX}/NOT_THERE", json={"value": "x"})
    assert response.status_code == 404


async def test_list_type_and_pattern(client):
    for key, value in [("COMPLAINT_TYPE_WATER", "Water"), ("COMPLAINT_TYPE_ROADS", "Roads")]:
        await client.post(PREFIX, json={"key": key, "value": value, "type": "complaint_type"})
    await client.post(PREFIX, json={"key": "APP_NAME", "value": "NLC-CMS", "type": "app"})

    keys = [entry["key"] for entry in (await client.get(PREFIX)).json()]
    assert keys == ["APP_NAME", "COMPLAINT_TYPE_ROADS", "COMPLAINT_TYPE_WATER"]

    data = (await client.get(f"{PREFIX}/type/complaint_type")).json()
    assert data["count"] == 2

    data = (await client.get(f"{PREFIX}/pattern/COMPLAINT_TYPE_")).json()
    assert set(data["configs"]) == {"COMPLAINT_TYPE_WATER", "COMPLAINT_TYPE_ROADS"}

    data = (await client.get(f"{PREFIX}/pattern/_NAME", params={"match_type": "endsWith"})).json()
    assert data["configs"] == {"APP_NAME": "NLC-CMS"}


async def test_bulk_update_reports_errors(client):
    """Invalid entries are reported individually while valid ones apply."""

    response = await client.post(f"{PREFIX}/bulk", json={"configs": [
        {"key": "APP_NAME", "value": "NLC-CMS"},
        {"key": "", "value": "x"},
        {"key": "OTP_EXPIRY_MINUTES", "value": "soon"},
        {"key": "AUTO_CLOSE_DAYS", "value": 7},
    ]})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert {entry["key"] for entry in data["created"]} == {"APP_NAME", "AUTO_CLOSE_DAYS"}
    assert sorted(error["key"] for error in data["errors"]) == ["", "OTP_EXPIRY_MINUTES"]

    assert (await client.get(f"{PREFIX}/AUTO_CLOSE_DAYS")).json()["value"] == "7"


async def test_refresh_and_stats(client, test_app):
    response = await client.post(f"{PREFIX}/refresh")
    assert response.status_code == 200
    assert response.json()["refreshed"] is True
    assert response.json()["stats"]["is_initialized"] is True

    response = await client.get(f"{PREFIX}/stats")
    assert response.status_code == 200
    assert "hit_rate" in response.json()["query_metrics"]


async def test_refresh_store_failure_returns_503(client, test_app):
    test_app.state.config_store.find_active = AsyncMock(side_effect=ConfigStoreError("down"))

    response = await client.post(f"{PREFIX}/refresh")

    assert response.status_code == 503


async def test_public_settings_live(client):
    await client.post(PREFIX, json={"key": "APP_NAME", "value": "NLC-CMS"})

    response = await client.get(f"{PREFIX}/public")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["meta"] == {"source": "database", "databaseAvailable": True}
    assert body["data"]["config"][0]["key"] == "APP_NAME"
    assert body["data"]["complaintTypes"] == []


async def test_public_settings_defaults_when_database_down(client, test_app):
    """The public endpoint still answers 200 when the database is unreachable."""

    test_app.state.config_store.probe = AsyncMock(side_effect=ConfigStoreError("Database unavailable"))

    response = await client.get(f"{PREFIX}/public")

    assert response.status_code == 200
    body = response.json()
    assert body["meta"]["source"] == "defaults"
    assert body["meta"]["databaseAvailable"] is False
    assert "error" not in body["meta"]
    assert any(entry["key"] == "APP_NAME" for entry in body["data"]["config"])


async def test_public_settings_query_failure(client, test_app):
    test_app.state.config_store.find_active = AsyncMock(side_effect=ConfigStoreError("query failed"))

    body = (await client.get(f"{PREFIX}/public")).json()

    assert body["meta"]["source"] == "defaults_fallback"
    assert body["meta"]["error"] == "query failed"


async def test_missing_services_return_503():
    """Routes answer 503 when the lifespan has not set up the cache."""

    from cms_config.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url=API_BASE_URL) as client:
        response = await client.get(PREFIX)

    assert response.status_code == 503


async def test_status_endpoint(client):
    response = await client.get("/status")
    assert response.status_code == 200
    assert "version" in response.json()


async def test_health_reports_cache_state(client, test_app):
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["database"] == "connected"
    assert data["config_cache"]["initialized"] is True
