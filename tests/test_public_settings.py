"""Tests for the public settings tiered fallback."""
from unittest.mock import AsyncMock

import pytest

from cms_config.data.default_settings import DEFAULT_APP_NAME, DEFAULT_SYSTEM_CONFIG
from cms_config.services.config_store import ConfigStoreError
from cms_config.services.public_settings import (
    MESSAGE_DEFAULTS,
    MESSAGE_DEFAULTS_FALLBACK,
    MESSAGE_LIVE,
    PublicSettingsProvider,
    SettingsSource,
)


@pytest.fixture
def provider(config_store, complaint_type_store):
    return PublicSettingsProvider(config_store, complaint_type_store, hidden_markers=["SECRET", "PASSWORD"])


async def test_live_settings(provider, config_store, complaint_type_store):
    """A healthy database yields live entries and complaint types."""

    await config_store.upsert("APP_NAME", "NLC-CMS", description="Application name")
    await config_store.upsert("GUEST_COMPLAINT_ENABLED", "true")
    await complaint_type_store.upsert("Water Supply", "Water problems", "HIGH", 24)

    result = await provider.get_public_settings()

    assert result.source == SettingsSource.DATABASE
    assert result.database_available is True
    assert result.message == MESSAGE_LIVE
    assert result.error is None
    assert {entry["key"]: entry["type"] for entry in result.config} == {
        "APP_NAME": "string",
        "GUEST_COMPLAINT_ENABLED": "boolean",
    }
    assert result.complaint_types[0]["name"] == "Water Supply"
    assert result.complaint_types[0]["sla_hours"] == 24


async def test_hidden_keys_are_filtered(provider, config_store):
    await config_store.upsert("SMTP_PASSWORD", "hunter2")
    await config_store.upsert("JWT_SECRET_KEY", "abc")
    await config_store.upsert("APP_NAME", "NLC-CMS")

    result = await provider.get_public_settings()

    assert [entry["key"] for entry in result.config] == ["APP_NAME"]


async def test_probe_failure_serves_defaults(provider, config_store):
    """An unreachable database serves the hardcoded dataset."""

    config_store.probe = AsyncMock(side_effect=ConfigStoreError("Database unavailable"))

    result = await provider.get_public_settings()

    assert result.source == SettingsSource.DEFAULTS
    assert result.database_available is False
    assert result.message == MESSAGE_DEFAULTS
    assert result.error is None
    assert result.complaint_types == []
    assert len(result.config) == len(DEFAULT_SYSTEM_CONFIG)
    app_name = next(entry for entry in result.config if entry["key"] == "APP_NAME")
    assert app_name["value"] == DEFAULT_APP_NAME


async def test_query_failure_serves_defaults_with_error(provider, config_store):
    config_store.find_active = AsyncMock(side_effect=ConfigStoreError("no such table: system_config"))

    result = await provider.get_public_settings()

    assert result.source == SettingsSource.DEFAULTS_FALLBACK
    assert result.database_available is False
    assert result.message == MESSAGE_DEFAULTS_FALLBACK
    assert "no such table" in result.error
    assert result.config


async def test_complaint_type_failure_keeps_live_config(provider, config_store, complaint_type_store):
    """Complaint type errors degrade to an empty list, not to defaults."""

    await config_store.upsert("APP_NAME", "Live Name")
    complaint_type_store.find_active = AsyncMock(side_effect=ConfigStoreError("complaint_types missing"))

    result = await provider.get_public_settings()

    assert result.source == SettingsSource.DATABASE
    assert result.database_available is True
    assert result.complaint_types == []
    assert result.config[0]["value"] == "Live Name"


def test_default_entries_types_match_values(config_store, complaint_type_store):
    """Default entries report the type of their value, like live entries do."""

    provider = PublicSettingsProvider(config_store, complaint_type_store, hidden_markers=[])
    entries = {entry["key"]: entry for entry in provider.default_entries()}

    assert entries["GUEST_COMPLAINT_ENABLED"]["type"] == "boolean"
    assert entries["DEFAULT_SLA_HOURS"]["type"] == "number"
    assert entries["NOTIFICATION_SETTINGS"]["type"] == "json"
    assert entries["CONTACT_OFFICE_HOURS"]["type"] == "string"
    assert all(entry["enabled"] for entry in entries.values())
