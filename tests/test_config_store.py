"""Tests for the SQLAlchemy-backed configuration store."""
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from cms_config.services.config_store import (
    ConfigNotFoundError,
    ConfigStoreError,
    InvalidConfigKeyError,
    SystemConfigStore,
    build_where_clause,
)


async def _seed(store):
    await store.upsert("APP_NAME", "NLC-CMS", type="app", description="Application name")
    await store.upsert("COMPLAINT_TYPE_WATER", "Water Supply", type="complaint_type")
    await store.upsert("COMPLAINT_TYPE_ROADS", "Road Repair", type="complaint_type")
    await store.upsert("OTP_EXPIRY_MINUTES", "5", type="security")


async def test_probe_succeeds(config_store):
    assert await config_store.probe() is True


async def test_probe_failure_raises_store_error():
    """An unreachable database surfaces as ConfigStoreError."""

    factory = MagicMock(side_effect=OperationalError("SELECT 1", {}, Exception("connection refused")))
    store = SystemConfigStore(factory)

    with pytest.raises(ConfigStoreError):
        await store.probe()


async def test_upsert_inserts_then_updates(config_store):
    """Insert sets created_at == updated_at; an update moves only updated_at."""

    created = await config_store.upsert("SUPPORT_EMAIL", "help@example.gov", type="contact")
    assert created.was_created is True
    assert created.is_active is True
    assert created.created_at.tzinfo is not None

    updated = await config_store.upsert("SUPPORT_EMAIL", "support@example.gov")
    assert updated.was_created is False
    assert updated.value == "support@example.gov"
    # None keeps the existing type
    assert updated.type == "contact"
    assert updated.created_at == created.created_at


async def test_upsert_serializes_non_string_values(config_store):
    record = await config_store.upsert("NOTIFICATION_SETTINGS", {"email": True})
    assert record.value == '{"email": true}'

    record = await config_store.upsert("GUEST_COMPLAINT_ENABLED", False)
    assert record.value == "false"


@pytest.mark.parametrize("key", ["", "   ", None, 42, "K" * 101])
async def test_upsert_rejects_invalid_keys(config_store, key):
    with pytest.raises(InvalidConfigKeyError):
        await config_store.upsert(key, "value")


async def test_soft_delete_keeps_row_inactive(config_store):
    """Deleted rows stay in the table with is_active false."""

    await config_store.upsert("TEMP_KEY", "1")
    deleted = await config_store.soft_delete("TEMP_KEY")

    assert deleted.is_active is False
    assert [r.key for r in await config_store.find_active()] == []
    row = await config_store.find_by_key("TEMP_KEY")
    assert row is not None
    assert row.is_active is False

    with pytest.raises(ConfigNotFoundError):
        await config_store.soft_delete("TEMP_KEY")


async def test_soft_delete_missing_key(config_store):
    with pytest.raises(ConfigNotFoundError) as exc_info:
        await config_store.soft_delete("NEVER_EXISTED")
    assert exc_info.value.key == "NEVER_EXISTED"


async def test_upsert_reactivates_deleted_row(config_store):
    await config_store.upsert("TEMP_KEY", "1")
    await config_store.soft_delete("TEMP_KEY")

    record = await config_store.upsert("TEMP_KEY", "2")

    assert record.is_active is True
    assert record.value == "2"


async def test_find_active_orders_by_key(config_store):
    await _seed(config_store)
    await config_store.soft_delete("OTP_EXPIRY_MINUTES")

    keys = [record.key for record in await config_store.find_active()]

    assert keys == ["APP_NAME", "COMPLAINT_TYPE_ROADS", "COMPLAINT_TYPE_WATER"]


async def test_bulk_upsert_reports_each_entry(config_store):
    outcomes = await config_store.bulk_upsert([
        {"key": "A_KEY", "value": "1"},
        {"key": "", "value": "2"},
        "not-a-dict",
        {"key": "B_KEY", "value": "3"},
    ])

    assert [outcome.ok for outcome in outcomes] == [True, False, False, True]
    assert outcomes[1].error is not None
    assert await config_store.find_by_key("B_KEY") is not None


async def test_find_many_with_operators(config_store):
    """Structured queries with combinators and ordering run in SQL."""

    await _seed(config_store)

    records = await config_store.find_many({
        "where": {
            "OR": [
                {"key": {"startsWith": "COMPLAINT_TYPE_"}},
                {"type": "security"},
            ],
        },
        "orderBy": {"key": "desc"},
    })
    assert [r.key for r in records] == ["OTP_EXPIRY_MINUTES", "COMPLAINT_TYPE_WATER", "COMPLAINT_TYPE_ROADS"]

    records = await config_store.find_many({
        "where": {"NOT": {"type": "complaint_type"}, "key": {"contains": "_"}},
        "orderBy": [{"key": "asc"}],
        "take": 1,
    })
    assert [r.key for r in records] == ["APP_NAME"]


async def test_find_many_skip_and_ignored_options(config_store):
    await _seed(config_store)

    records = await config_store.find_many({
        "where": {"type": {"in": ["complaint_type", "app"]}},
        "orderBy": {"key": "asc"},
        "skip": 1,
        "select": {"key": True},
    })

    assert [r.key for r in records] == ["COMPLAINT_TYPE_ROADS", "COMPLAINT_TYPE_WATER"]


async def test_find_many_escapes_like_wildcards(config_store):
    await config_store.upsert("FOO_BAR", "1")
    await config_store.upsert("FOOXBAR", "2")

    records = await config_store.find_many({"where": {"key": {"startsWith": "FOO_"}}})

    assert [r.key for r in records] == ["FOO_BAR"]


async def test_count(config_store):
    await _seed(config_store)

    assert await config_store.count() == 4
    assert await config_store.count({"type": "complaint_type"}) == 2
    assert await config_store.count({"key": {"notIn": ["APP_NAME"]}, "isActive": True}) == 3


def test_build_where_clause_rejects_unknown_field():
    with pytest.raises(ConfigStoreError):
        build_where_clause({"colour": "blue"})


def test_build_where_clause_rejects_unknown_operator():
    with pytest.raises(ConfigStoreError):
        build_where_clause({"key": {"regex": "^A"}})
