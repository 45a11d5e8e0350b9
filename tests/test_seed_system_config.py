"""Tests for the default configuration seeder."""
from cms_config.data.default_settings import DEFAULT_COMPLAINT_TYPES, DEFAULT_SYSTEM_CONFIG
from cms_config.scripts.seed_system_config import seed_system_config


async def test_seed_creates_then_updates(session_factory, config_store, complaint_type_store):
    """Running the seeder twice updates rather than duplicates."""

    counts = await seed_system_config(session_factory)

    assert counts["created"] == len(DEFAULT_SYSTEM_CONFIG)
    assert counts["failed"] == 0
    assert counts["complaint_types_created"] == len(DEFAULT_COMPLAINT_TYPES)
    assert len(await config_store.find_active()) == len(DEFAULT_SYSTEM_CONFIG)

    counts = await seed_system_config(session_factory)

    assert counts["created"] == 0
    assert counts["updated"] == len(DEFAULT_SYSTEM_CONFIG)
    assert counts["complaint_types_updated"] == len(DEFAULT_COMPLAINT_TYPES)
    assert len(await complaint_type_store.find_active()) == len(DEFAULT_COMPLAINT_TYPES)
