"""Seed the system_config and complaint_types tables with default values.

Usage: python -m cms_config.scripts.seed_system_config
"""
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cms_config.data.default_settings import DEFAULT_COMPLAINT_TYPES, DEFAULT_SYSTEM_CONFIG
from cms_config.database import AsyncSessionLocal
from cms_config.services.complaint_type_store import ComplaintTypeStore
from cms_config.services.config_store import SystemConfigStore

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def seed_system_config(
    session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
) -> dict[str, int]:
    """Upsert the default configuration and complaint types. Returns per-outcome counts."""
    store = SystemConfigStore(session_factory)
    complaint_types = ComplaintTypeStore(session_factory)

    # Fail fast if the database is unreachable
    await store.probe()

    counts = {"created": 0, "updated": 0, "failed": 0, "complaint_types_created": 0, "complaint_types_updated": 0}

    for outcome in await store.bulk_upsert(DEFAULT_SYSTEM_CONFIG):
        if not outcome.ok:
            counts["failed"] += 1
            logger.error(f"Failed to seed {outcome.key}: {outcome.error}")
        elif outcome.record.was_created:
            counts["created"] += 1
            logger.debug(f"Created: {outcome.key}")
        else:
            counts["updated"] += 1
            logger.debug(f"Updated: {outcome.key}")

    for item in DEFAULT_COMPLAINT_TYPES:
        _, created = await complaint_types.upsert(
            item["name"],
            description=item["description"],
            priority=item["priority"],
            sla_hours=item["sla_hours"],
        )
        counts["complaint_types_created" if created else "complaint_types_updated"] += 1

    logger.info("=== Summary ===")
    logger.info(f"Config created: {counts['created']}")
    logger.info(f"Config updated: {counts['updated']}")
    logger.info(f"Config failed: {counts['failed']}")
    logger.info(
        f"Complaint types created/updated: {counts['complaint_types_created']}/{counts['complaint_types_updated']}"
    )
    return counts


if __name__ == "__main__":
    asyncio.run(seed_system_config())
