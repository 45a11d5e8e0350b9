"""Pytest configuration and fixtures."""
import os
import asyncio
from pathlib import Path
from typing import Optional

import pytest
from alembic import command
from alembic.config import Config as AlembicConfig
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

BASE_DIR = Path(__file__).resolve().parent.parent
TEST_DB_PATH = BASE_DIR / "test.db"

# Ensure the application uses a dedicated SQLite database during tests
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
# Tests drive reloads explicitly
os.environ["CONFIG_CACHE_AUTO_REFRESH"] = "false"

from cms_config.config import get_settings
from cms_config.models import ComplaintType, SystemConfig
from cms_config.services.complaint_type_store import ComplaintTypeStore
from cms_config.services.config_store import (
    ConfigNotFoundError,
    ConfigRecord,
    ConfigStoreError,
    UpsertOutcome,
    SystemConfigStore,
    _validate_key,
)
from cms_config.utils.datetime_helpers import utc_now

settings = get_settings()


@pytest.fixture(scope="session", autouse=True)
def apply_migrations():
    """Apply database migrations against the test database."""
    if TEST_DB_PATH.exists():
        try:
            TEST_DB_PATH.unlink()
        except PermissionError:
            pass  # Migrations run against the existing file

    alembic_cfg = AlembicConfig(str(BASE_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    command.upgrade(alembic_cfg, "head")

    yield

    if TEST_DB_PATH.exists():
        try:
            TEST_DB_PATH.unlink()
        except PermissionError:
            # Cleaned up on the next run
            pass


@pytest.fixture
async def test_engine():
    """Create test database engine using the same database as migrations."""
    engine = create_async_engine(settings.database_url, echo=False)

    yield engine

    await engine.dispose()


@pytest.fixture
async def session_factory(test_engine):
    """Session factory bound to the test engine, with empty config tables."""
    factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with factory() as session:
        await session.execute(delete(SystemConfig))
        await session.execute(delete(ComplaintType))
        await session.commit()

    return factory


@pytest.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def config_store(session_factory):
    return SystemConfigStore(session_factory)


@pytest.fixture
def complaint_type_store(session_factory):
    return ComplaintTypeStore(session_factory)


class FakeConfigStore:
    """
    In-memory stand-in for SystemConfigStore.

    ``fail_reads`` makes find_active raise; ``read_gate`` (an asyncio.Event)
    holds find_active until the test releases it.
    """

    def __init__(self, rows: Optional[dict[str, str]] = None):
        self.records: dict[str, ConfigRecord] = {}
        self.fail_reads = False
        self.read_gate: Optional[asyncio.Event] = None
        self.read_started = asyncio.Event()
        self.find_active_calls = 0
        for key, value in (rows or {}).items():
            self._put(key, value, None, None)

    def _put(self, key, value, type, description, is_active=True, created_at=None) -> ConfigRecord:
        now = utc_now()
        record = ConfigRecord(
            key=key,
            value=value,
            type=type,
            description=description,
            is_active=is_active,
            created_at=created_at or now,
            updated_at=now,
        )
        self.records[key] = record
        return record

    async def probe(self) -> bool:
        return True

    async def find_active(self) -> list[ConfigRecord]:
        self.find_active_calls += 1
        # Snapshot before blocking, like a query that has already read its rows
        snapshot = sorted(
            (record for record in self.records.values() if record.is_active),
            key=lambda record: record.key,
        )
        self.read_started.set()
        if self.read_gate is not None:
            await self.read_gate.wait()
        if self.fail_reads:
            raise ConfigStoreError("Failed to load active configuration: connection refused")
        return snapshot

    async def find_by_key(self, key: str) -> Optional[ConfigRecord]:
        return self.records.get(key)

    async def upsert(self, key, value, type=None, description=None) -> ConfigRecord:
        _validate_key(key)
        existing = self.records.get(key)
        if existing is None:
            return self._put(key, value, type, description)
        return self._put(
            key,
            value,
            type if type is not None else existing.type,
            description if description is not None else existing.description,
            created_at=existing.created_at,
        )

    async def soft_delete(self, key: str) -> ConfigRecord:
        existing = self.records.get(key)
        if existing is None or not existing.is_active:
            raise ConfigNotFoundError(key)
        return self._put(
            key, existing.value, existing.type, existing.description,
            is_active=False, created_at=existing.created_at,
        )

    async def bulk_upsert(self, records) -> list[UpsertOutcome]:
        outcomes = []
        for item in records:
            try:
                record = await self.upsert(
                    item.get("key"), item.get("value"), item.get("type"), item.get("description")
                )
                outcomes.append(UpsertOutcome(key=item.get("key"), record=record))
            except ConfigStoreError as e:
                outcomes.append(UpsertOutcome(key=item.get("key"), error=str(e)))
        return outcomes


@pytest.fixture
def fake_store():
    return FakeConfigStore({
        "APP_NAME": "NLC-CMS",
        "COMPLAINT_TYPE_WATER": "Water Supply",
        "COMPLAINT_TYPE_ROADS": "Road Repair",
        "OTP_EXPIRY_MINUTES": "5",
    })


@pytest.fixture
async def test_app(session_factory):
    """App with configuration services bound to the test database.

    ASGITransport does not run the lifespan, so the services are placed on
    ``app.state`` here.
    """
    from cms_config.main import app
    from cms_config.services.config_query import LegacySystemConfigAdapter
    from cms_config.services.public_settings import PublicSettingsProvider
    from cms_config.services.system_config_cache import SystemConfigCache

    store = SystemConfigStore(session_factory)
    cache = SystemConfigCache(store, auto_refresh=False)
    await cache.initialize()

    app.state.config_store = store
    app.state.config_cache = cache
    app.state.public_settings = PublicSettingsProvider(store, ComplaintTypeStore(session_factory))
    app.state.legacy_config = LegacySystemConfigAdapter(cache, store)

    yield app

    await cache.destroy()
    for name in ("config_store", "config_cache", "public_settings", "legacy_config"):
        setattr(app.state, name, None)
