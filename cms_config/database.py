"""Database engine and session factory for the configuration store."""
import logging
from typing import Any

from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from cms_config.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Hosted Postgres providers that refuse plain connections
SSL_HOST_MARKERS = ("heroku", "amazonaws")


def _engine_options(settings: Settings) -> dict[str, Any]:
    """Engine keyword arguments for the configured database."""
    url = make_url(settings.database_url)
    options: dict[str, Any] = {
        "echo": settings.environment == "development",
        "pool_pre_ping": True,
    }

    if url.drivername.startswith("sqlite"):
        # The refresh task and request handlers share the file; wait on locks instead of failing
        options["connect_args"] = {"timeout": 30}
        return options

    needs_ssl = settings.environment == "production" or any(
        marker in settings.database_url for marker in SSL_HOST_MARKERS
    )
    if needs_ssl:
        options["connect_args"] = {"ssl": "require"}
        logger.debug("SSL connection enabled (ssl=require)")

    pool_size = max(1, settings.db_pool_size)
    max_overflow = max(0, settings.db_max_overflow)
    if settings.environment == "production":
        # Hosted plans cap connections per dyno
        pool_size = min(pool_size, 2)
        max_overflow = min(max_overflow, 2)

    options.update(pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600)
    return options


def build_engine(settings: Settings) -> AsyncEngine:
    try:
        return create_async_engine(settings.database_url, **_engine_options(settings))
    except Exception as e:
        logger.error(f"Failed to create database engine: {e}")
        raise


engine = build_engine(get_settings())

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()
