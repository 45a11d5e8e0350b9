"""Helpers for moving direct configuration queries onto the cache.

Each helper answers a lookup that call sites used to run against the
system_config table directly.
"""
from typing import Any, Awaitable, Callable, Optional, TypeVar
import logging

from cms_config.services.config_validation import NUMBER, parse_config_value
from cms_config.services.system_config_cache import MatchType, SystemConfigCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

COMPLAINT_TYPE_KEY_PREFIX = "COMPLAINT_TYPE_"


class ConfigPerformanceMonitor:
    """Counts cache hits, misses and database calls for configuration reads."""

    def __init__(self):
        self.reset()

    def record_cache_hit(self) -> None:
        self.cache_hits += 1
        self.total_requests += 1

    def record_cache_miss(self) -> None:
        self.cache_misses += 1
        self.total_requests += 1

    def record_database_call(self) -> None:
        self.database_calls += 1
        self.total_requests += 1

    def get_metrics(self) -> dict[str, Any]:
        hit_rate = (self.cache_hits / self.total_requests * 100) if self.total_requests else 0.0
        return {
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "database_calls": self.database_calls,
            "total_requests": self.total_requests,
            "hit_rate": f"{hit_rate:.2f}%",
            "efficiency": "Good" if self.cache_hits > self.database_calls else "Needs Improvement",
        }

    def reset(self) -> None:
        self.cache_hits = 0
        self.cache_misses = 0
        self.database_calls = 0
        self.total_requests = 0


def _record_dict(key: str, cache: SystemConfigCache) -> Optional[dict[str, Any]]:
    entry = cache.get_config(key)
    if entry is None:
        return None
    return {
        "key": key,
        "value": entry.value,
        "type": entry.type,
        "description": entry.description,
        "is_active": True,
        "updated_at": entry.updated_at,
    }


def get_complaint_types(cache: SystemConfigCache) -> dict[str, str]:
    """Legacy complaint types stored as ``COMPLAINT_TYPE_*`` keys."""
    return cache.get_by_pattern(COMPLAINT_TYPE_KEY_PREFIX, MatchType.STARTS_WITH)


def get_config(cache: SystemConfigCache, key: str, default: Any = None) -> Any:
    return cache.get(key, default)


def get_auto_assign_setting(cache: SystemConfigCache) -> dict[str, Any]:
    return {
        "key": "AUTO_ASSIGN_COMPLAINTS",
        "value": cache.get("AUTO_ASSIGN_COMPLAINTS", "false"),
        "is_active": True,
    }


def get_complaint_id_config(cache: SystemConfigCache) -> dict[str, Any]:
    """Settings used to format complaint identifiers."""
    raw_length = cache.get("COMPLAINT_ID_LENGTH", "4")
    length = parse_config_value(raw_length, NUMBER)
    if not isinstance(length, int) or length < 1:
        logger.warning(f"Invalid COMPLAINT_ID_LENGTH {raw_length!r}, using 4")
        length = 4

    return {
        "prefix": cache.get("COMPLAINT_ID_PREFIX", "KSC"),
        "length": length,
        "separator": cache.get("COMPLAINT_ID_SEPARATOR", ""),
        "format": cache.get("COMPLAINT_ID_FORMAT", "PREFIX-NUMBER"),
    }


def get_app_configuration(cache: SystemConfigCache) -> dict[str, Any]:
    return cache.get_app_config()


def get_email_configuration(cache: SystemConfigCache) -> dict[str, Any]:
    return cache.get_email_config()


def complaint_type_exists(cache: SystemConfigCache, complaint_type: str) -> bool:
    return cache.has(f"{COMPLAINT_TYPE_KEY_PREFIX}{complaint_type.upper()}")


def get_complaint_type_by_key(cache: SystemConfigCache, complaint_type: str) -> Optional[dict[str, Any]]:
    return _record_dict(f"{COMPLAINT_TYPE_KEY_PREFIX}{complaint_type.upper()}", cache)


def get_multiple_configs(cache: SystemConfigCache, keys: list[str]) -> dict[str, dict[str, Any]]:
    """Records for the requested keys; absent keys are left out."""
    result = {}
    for key in keys:
        record = _record_dict(key, cache)
        if record is not None:
            result[key] = record
    return result


def get_configs_by_type(cache: SystemConfigCache, config_type: str) -> list[dict[str, Any]]:
    return [
        record
        for record in (_record_dict(key, cache) for key in cache.get_by_type(config_type))
        if record is not None
    ]


async def migrate_system_config_call(
    cache: SystemConfigCache,
    original_call: Callable[[], Awaitable[T]],
    migration_fn: Optional[Callable[[], Any]] = None,
) -> T:
    """
    Run ``migration_fn`` against the cache when possible, else ``original_call``.

    The migration function may be sync or async. If it raises, the original
    database call is used instead.
    """
    logger.warning("Direct system config database call detected, consider reading from the cache")

    if migration_fn is not None and cache.is_initialized:
        try:
            result = migration_fn()
            if hasattr(result, "__await__"):
                result = await result
            return result
        except Exception as e:
            logger.error(f"Migration function failed, falling back to original call: {e}")

    return await original_call()
