"""Structured query adapter for call sites written against the store's query shape.

Filters look like ``{"where": {"key": {"startsWith": "COMPLAINT_"}, "type": "app"},
"orderBy": {"key": "asc"}}``. Shapes the cache can answer are parsed into a
``CacheQuery``; everything else parses to ``Unsupported`` and the original
options are sent to the store unchanged.
"""
from dataclasses import dataclass
from typing import Any, Optional, Union
import logging

from cms_config.services.config_migration import ConfigPerformanceMonitor
from cms_config.services.config_store import (
    ConfigNotFoundError,
    ConfigRecord,
    ConfigStoreError,
    SystemConfigStore,
)
from cms_config.services.system_config_cache import CacheEntry, SystemConfigCache

logger = logging.getLogger(__name__)

# Legacy field name -> ConfigRecord attribute usable for client-side ordering
ORDERABLE_FIELDS = {
    "key": "key",
    "value": "value",
    "type": "type",
    "description": "description",
    "updatedAt": "updated_at",
    "updated_at": "updated_at",
}

# Top-level options a cache-served query may carry
CACHEABLE_OPTIONS = ("where", "orderBy")


@dataclass(frozen=True)
class Equals:
    value: str


@dataclass(frozen=True)
class StartsWith:
    prefix: str


@dataclass(frozen=True)
class InList:
    values: tuple[str, ...]


@dataclass(frozen=True)
class Unsupported:
    """A filter the cache cannot answer; carries the reason for logging."""
    reason: str


KeyFilter = Union[Equals, StartsWith, InList]


@dataclass(frozen=True)
class CacheQuery:
    """A filter the cache can answer without touching the store."""

    key: Optional[KeyFilter] = None
    type: Optional[str] = None
    is_active: bool = True
    order_by: Optional[tuple[str, str]] = None  # (attribute, "asc" | "desc")


def _parse_key_filter(condition: Any) -> Union[KeyFilter, Unsupported]:
    if isinstance(condition, str):
        return Equals(condition)
    if not isinstance(condition, dict) or len(condition) != 1:
        return Unsupported(f"key filter {condition!r}")

    op, operand = next(iter(condition.items()))
    if op == "equals" and isinstance(operand, str):
        return Equals(operand)
    if op == "startsWith" and isinstance(operand, str):
        return StartsWith(operand)
    if op == "in" and isinstance(operand, (list, tuple)):
        if all(isinstance(item, str) for item in operand):
            return InList(tuple(operand))
        return Unsupported(f"non-string key list {operand!r}")
    return Unsupported(f"key operator {op}")


def _parse_type_filter(condition: Any) -> Union[str, Unsupported]:
    if isinstance(condition, str):
        return condition
    if isinstance(condition, dict) and list(condition) == ["equals"] and isinstance(condition["equals"], str):
        return condition["equals"]
    return Unsupported(f"type filter {condition!r}")


def _parse_order_by(order_by: Any) -> Union[tuple[str, str], Unsupported]:
    if isinstance(order_by, list):
        if len(order_by) != 1:
            return Unsupported("multi-field orderBy")
        order_by = order_by[0]
    if not isinstance(order_by, dict) or len(order_by) != 1:
        return Unsupported(f"orderBy {order_by!r}")

    field, direction = next(iter(order_by.items()))
    direction = str(direction).lower()
    if field not in ORDERABLE_FIELDS or direction not in ("asc", "desc"):
        return Unsupported(f"orderBy {field} {direction}")
    return ORDERABLE_FIELDS[field], direction


def parse_query(options: Optional[dict[str, Any]]) -> Union[CacheQuery, Unsupported]:
    """Classify legacy query options as cache-servable or not."""
    options = options or {}

    extra = [name for name in options if name not in CACHEABLE_OPTIONS]
    if extra:
        return Unsupported(f"options {', '.join(extra)}")

    where = options.get("where") or {}
    if not isinstance(where, dict):
        return Unsupported("non-object where")

    key_filter = None
    type_filter = None
    is_active = True

    for name, condition in where.items():
        if name in ("OR", "AND", "NOT"):
            return Unsupported(f"{name} combinator")
        if name == "key":
            parsed = _parse_key_filter(condition)
            if isinstance(parsed, Unsupported):
                return parsed
            key_filter = parsed
        elif name == "type":
            parsed = _parse_type_filter(condition)
            if isinstance(parsed, Unsupported):
                return parsed
            type_filter = parsed
        elif name in ("isActive", "is_active"):
            if not isinstance(condition, bool):
                return Unsupported(f"isActive filter {condition!r}")
            is_active = condition
        else:
            return Unsupported(f"field {name}")

    order_by = None
    if options.get("orderBy"):
        parsed = _parse_order_by(options["orderBy"])
        if isinstance(parsed, Unsupported):
            return parsed
        order_by = parsed

    return CacheQuery(key=key_filter, type=type_filter, is_active=is_active, order_by=order_by)


def _as_record(key: str, entry: CacheEntry) -> ConfigRecord:
    return ConfigRecord(
        key=key,
        value=entry.value,
        type=entry.type,
        description=entry.description,
        is_active=True,
        created_at=None,
        updated_at=entry.updated_at,
    )


def _key_matches(key: str, key_filter: Optional[KeyFilter]) -> bool:
    if key_filter is None:
        return True
    if isinstance(key_filter, Equals):
        return key == key_filter.value
    if isinstance(key_filter, StartsWith):
        return key.startswith(key_filter.prefix)
    if isinstance(key_filter, InList):
        return key in key_filter.values
    return False


def run_cached_query(entries: dict[str, CacheEntry], query: CacheQuery) -> list[ConfigRecord]:
    """Evaluate a parsed query against a snapshot of cache entries."""
    # The cache only holds active rows
    if not query.is_active:
        return []

    if isinstance(query.key, InList):
        # Preserve the caller's order for in-list lookups
        candidates = [(key, entries[key]) for key in dict.fromkeys(query.key.values) if key in entries]
    else:
        candidates = list(entries.items())

    results = [
        _as_record(key, entry)
        for key, entry in candidates
        if _key_matches(key, query.key) and (query.type is None or entry.type == query.type)
    ]

    if query.order_by:
        attribute, direction = query.order_by
        results.sort(
            key=lambda record: (getattr(record, attribute) is None, getattr(record, attribute) or ""),
            reverse=direction == "desc",
        )
    return results


class LegacySystemConfigAdapter:
    """
    Store-shaped interface backed by the configuration cache.

    Each call is recorded in the performance monitor: cache answers with
    results count as hits, empty cache answers as misses and forwarded
    queries as database calls. Writes always count as database calls.
    """

    def __init__(
        self,
        cache: SystemConfigCache,
        store: SystemConfigStore,
        monitor: Optional[ConfigPerformanceMonitor] = None,
    ):
        self._cache = cache
        self._store = store
        self.monitor = monitor or ConfigPerformanceMonitor()

    def _record_cache_result(self, found: bool) -> None:
        if found:
            self.monitor.record_cache_hit()
        else:
            self.monitor.record_cache_miss()

    async def find_many(self, options: Optional[dict[str, Any]] = None) -> list[ConfigRecord]:
        logger.debug(f"Legacy system config find_many: {options}")
        query = parse_query(options)

        if isinstance(query, Unsupported) or not self._cache.is_initialized:
            reason = query.reason if isinstance(query, Unsupported) else "cache not initialized"
            logger.warning(f"Forwarding system config query to the database ({reason})")
            self.monitor.record_database_call()
            return await self._store.find_many(options or {})

        results = run_cached_query(self._cache.snapshot(), query)
        self._record_cache_result(bool(results))
        return results

    async def find_first(self, options: Optional[dict[str, Any]] = None) -> Optional[ConfigRecord]:
        results = await self.find_many(options)
        return results[0] if results else None

    async def find_unique(self, options: dict[str, Any]) -> Optional[ConfigRecord]:
        """Look up one row by key; requires ``{"where": {"key": ...}}``."""
        logger.debug(f"Legacy system config find_unique: {options}")
        key_filter = _parse_key_filter((options.get("where") or {}).get("key"))
        if not isinstance(key_filter, Equals):
            raise ConfigStoreError("find_unique requires an exact key filter")

        if self._cache.is_initialized:
            entry = self._cache.get_config(key_filter.value)
            self._record_cache_result(entry is not None)
            return _as_record(key_filter.value, entry) if entry else None

        self.monitor.record_database_call()
        return await self._store.find_by_key(key_filter.value)

    async def count(self, options: Optional[dict[str, Any]] = None) -> int:
        logger.debug(f"Legacy system config count: {options}")
        where = (options or {}).get("where")

        if self._cache.is_initialized:
            if not where:
                self.monitor.record_cache_hit()
                return len(self._cache.snapshot())

            query = parse_query({"where": where})
            if isinstance(query, CacheQuery):
                total = len(run_cached_query(self._cache.snapshot(), query))
                self._record_cache_result(total > 0)
                return total

        self.monitor.record_database_call()
        return await self._store.count(where)

    # ------------------------------------------------------------------
    # Writes: go to the store through the cache so readers see them at once
    # ------------------------------------------------------------------

    def _unique_key(self, options: dict[str, Any], operation: str) -> str:
        key_filter = _parse_key_filter((options.get("where") or {}).get("key"))
        if not isinstance(key_filter, Equals):
            raise ConfigStoreError(f"{operation} requires an exact key filter")
        return key_filter.value

    async def _find_active(self, key: str) -> Optional[ConfigRecord]:
        record = await self._store.find_by_key(key)
        return record if record and record.is_active else None

    async def create(self, options: dict[str, Any]) -> ConfigRecord:
        """
        Insert a new row from ``{"data": {"key", "value", "type", "description"}}``.

        Raises:
            ConfigStoreError: If an active row with the key already exists
        """
        data = options.get("data") or {}
        key = data.get("key")
        logger.info(f"Legacy system config create: {key}")
        self.monitor.record_database_call()
        try:
            if isinstance(key, str) and await self._find_active(key):
                raise ConfigStoreError(f"Configuration {key} already exists")
            return await self._cache.set(
                key, data.get("value"), type=data.get("type"), description=data.get("description")
            )
        except ConfigStoreError as e:
            logger.error(f"Legacy system config create failed for {key}: {e}")
            raise

    async def update(self, options: dict[str, Any]) -> ConfigRecord:
        """
        Update an active row: ``{"where": {"key": ...}, "data": {...}}``.

        Fields missing from ``data`` keep their stored values.

        Raises:
            ConfigNotFoundError: If the key is not an active row
        """
        key = self._unique_key(options, "update")
        data = options.get("data") or {}
        logger.info(f"Legacy system config update: {key}")
        self.monitor.record_database_call()
        try:
            existing = await self._find_active(key)
            if existing is None:
                raise ConfigNotFoundError(key)
            return await self._cache.set(
                key,
                data.get("value", existing.value),
                type=data.get("type"),
                description=data.get("description"),
            )
        except ConfigStoreError as e:
            logger.error(f"Legacy system config update failed for {key}: {e}")
            raise

    async def upsert(self, options: dict[str, Any]) -> ConfigRecord:
        """Apply ``update`` to an active row, otherwise insert from ``create``."""
        key = self._unique_key(options, "upsert")
        logger.info(f"Legacy system config upsert: {key}")
        self.monitor.record_database_call()
        try:
            existing = await self._find_active(key)
            if existing:
                data = options.get("update") or {}
                value = data.get("value", existing.value)
            else:
                data = options.get("create") or {}
                value = data.get("value")
            return await self._cache.set(
                key, value, type=data.get("type"), description=data.get("description")
            )
        except ConfigStoreError as e:
            logger.error(f"Legacy system config upsert failed for {key}: {e}")
            raise

    async def delete(self, options: dict[str, Any]) -> ConfigRecord:
        """Soft-delete one row by key."""
        key = self._unique_key(options, "delete")
        logger.info(f"Legacy system config delete: {key}")
        self.monitor.record_database_call()
        return await self._cache.delete(key)

    async def delete_many(self, options: Optional[dict[str, Any]] = None) -> dict[str, int]:
        """
        Soft-delete every active row matching ``where``, then reload the cache once.

        Returns:
            ``{"count": n}`` with the number of rows deactivated
        """
        where = (options or {}).get("where") or {}
        logger.info(f"Legacy system config delete_many: {where}")
        self.monitor.record_database_call()
        try:
            matches = await self._store.find_many({"where": {"AND": [where, {"isActive": True}]}})
            deleted = 0
            for record in matches:
                try:
                    await self._store.soft_delete(record.key)
                    deleted += 1
                except ConfigNotFoundError:
                    logger.debug(f"Configuration {record.key} already inactive, skipping")
        except ConfigStoreError as e:
            logger.error(f"Legacy system config delete_many failed: {e}")
            raise

        await self._cache.force_refresh()
        return {"count": deleted}
