"""In-memory cache of active system configuration rows.

The host process owns a single ``SystemConfigCache``. ``initialize()`` loads
every active row and starts a periodic reload task; writes go to the store
first and then straight into the in-memory map so they are visible without
waiting for the next reload.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional
import asyncio
import logging

from cms_config.config import get_settings
from cms_config.services.config_store import ConfigRecord, ConfigStoreError, SystemConfigStore
from cms_config.utils.datetime_helpers import utc_now

logger = logging.getLogger(__name__)


class ConfigCacheError(RuntimeError):
    """Base error for cache lifecycle failures."""


class ConfigInitializationError(ConfigCacheError):
    """Raised when the initial cache load fails."""


class MatchType(str, Enum):
    """How ``get_by_pattern`` compares keys against the pattern."""
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    INCLUDES = "includes"
    EXACT = "exact"


@dataclass(frozen=True)
class CacheEntry:
    """Cached view of one active configuration row."""

    value: str
    type: Optional[str]
    description: Optional[str]
    updated_at: Optional[datetime]

    @classmethod
    def from_record(cls, record: ConfigRecord) -> "CacheEntry":
        return cls(
            value=record.value,
            type=record.type,
            description=record.description,
            updated_at=record.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "type": self.type,
            "description": self.description,
            "updated_at": self.updated_at,
        }


def _key_matches(key: str, pattern: str, match_type: MatchType) -> bool:
    if match_type == MatchType.STARTS_WITH:
        return key.startswith(pattern)
    if match_type == MatchType.ENDS_WITH:
        return key.endswith(pattern)
    if match_type == MatchType.INCLUDES:
        return pattern in key
    return key == pattern


class SystemConfigCache:
    """
    Mirror of the active rows of the system_config table.

    Reads are synchronous dictionary lookups. Reloads build a new map and
    swap it in one assignment; at most one reload runs at a time and
    triggers that arrive while one is running are dropped. Writes that
    finish while a reload is in flight are replayed on top of the reloaded
    map before the swap, so a reload never reverts them.
    """

    def __init__(
        self,
        store: SystemConfigStore,
        refresh_interval_seconds: Optional[float] = None,
        auto_refresh: Optional[bool] = None,
    ):
        settings = get_settings()
        self._store = store
        self.refresh_interval_seconds = (
            refresh_interval_seconds
            if refresh_interval_seconds is not None
            else settings.config_cache_refresh_interval_seconds
        )
        self.auto_refresh = auto_refresh if auto_refresh is not None else settings.config_cache_auto_refresh

        self._entries: dict[str, CacheEntry] = {}
        self.is_initialized = False
        self.last_updated: Optional[datetime] = None

        self._refresh_task: Optional[asyncio.Task] = None
        self._refresh_in_progress = False
        # Writes made while a reload is being built; None when no reload is running
        self._pending_writes: Optional[dict[str, Optional[CacheEntry]]] = None
        self._reload_finished = asyncio.Event()
        self._reload_finished.set()
        # Bumped by destroy(); a reload started under an older generation is discarded
        self._generation = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Load the cache and start the periodic reload.

        If a manual reload is already running, wait for it to finish and
        then load again, so the cache is always initialized from its own read.

        Raises:
            ConfigInitializationError: If the configuration store cannot be read
        """
        if self.is_initialized:
            return

        logger.info("Initializing system config cache...")
        try:
            while not await self.refresh_cache():
                logger.info("Waiting for the running system config reload before initializing")
                await self._reload_finished.wait()
        except Exception as e:
            logger.error(f"Failed to initialize system config cache: {e}")
            raise ConfigInitializationError(f"Failed to load system configuration: {e}") from e

        self.is_initialized = True
        if self.auto_refresh:
            self.start_auto_refresh()
        logger.info(f"System config cache initialized with {len(self._entries)} entries")

    async def refresh_cache(self) -> bool:
        """
        Reload every active row from the store and swap in the new map.

        Returns:
            True if the reload ran, False if it was skipped because another
            reload was already in progress or its result was discarded
            because the cache was destroyed meanwhile

        Raises:
            ConfigStoreError: If the store read fails; the current map is kept
        """
        if self._refresh_in_progress:
            logger.info("System config cache refresh already in progress, skipping")
            return False

        self._refresh_in_progress = True
        self._reload_finished.clear()
        self._pending_writes = {}
        generation = self._generation
        try:
            records = await self._store.find_active()

            if generation != self._generation:
                logger.info("System config cache destroyed during refresh, discarding reloaded entries")
                return False

            entries = {record.key: CacheEntry.from_record(record) for record in records if record.is_active}
            for key, entry in self._pending_writes.items():
                if entry is None:
                    entries.pop(key, None)
                else:
                    entries[key] = entry

            self._entries = entries
            self.last_updated = utc_now()
            logger.info(f"System config cache refreshed ({len(entries)} entries)")
            return True
        finally:
            self._refresh_in_progress = False
            self._pending_writes = None
            self._reload_finished.set()

    async def force_refresh(self) -> bool:
        """Trigger an out-of-band reload, subject to the single-reload rule."""
        logger.info("Force refreshing system config cache")
        return await self.refresh_cache()

    def start_auto_refresh(self) -> None:
        """(Re)start the periodic reload task."""
        if self._refresh_task and not self._refresh_task.done():
            self._refresh_task.cancel()

        self._refresh_task = asyncio.create_task(self._auto_refresh_loop())
        logger.info(f"System config cache auto-refresh started (every {self.refresh_interval_seconds}s)")

    async def stop_auto_refresh(self) -> None:
        """Cancel the periodic reload task and wait for it to finish."""
        task = self._refresh_task
        self._refresh_task = None
        if task is None:
            return

        if not task.done():
            task.cancel()
            try:
                await asyncio.wait_for(task, timeout=2.0)
            except (asyncio.CancelledError, asyncio.TimeoutError):
                pass
        logger.info("System config cache auto-refresh stopped")

    async def _auto_refresh_loop(self) -> None:
        """Reload on a fixed interval; failures keep the stale map."""
        while True:
            try:
                await asyncio.sleep(self.refresh_interval_seconds)
                await self.refresh_cache()
            except asyncio.CancelledError:
                logger.info("System config cache auto-refresh cancelled")
                break
            except Exception as e:
                logger.error(
                    f"Scheduled system config refresh failed, keeping {len(self._entries)} cached entries: {e}"
                )

    async def destroy(self) -> None:
        """Stop the reload task and clear the cache. Safe to call repeatedly."""
        await self.stop_auto_refresh()
        self._generation += 1
        self._entries = {}
        self.is_initialized = False
        logger.info("System config cache destroyed")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Cached value for ``key``, or ``default`` when absent or uninitialized."""
        if not self.is_initialized:
            logger.warning(f"System config cache not initialized, returning default for {key}")
            return default

        entry = self._entries.get(key)
        return entry.value if entry else default

    def get_config(self, key: str) -> Optional[CacheEntry]:
        if not self.is_initialized:
            logger.warning(f"System config cache not initialized, cannot read {key}")
            return None
        return self._entries.get(key)

    def get_by_type(self, config_type: str) -> dict[str, str]:
        """Values of every cached entry whose ``type`` equals ``config_type``."""
        if not self.is_initialized:
            logger.warning(f"System config cache not initialized, cannot read type {config_type}")
            return {}
        return {key: entry.value for key, entry in self._entries.items() if entry.type == config_type}

    def get_by_pattern(self, pattern: str, match_type: MatchType | str = MatchType.STARTS_WITH) -> dict[str, str]:
        """Values of every cached key matching ``pattern``; unknown match types compare exactly."""
        if not self.is_initialized:
            logger.warning(f"System config cache not initialized, cannot match {pattern}")
            return {}

        try:
            match_type = MatchType(match_type)
        except ValueError:
            match_type = MatchType.EXACT

        return {
            key: entry.value
            for key, entry in self._entries.items()
            if _key_matches(key, pattern, match_type)
        }

    def get_all(self) -> dict[str, str]:
        if not self.is_initialized:
            logger.warning("System config cache not initialized, returning no entries")
            return {}
        return {key: entry.value for key, entry in self._entries.items()}

    def has(self, key: str) -> bool:
        return self.is_initialized and key in self._entries

    def snapshot(self) -> dict[str, CacheEntry]:
        """Copy of the cached entries; empty when uninitialized."""
        if not self.is_initialized:
            return {}
        return dict(self._entries)

    def get_stats(self) -> dict[str, Any]:
        return {
            "is_initialized": self.is_initialized,
            "config_count": len(self._entries),
            "last_updated": self.last_updated,
            "refresh_interval_ms": int(self.refresh_interval_seconds * 1000),
            "has_auto_refresh": self._refresh_task is not None and not self._refresh_task.done(),
        }

    def get_app_config(self) -> dict[str, Any]:
        """Application branding settings with per-field defaults."""
        return {
            "app_name": self.get("APP_NAME", "Fix_Smart_CMS"),
            "app_version": self.get("APP_VERSION", "1.0.3"),
            "organization_name": self.get("ORGANIZATION_NAME", "Smart City Management"),
            "support_email": self.get("SUPPORT_EMAIL", "support@fix-smart-cms.gov.in"),
            "website_url": self.get("WEBSITE_URL", "https://fix-smart-cms.gov.in"),
            "logo_url": self.get("LOGO_URL"),
            "primary_color": self.get("PRIMARY_COLOR", "#667eea"),
            "secondary_color": self.get("SECONDARY_COLOR", "#764ba2"),
        }

    def get_email_config(self) -> dict[str, Any]:
        """Outgoing email settings with per-field defaults."""
        return {
            "from_name": self.get("EMAIL_FROM_NAME", self.get("APP_NAME", "Fix_Smart_CMS")),
            "from_email": self.get("EMAIL_FROM_ADDRESS", "noreply@fix-smart-cms.gov.in"),
            "reply_to_email": self.get(
                "EMAIL_REPLY_TO", self.get("SUPPORT_EMAIL", "support@fix-smart-cms.gov.in")
            ),
            "footer_text": self.get(
                "EMAIL_FOOTER_TEXT", "This is an automated message. Please do not reply to this email."
            ),
            "unsubscribe_url": self.get("EMAIL_UNSUBSCRIBE_URL"),
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _apply_write(self, key: str, entry: Optional[CacheEntry]) -> None:
        """Put (or remove, when entry is None) one key in the live map."""
        if entry is None:
            self._entries.pop(key, None)
        else:
            self._entries[key] = entry

        if self._pending_writes is not None:
            self._pending_writes[key] = entry

    async def set(
        self,
        key: str,
        value: Any,
        type: Optional[str] = None,
        description: Optional[str] = None,
    ) -> ConfigRecord:
        """
        Persist a value and make it visible to readers immediately.

        Raises:
            ConfigStoreError: If the store rejects the write; the cache is unchanged
        """
        logger.info(f"Setting system configuration {key}")
        try:
            record = await self._store.upsert(key, value, type=type, description=description)
        except ConfigStoreError as e:
            logger.error(f"Failed to set configuration {key}: {e}")
            raise

        self._apply_write(record.key, CacheEntry.from_record(record))
        return record

    async def delete(self, key: str) -> ConfigRecord:
        """
        Soft-delete a key and drop it from the cache.

        Raises:
            ConfigNotFoundError: If the key is not an active row
            ConfigStoreError: If the store rejects the write; the cache is unchanged
        """
        logger.info(f"Deleting system configuration {key}")
        try:
            record = await self._store.soft_delete(key)
        except ConfigStoreError as e:
            logger.error(f"Failed to delete configuration {key}: {e}")
            raise

        self._apply_write(key, None)
        return record

    async def bulk_update(self, configs: list[dict[str, Any]]) -> dict[str, list]:
        """
        Upsert many entries independently, then reload once.

        Returns:
            ``{"updated": [...], "created": [...], "errors": [{"key", "error"}]}``
            where updated/created hold ``ConfigRecord`` snapshots
        """
        logger.info(f"Bulk updating {len(configs)} system configurations")
        results: dict[str, list] = {"updated": [], "created": [], "errors": []}

        for outcome in await self._store.bulk_upsert(configs):
            if not outcome.ok:
                results["errors"].append({"key": outcome.key, "error": outcome.error})
                continue

            record = outcome.record
            self._apply_write(record.key, CacheEntry.from_record(record))
            if record.was_created:
                results["created"].append(record)
            else:
                results["updated"].append(record)

        try:
            await self.force_refresh()
        except ConfigStoreError as e:
            logger.error(f"Cache refresh after bulk update failed: {e}")

        logger.info(
            f"Bulk update completed: {len(results['updated'])} updated, "
            f"{len(results['created'])} created, {len(results['errors'])} errors"
        )
        return results
