"""Public (unauthenticated) system settings read with tiered fallback.

Every request runs its own probe rather than trusting the cache, so the
endpoint keeps answering before the cache has initialized and while the
database is down:

1. probe fails          -> hardcoded defaults, source ``defaults``
2. config query fails   -> hardcoded defaults, source ``defaults_fallback`` (with error)
3. complaint types fail -> live config, empty complaint types, source ``database``
4. everything succeeds  -> live data, source ``database``

There are no retries inside a request.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
import logging

from cms_config.config import get_settings
from cms_config.data.default_settings import DEFAULT_SYSTEM_CONFIG
from cms_config.services.complaint_type_store import ComplaintTypeStore
from cms_config.services.config_store import SystemConfigStore
from cms_config.services.config_validation import infer_value_type

logger = logging.getLogger(__name__)

MESSAGE_LIVE = "System settings retrieved successfully"
MESSAGE_DEFAULTS = "System settings retrieved using default values - database unavailable"
MESSAGE_DEFAULTS_FALLBACK = "System settings retrieved using default values - database error"


class SettingsSource(str, Enum):
    """Which tier produced a public settings response."""
    DATABASE = "database"
    DEFAULTS_FALLBACK = "defaults_fallback"
    DEFAULTS = "defaults"


@dataclass
class PublicSettingsResult:
    config: list[dict[str, Any]]
    source: SettingsSource
    database_available: bool
    message: str
    complaint_types: list[dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None


def _settings_entry(key: str, value: str, description: Optional[str], enabled: bool = True) -> dict[str, Any]:
    return {
        "key": key,
        "value": value,
        "description": description,
        "type": infer_value_type(value),
        "enabled": enabled,
    }


class PublicSettingsProvider:
    """Builds the public settings payload from the database or hardcoded defaults."""

    def __init__(
        self,
        store: SystemConfigStore,
        complaint_types: ComplaintTypeStore,
        defaults: Optional[list[dict[str, Any]]] = None,
        hidden_markers: Optional[list[str]] = None,
    ):
        self._store = store
        self._complaint_types = complaint_types
        self._defaults = defaults if defaults is not None else DEFAULT_SYSTEM_CONFIG
        self._hidden_markers = (
            hidden_markers if hidden_markers is not None else get_settings().hidden_setting_markers()
        )

    def _is_public(self, key: str) -> bool:
        upper_key = key.upper()
        return not any(marker in upper_key for marker in self._hidden_markers)

    def default_entries(self) -> list[dict[str, Any]]:
        """The hardcoded dataset, shaped like live entries."""
        return [
            _settings_entry(item["key"], item["value"], item.get("description"))
            for item in self._defaults
            if self._is_public(item["key"])
        ]

    async def get_public_settings(self) -> PublicSettingsResult:
        """Resolve the public settings through the fallback tiers. Never raises."""
        try:
            await self._store.probe()
        except Exception as e:
            logger.warning(f"Database unavailable for public settings, serving defaults: {e}")
            return PublicSettingsResult(
                config=self.default_entries(),
                source=SettingsSource.DEFAULTS,
                database_available=False,
                message=MESSAGE_DEFAULTS,
            )

        try:
            records = await self._store.find_active()
        except Exception as e:
            logger.warning(f"System config query failed for public settings, serving defaults: {e}")
            return PublicSettingsResult(
                config=self.default_entries(),
                source=SettingsSource.DEFAULTS_FALLBACK,
                database_available=False,
                message=MESSAGE_DEFAULTS_FALLBACK,
                error=str(e),
            )

        config = [
            _settings_entry(record.key, record.value, record.description, record.is_active)
            for record in records
            if self._is_public(record.key)
        ]

        try:
            complaint_types = [record.to_dict() for record in await self._complaint_types.find_active()]
        except Exception as e:
            logger.warning(f"Complaint type query failed for public settings, returning none: {e}")
            complaint_types = []

        return PublicSettingsResult(
            config=config,
            complaint_types=complaint_types,
            source=SettingsSource.DATABASE,
            database_available=True,
            message=MESSAGE_LIVE,
        )
