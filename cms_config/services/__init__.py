from cms_config.services.config_store import (
    ConfigNotFoundError,
    ConfigRecord,
    ConfigStoreError,
    InvalidConfigKeyError,
    SystemConfigStore,
)
from cms_config.services.complaint_type_store import ComplaintTypeStore
from cms_config.services.config_validation import (
    ConfigValidationError,
    expected_value_type,
    infer_value_type,
    parse_config_value,
    serialize_value,
    validate_config_value,
)
from cms_config.services.system_config_cache import (
    CacheEntry,
    ConfigCacheError,
    ConfigInitializationError,
    MatchType,
    SystemConfigCache,
)
from cms_config.services.config_migration import ConfigPerformanceMonitor
from cms_config.services.config_query import LegacySystemConfigAdapter, parse_query
from cms_config.services.public_settings import PublicSettingsProvider, SettingsSource

__all__ = [
    "CacheEntry",
    "ComplaintTypeStore",
    "ConfigCacheError",
    "ConfigInitializationError",
    "ConfigNotFoundError",
    "ConfigPerformanceMonitor",
    "ConfigRecord",
    "ConfigStoreError",
    "ConfigValidationError",
    "InvalidConfigKeyError",
    "LegacySystemConfigAdapter",
    "MatchType",
    "PublicSettingsProvider",
    "SettingsSource",
    "SystemConfigCache",
    "SystemConfigStore",
    "expected_value_type",
    "infer_value_type",
    "parse_config_value",
    "parse_query",
    "serialize_value",
    "validate_config_value",
]
