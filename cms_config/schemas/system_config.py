"""System configuration API schemas."""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_serializer

from cms_config.schemas.base import BaseSchema, UTCDateTime


class ConfigEntryResponse(BaseSchema):
    """One configuration row."""
    key: str
    value: str
    type: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[UTCDateTime] = None
    updated_at: Optional[UTCDateTime] = None


class ConfigValuesResponse(BaseModel):
    """Key/value map returned by the type and pattern lookups."""
    configs: dict[str, str]
    count: int


class CreateConfigRequest(BaseModel):
    """Request model for creating a configuration key."""
    key: str = Field(min_length=1, max_length=100)
    value: Any
    type: Optional[str] = None
    description: Optional[str] = None


class UpdateConfigRequest(BaseModel):
    """Request model for updating configuration."""
    value: Any
    type: Optional[str] = None
    description: Optional[str] = None


class BulkConfigItem(BaseModel):
    key: Any
    value: Any = None
    type: Optional[str] = None
    description: Optional[str] = None


class BulkUpdateRequest(BaseModel):
    configs: list[BulkConfigItem]


class BulkUpdateError(BaseModel):
    key: Any
    error: str


class BulkUpdateResponse(BaseSchema):
    """Per-entry outcome of a bulk update."""
    success: bool
    message: str
    updated: list[ConfigEntryResponse]
    created: list[ConfigEntryResponse]
    errors: list[BulkUpdateError]


class CacheStatsResponse(BaseSchema):
    is_initialized: bool
    config_count: int
    last_updated: Optional[UTCDateTime] = None
    refresh_interval_ms: int
    has_auto_refresh: bool


class ConfigStatsResponse(BaseSchema):
    """Cache state plus legacy query hit/miss counters."""
    cache: CacheStatsResponse
    query_metrics: dict[str, Any]


class RefreshResponse(BaseSchema):
    refreshed: bool
    message: str
    stats: CacheStatsResponse


class DeleteConfigResponse(BaseModel):
    success: bool
    key: str
    message: str


class PublicSettingEntry(BaseModel):
    key: str
    value: str
    description: Optional[str] = None
    type: str
    enabled: bool = True


class PublicComplaintType(BaseModel):
    id: Optional[int] = None
    name: str
    description: Optional[str] = None
    priority: str
    sla_hours: int
    is_active: bool = True


class PublicSettingsData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    config: list[PublicSettingEntry]
    complaint_types: list[PublicComplaintType] = Field(default_factory=list, alias="complaintTypes")


class PublicSettingsMeta(BaseModel):
    """Provenance of a public settings response; ``error`` only appears on the defaults_fallback tier."""
    model_config = ConfigDict(populate_by_name=True)

    source: str
    database_available: bool = Field(alias="databaseAvailable")
    error: Optional[str] = None

    @model_serializer(mode="wrap")
    def drop_empty_error(self, handler):
        data = handler(self)
        if data.get("error") is None:
            data.pop("error", None)
        return data


class PublicSettingsResponse(BaseModel):
    success: bool = True
    message: str
    data: PublicSettingsData
    meta: PublicSettingsMeta
