"""System configuration API routes."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from cms_config.dependencies import (
    get_config_cache,
    get_config_store,
    get_legacy_config,
    get_public_settings_provider,
)
from cms_config.schemas.system_config import (
    BulkUpdateError,
    BulkUpdateRequest,
    BulkUpdateResponse,
    CacheStatsResponse,
    ConfigEntryResponse,
    ConfigStatsResponse,
    ConfigValuesResponse,
    CreateConfigRequest,
    DeleteConfigResponse,
    PublicSettingsData,
    PublicSettingsMeta,
    PublicSettingsResponse,
    RefreshResponse,
    UpdateConfigRequest,
)
from cms_config.services.config_query import LegacySystemConfigAdapter
from cms_config.services.config_store import (
    ConfigNotFoundError,
    ConfigStoreError,
    InvalidConfigKeyError,
    SystemConfigStore,
)
from cms_config.services.config_validation import ConfigValidationError, validate_config_value
from cms_config.services.public_settings import PublicSettingsProvider
from cms_config.services.system_config_cache import MatchType, SystemConfigCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/system-config", tags=["system-config"])

CacheDep = Annotated[SystemConfigCache, Depends(get_config_cache)]
StoreDep = Annotated[SystemConfigStore, Depends(get_config_store)]


def _entry_response(key: str, cache: SystemConfigCache) -> ConfigEntryResponse | None:
    entry = cache.get_config(key)
    if entry is None:
        return None
    return ConfigEntryResponse(key=key, **entry.to_dict())


def _raise_for_store_error(error: ConfigStoreError, action: str):
    if isinstance(error, ConfigNotFoundError):
        raise HTTPException(status_code=404, detail=str(error))
    if isinstance(error, InvalidConfigKeyError):
        raise HTTPException(status_code=400, detail=str(error))
    logger.error(f"Failed to {action}: {error}")
    raise HTTPException(status_code=500, detail=f"Failed to {action}")


@router.get("/public", response_model=PublicSettingsResponse)
async def get_public_settings(
    provider: Annotated[PublicSettingsProvider, Depends(get_public_settings_provider)],
):
    """Public settings for unauthenticated clients. Always answers, using defaults when needed."""
    result = await provider.get_public_settings()
    return PublicSettingsResponse(
        success=True,
        message=result.message,
        data=PublicSettingsData(config=result.config, complaint_types=result.complaint_types),
        meta=PublicSettingsMeta(
            source=result.source.value,
            database_available=result.database_available,
            error=result.error,
        ),
    )


@router.get("/stats", response_model=ConfigStatsResponse)
async def get_stats(
    cache: CacheDep,
    legacy: Annotated[LegacySystemConfigAdapter, Depends(get_legacy_config)],
):
    return ConfigStatsResponse(
        cache=CacheStatsResponse(**cache.get_stats()),
        query_metrics=legacy.monitor.get_metrics(),
    )


@router.get("", response_model=list[ConfigEntryResponse])
async def list_configs(cache: CacheDep):
    """All cached configuration entries ordered by key."""
    return [
        ConfigEntryResponse(key=key, **entry.to_dict())
        for key, entry in sorted(cache.snapshot().items())
    ]


@router.get("/type/{config_type}", response_model=ConfigValuesResponse)
async def get_configs_by_type(config_type: str, cache: CacheDep):
    configs = cache.get_by_type(config_type)
    return ConfigValuesResponse(configs=configs, count=len(configs))


@router.get("/pattern/{pattern}", response_model=ConfigValuesResponse)
async def get_configs_by_pattern(
    pattern: str,
    cache: CacheDep,
    match_type: MatchType = Query(MatchType.STARTS_WITH),
):
    configs = cache.get_by_pattern(pattern, match_type)
    return ConfigValuesResponse(configs=configs, count=len(configs))


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_cache(cache: CacheDep):
    """Reload the cache from the database now."""
    try:
        refreshed = await cache.force_refresh()
    except ConfigStoreError as e:
        logger.error(f"Manual cache refresh failed: {e}")
        raise HTTPException(status_code=503, detail="Configuration store unavailable")

    message = "Cache refreshed" if refreshed else "Refresh already in progress"
    return RefreshResponse(refreshed=refreshed, message=message, stats=CacheStatsResponse(**cache.get_stats()))


@router.post("/bulk", response_model=BulkUpdateResponse)
async def bulk_update_configs(request: BulkUpdateRequest, cache: CacheDep):
    """Validate and upsert many entries; invalid entries are reported, not fatal."""
    valid = []
    errors = []
    for item in request.configs:
        try:
            if isinstance(item.key, str):
                validate_config_value(item.key, item.value)
            valid.append(item.model_dump())
        except ConfigValidationError as e:
            errors.append(BulkUpdateError(key=item.key, error=str(e)))

    results = await cache.bulk_update(valid) if valid else {"updated": [], "created": [], "errors": []}
    errors.extend(BulkUpdateError(**error) for error in results["errors"])

    return BulkUpdateResponse(
        success=not errors,
        message=(
            f"{len(results['updated'])} updated, {len(results['created'])} created, "
            f"{len(errors)} failed"
        ),
        updated=[ConfigEntryResponse.model_validate(record) for record in results["updated"]],
        created=[ConfigEntryResponse.model_validate(record) for record in results["created"]],
        errors=errors,
    )


@router.get("/{key}", response_model=ConfigEntryResponse)
async def get_config(key: str, cache: CacheDep, store: StoreDep):
    """One active configuration entry, from the cache when present."""
    response = _entry_response(key, cache)
    if response is not None:
        return response

    try:
        record = await store.find_by_key(key)
    except ConfigStoreError as e:
        _raise_for_store_error(e, f"read configuration {key}")

    if record is None or not record.is_active:
        raise HTTPException(status_code=404, detail=f"Configuration key not found: {key}")
    return ConfigEntryResponse.model_validate(record)


@router.post("", response_model=ConfigEntryResponse, status_code=201)
async def create_config(request: CreateConfigRequest, cache: CacheDep, store: StoreDep):
    try:
        value = validate_config_value(request.key, request.value)
    except ConfigValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        existing = await store.find_by_key(request.key)
        if existing is not None and existing.is_active:
            raise HTTPException(status_code=409, detail=f"Configuration key already exists: {request.key}")
        record = await cache.set(request.key, value, type=request.type, description=request.description)
    except ConfigStoreError as e:
        _raise_for_store_error(e, f"create configuration {request.key}")

    return ConfigEntryResponse.model_validate(record)


@router.put("/{key}", response_model=ConfigEntryResponse)
async def update_config(key: str, request: UpdateConfigRequest, cache: CacheDep, store: StoreDep):
    try:
        value = validate_config_value(key, request.value)
    except ConfigValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        existing = await store.find_by_key(key)
        if existing is None or not existing.is_active:
            raise ConfigNotFoundError(key)
        record = await cache.set(key, value, type=request.type, description=request.description)
    except ConfigStoreError as e:
        _raise_for_store_error(e, f"update configuration {key}")

    return ConfigEntryResponse.model_validate(record)


@router.delete("/{key}", response_model=DeleteConfigResponse)
async def delete_config(key: str, cache: CacheDep):
    try:
        await cache.delete(key)
    except ConfigStoreError as e:
        _raise_for_store_error(e, f"delete configuration {key}")

    return DeleteConfigResponse(success=True, key=key, message=f"Configuration '{key}' deleted successfully")
