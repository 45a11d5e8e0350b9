"""FastAPI dependencies resolving the services owned by the application."""
import logging

from fastapi import HTTPException, Request

from cms_config.services.config_query import LegacySystemConfigAdapter
from cms_config.services.config_store import SystemConfigStore
from cms_config.services.public_settings import PublicSettingsProvider
from cms_config.services.system_config_cache import SystemConfigCache

logger = logging.getLogger(__name__)


def _app_service(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        logger.error(f"Application service '{name}' is not configured")
        raise HTTPException(status_code=503, detail="Configuration service unavailable")
    return service


def get_config_cache(request: Request) -> SystemConfigCache:
    return _app_service(request, "config_cache")


def get_config_store(request: Request) -> SystemConfigStore:
    return _app_service(request, "config_store")


def get_public_settings_provider(request: Request) -> PublicSettingsProvider:
    return _app_service(request, "public_settings")


def get_legacy_config(request: Request) -> LegacySystemConfigAdapter:
    return _app_service(request, "legacy_config")
