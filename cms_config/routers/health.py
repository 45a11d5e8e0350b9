"""Health check endpoint."""
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from cms_config.database import engine
from cms_config.config import get_settings
from cms_config.version import APP_VERSION
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Database round trip plus the state of the configuration cache."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "error", "detail": "Database connection failed"},
        )

    cache = getattr(request.app.state, "config_cache", None)
    stats = cache.get_stats() if cache is not None else None

    return {
        "status": "ok",
        "database": "connected",
        "config_cache": {
            "initialized": bool(stats and stats["is_initialized"]),
            "entries": stats["config_count"] if stats else 0,
        },
    }


@router.get("/status")
async def service_status():
    """Version and environment for display on the frontend."""
    settings = get_settings()
    return {
        "version": APP_VERSION,
        "environment": settings.environment,
        "cache_refresh_interval_seconds": settings.config_cache_refresh_interval_seconds,
    }
