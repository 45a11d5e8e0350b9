"""FastAPI application entry point."""
import os
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from contextlib import asynccontextmanager

from cms_config.config import get_settings
from cms_config.version import APP_VERSION
from cms_config.database import AsyncSessionLocal
from cms_config.routers import health, system_config
from cms_config.services.complaint_type_store import ComplaintTypeStore
from cms_config.services.config_query import LegacySystemConfigAdapter
from cms_config.services.config_store import SystemConfigStore
from cms_config.services.public_settings import PublicSettingsProvider
from cms_config.services.system_config_cache import SystemConfigCache

settings = get_settings()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# SQL statements that only add noise to the SQL log
SQL_NOISE = ('ROLLBACK', 'BEGIN', 'COMMIT', 'generated in')


class SQLTransactionFilter(logging.Filter):
    """Drop transaction bookkeeping and put each statement on one line."""

    def filter(self, record):
        if record.levelno != logging.INFO:
            return True

        message = record.getMessage()
        if any(keyword in message for keyword in SQL_NOISE):
            return False
        if '\n' in message:
            record.msg = ' '.join(message.split())
            record.args = ()
        return True


def _rotating_handler(path: Path, max_bytes: int, backups: int, fmt: str = LOG_FORMAT) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backups, encoding='utf-8')
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(log_dir: str) -> logging.Logger:
    """Console + rotating file logging; SQL and API request logs get their own files.

    Returns the API request logger.
    """
    logs_dir = Path(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    general_handler = _rotating_handler(logs_dir / "cms_config.log", 1024 * 1024, 5)

    # Force=True overrides any existing configuration (e.g., from uvicorn)
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(), general_handler],
        force=True,
    )

    request_logger = logging.getLogger("cms_config.api")
    request_logger.handlers.clear()
    request_logger.addHandler(
        _rotating_handler(logs_dir / "cms_config_api.log", 2 * 1024 * 1024, 15, '%(asctime)s - %(levelname)s - %(message)s')
    )
    request_logger.setLevel(logging.INFO)
    request_logger.propagate = False

    access_logger = logging.getLogger("uvicorn.access")
    access_logger.setLevel(logging.INFO)
    access_logger.addHandler(general_handler)

    sql_logger = logging.getLogger("sqlalchemy.engine.Engine")
    sql_logger.handlers.clear()
    sql_logger.addHandler(_rotating_handler(logs_dir / "cms_config_sql.log", 1024 * 1024, 5))
    sql_logger.setLevel(logging.INFO)
    sql_logger.propagate = False
    sql_logger.addFilter(SQLTransactionFilter())

    return request_logger


api_logger = configure_logging(settings.log_dir)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    """Own the configuration services for the lifetime of the process."""
    logger.info("=" * 60)
    logger.info("CMS Config API Starting")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Database: {settings.database_url.split('@')[-1] if '@' in settings.database_url else 'SQLite'}")
    logger.info("=" * 60)

    store = SystemConfigStore(AsyncSessionLocal)
    cache = SystemConfigCache(store)

    # A cache that cannot load at boot aborts startup
    await cache.initialize()

    app_instance.state.config_store = store
    app_instance.state.config_cache = cache
    app_instance.state.public_settings = PublicSettingsProvider(store, ComplaintTypeStore(AsyncSessionLocal))
    app_instance.state.legacy_config = LegacySystemConfigAdapter(cache, store)

    try:
        yield
    finally:
        logger.info("Shutting down system config cache...")
        try:
            await cache.destroy()
        except Exception as e:
            logger.error(f"Error stopping system config cache: {e}")
        logger.info("CMS Config API Shutting Down... Goodbye!")


app = FastAPI(
    title="CMS Config API",
    description="Cached system configuration service",
    version=APP_VERSION,
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors with user-friendly messages."""
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")

    errors = []
    for error in exc.errors():
        loc = error.get("loc", [])
        field_path = " -> ".join(str(x) for x in loc[1:]) if len(loc) > 1 else "unknown field"
        errors.append({
            "field": field_path,
            "message": error.get("msg", "Validation error"),
            "type": error.get("type", "unknown"),
        })

    return JSONResponse(
        status_code=422,
        content={
            "detail": "Request validation failed",
            "errors": errors
        }
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with status code and timing to the API log file."""
    start_time = time.time()
    client_ip = request.client.host if request.client else "unknown"
    method = request.method
    path = request.url.path
    request_id = f"{method}:{path}:{int(start_time * 1000) % 100000}"

    api_logger.info(f">> {request_id} | START | {method} {path} | IP: {client_ip}")

    try:
        response = await call_next(request)
    except Exception as e:
        api_logger.error(
            f"<< {request_id} | EXCEPTION | {method} {path} | "
            f"Error: {str(e)[:100]} | Time: {time.time() - start_time:.3f}s"
        )
        raise

    api_logger.info(
        f"<< {request_id} | COMPLETE | {method} {path} | "
        f"Status: {response.status_code} | Time: {time.time() - start_time:.3f}s"
    )
    return response


allowed_origins = [origin for origin in os.getenv("ALLOWED_ORIGINS", "").split(",") if origin]
if not allowed_origins:
    allowed_origins = [
        settings.frontend_url,
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(system_config.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "CMS Config API",
        "version": APP_VERSION,
        "environment": settings.environment,
        "docs": "/docs",
    }
