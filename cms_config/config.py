"""Application configuration management."""
from pydantic import model_validator, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from sqlalchemy.engine.url import make_url, URL
from typing import Optional
import logging

SQLITE_LOCAL_URL = "sqlite+aiosqlite:///./cms_config.db"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = SQLITE_LOCAL_URL
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Application
    environment: str = "development"
    frontend_url: str = "http://localhost:5173"
    log_dir: str = "logs"

    # System config cache
    config_cache_refresh_interval_seconds: int = 300  # Full reload every 5 minutes
    config_cache_auto_refresh: bool = True

    # Public settings read
    public_settings_hidden_markers: str = "SECRET,PASSWORD,TOKEN,API_KEY,SMTP"  # Comma-separated key substrings

    @field_validator("public_settings_hidden_markers", mode="before")
    @classmethod
    def parse_hidden_markers(cls, value):
        """Accept comma-separated strings or sequences of key markers."""
        if value is None:
            return cls.model_fields["public_settings_hidden_markers"].default
        if isinstance(value, (list, tuple, set)):
            return ",".join(str(item).strip() for item in value if str(item).strip())
        return str(value)

    def hidden_setting_markers(self) -> list[str]:
        """Upper-cased key substrings that must never be exposed publicly."""
        return [item.strip().upper() for item in self.public_settings_hidden_markers.split(",") if item.strip()]

    @model_validator(mode="after")
    def validate_all_config(self):
        """Validate cache timing and normalize Postgres URLs."""
        logger = logging.getLogger(__name__)

        if self.config_cache_refresh_interval_seconds < 1:
            raise ValueError("config_cache_refresh_interval_seconds must be at least 1 second")

        url = self.database_url
        if not url:
            logger.warning("Empty DATABASE_URL, using SQLite fallback")
            self.database_url = SQLITE_LOCAL_URL
            return self

        parsed: Optional[URL] = None
        try:
            parsed = make_url(url)
        except Exception as e:
            logger.error(f"Failed to parse DATABASE_URL: {e}")
            logger.warning("Invalid DATABASE_URL; falling back to default sqlite database.")
            self.database_url = SQLITE_LOCAL_URL
            return self

        drivername = parsed.drivername
        if drivername.startswith("postgres") and "+asyncpg" not in drivername:
            old_drivername = drivername
            parsed = parsed.set(drivername="postgresql+asyncpg")
            logger.info(f"Driver normalized: {old_drivername} -> {parsed.drivername}")

        # Use render_as_string to properly re-encode special characters in password
        self.database_url = parsed.render_as_string(hide_password=False)
        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
