"""API routers."""
from cms_config.routers import health, system_config

__all__ = ["health", "system_config"]
