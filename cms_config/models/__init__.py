"""Database models."""
from cms_config.models.system_config import SystemConfig
from cms_config.models.complaint_type import ComplaintType

__all__ = [
    "SystemConfig",
    "ComplaintType",
]
