"""System configuration model for storing dynamic configuration values."""
from sqlalchemy import String, Text, DateTime, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, UTC
from cms_config.database import Base


class SystemConfig(Base):
    """System configuration table for dynamic settings.

    Rows are soft-deleted by clearing ``is_active``; inactive rows stay in the
    table but are never mirrored by the cache.
    """

    __tablename__ = "system_config"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)  # free-form grouping, e.g. 'app', 'email'
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))

    def __repr__(self) -> str:
        return f"<SystemConfig(key={self.key}, value={self.value}, active={self.is_active})>"
