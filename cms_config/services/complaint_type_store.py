"""Read access to the complaint type lookup table."""
from dataclasses import dataclass
from typing import Any, Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cms_config.database import AsyncSessionLocal
from cms_config.models.complaint_type import ComplaintType
from cms_config.services.config_store import ConfigStoreError
from cms_config.utils.datetime_helpers import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComplaintTypeRecord:
    """Detached snapshot of a complaint_types row."""

    id: Optional[int]
    name: str
    description: Optional[str]
    priority: str
    sla_hours: int
    is_active: bool

    @classmethod
    def from_model(cls, row: ComplaintType) -> "ComplaintTypeRecord":
        return cls(
            id=row.id,
            name=row.name,
            description=row.description,
            priority=row.priority,
            sla_hours=row.sla_hours,
            is_active=bool(row.is_active),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "priority": self.priority,
            "sla_hours": self.sla_hours,
            "is_active": self.is_active,
        }


class ComplaintTypeStore:
    """Loads complaint types for the public settings read."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal):
        self._session_factory = session_factory

    async def find_active(self) -> list[ComplaintTypeRecord]:
        """Active complaint types ordered by name."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(ComplaintType)
                    .where(ComplaintType.is_active.is_(True))
                    .order_by(ComplaintType.name)
                )
                return [ComplaintTypeRecord.from_model(row) for row in result.scalars().all()]
        except (SQLAlchemyError, OSError) as e:
            raise ConfigStoreError(f"Failed to load complaint types: {e}") from e

    async def upsert(
        self,
        name: str,
        description: Optional[str] = None,
        priority: str = "MEDIUM",
        sla_hours: int = 48,
    ) -> tuple[ComplaintTypeRecord, bool]:
        """Insert or update a complaint type by name. Returns the row and whether it was created."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(ComplaintType).where(ComplaintType.name == name)
                )
                row = result.scalar_one_or_none()
                created = row is None

                if row is None:
                    row = ComplaintType(
                        name=name,
                        description=description,
                        priority=priority,
                        sla_hours=sla_hours,
                        is_active=True,
                    )
                    session.add(row)
                else:
                    row.description = description
                    row.priority = priority
                    row.sla_hours = sla_hours
                    row.is_active = True
                    row.updated_at = utc_now()

                await session.commit()
                await session.refresh(row)
                return ComplaintTypeRecord.from_model(row), created
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to save complaint type {name}: {e}")
            raise ConfigStoreError(f"Failed to save complaint type {name}: {e}") from e
