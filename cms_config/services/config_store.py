"""Persistent store for system configuration rows."""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional
import logging

from sqlalchemy import select, func, text, and_, or_, not_, true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cms_config.database import AsyncSessionLocal
from cms_config.models.system_config import SystemConfig
from cms_config.services.config_validation import serialize_value
from cms_config.utils.datetime_helpers import ensure_utc, utc_now

logger = logging.getLogger(__name__)

MAX_KEY_LENGTH = 100

# Filter field names accepted by find_many/count, in both legacy and column spelling
FILTER_COLUMNS = {
    "key": SystemConfig.key,
    "value": SystemConfig.value,
    "type": SystemConfig.type,
    "description": SystemConfig.description,
    "isActive": SystemConfig.is_active,
    "is_active": SystemConfig.is_active,
    "createdAt": SystemConfig.created_at,
    "created_at": SystemConfig.created_at,
    "updatedAt": SystemConfig.updated_at,
    "updated_at": SystemConfig.updated_at,
}

# Query options that have no meaning for a relation-free table
IGNORED_QUERY_OPTIONS = ("include", "select")


class ConfigStoreError(Exception):
    """Raised when the configuration store cannot complete an operation."""


class InvalidConfigKeyError(ConfigStoreError):
    """Raised when a key is empty, not a string, or too long."""


class ConfigNotFoundError(ConfigStoreError):
    """Raised when a configuration key does not exist (or is inactive)."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Configuration key not found: {key}")


@dataclass(frozen=True)
class ConfigRecord:
    """Detached snapshot of a system_config row."""

    key: str
    value: str
    type: Optional[str]
    description: Optional[str]
    is_active: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_model(cls, row: SystemConfig) -> "ConfigRecord":
        return cls(
            key=row.key,
            value=row.value,
            type=row.type,
            description=row.description,
            is_active=bool(row.is_active),
            created_at=ensure_utc(row.created_at),
            updated_at=ensure_utc(row.updated_at),
        )

    @property
    def was_created(self) -> bool:
        """True when the row has not been modified since it was inserted."""
        return self.created_at is not None and self.created_at == self.updated_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "value": self.value,
            "type": self.type,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class UpsertOutcome:
    """Result of one entry in a bulk upsert."""

    key: Any
    record: Optional[ConfigRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _validate_key(key: Any) -> str:
    if not isinstance(key, str) or not key.strip():
        raise InvalidConfigKeyError(f"Invalid configuration key: {key!r}")
    if len(key) > MAX_KEY_LENGTH:
        raise InvalidConfigKeyError(f"Configuration key exceeds {MAX_KEY_LENGTH} characters: {key[:20]}...")
    return key


def _column(field: str):
    column = FILTER_COLUMNS.get(field)
    if column is None:
        raise ConfigStoreError(f"Unsupported filter field: {field}")
    return column


def _field_condition(field: str, condition: Any):
    """Translate one ``{field: condition}`` pair into a SQL expression."""
    column = _column(field)

    if not isinstance(condition, dict):
        if condition is None:
            return column.is_(None)
        return column == condition

    clauses = []
    for op, operand in condition.items():
        if op == "equals":
            clauses.append(column.is_(None) if operand is None else column == operand)
        elif op == "not":
            if isinstance(operand, dict):
                clauses.append(not_(_field_condition(field, operand)))
            else:
                clauses.append(column.is_not(None) if operand is None else column != operand)
        elif op == "in":
            clauses.append(column.in_(list(operand)))
        elif op == "notIn":
            clauses.append(column.not_in(list(operand)))
        elif op == "startsWith":
            clauses.append(column.startswith(operand, autoescape=True))
        elif op == "endsWith":
            clauses.append(column.endswith(operand, autoescape=True))
        elif op == "contains":
            clauses.append(column.contains(operand, autoescape=True))
        elif op == "gt":
            clauses.append(column > operand)
        elif op == "gte":
            clauses.append(column >= operand)
        elif op == "lt":
            clauses.append(column < operand)
        elif op == "lte":
            clauses.append(column <= operand)
        elif op == "mode":
            # Case sensitivity follows the database collation
            continue
        else:
            raise ConfigStoreError(f"Unsupported filter operator for {field}: {op}")

    if not clauses:
        return true()
    return and_(*clauses)


def build_where_clause(where: Optional[dict]):
    """Translate a legacy ``where`` object (with OR/AND/NOT) into a SQL expression."""
    if not where:
        return true()

    clauses = []
    for name, condition in where.items():
        if name == "OR":
            branches = condition if isinstance(condition, list) else [condition]
            clauses.append(or_(*[build_where_clause(branch) for branch in branches]))
        elif name == "AND":
            branches = condition if isinstance(condition, list) else [condition]
            clauses.append(and_(*[build_where_clause(branch) for branch in branches]))
        elif name == "NOT":
            branches = condition if isinstance(condition, list) else [condition]
            clauses.append(not_(and_(*[build_where_clause(branch) for branch in branches])))
        else:
            clauses.append(_field_condition(name, condition))

    return and_(*clauses)


def _order_clauses(order_by: Any) -> list:
    entries = order_by if isinstance(order_by, list) else [order_by]
    clauses = []
    for entry in entries:
        for field, direction in entry.items():
            column = _column(field)
            if str(direction).lower() == "desc":
                clauses.append(column.desc())
            else:
                clauses.append(column.asc())
    return clauses


class SystemConfigStore:
    """
    Authoritative store of configuration rows backed by SQLAlchemy.

    Every operation opens its own session from ``session_factory`` so the
    store can be shared by the cache, its refresh task and request handlers.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal):
        self._session_factory = session_factory

    async def probe(self) -> bool:
        """Round-trip a trivial query to confirm the database is reachable."""
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Configuration store probe failed: {e}")
            raise ConfigStoreError(f"Database unavailable: {e}") from e

    async def find_active(self) -> list[ConfigRecord]:
        """Load every active configuration row, ordered by key."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(SystemConfig)
                    .where(SystemConfig.is_active.is_(True))
                    .order_by(SystemConfig.key)
                )
                return [ConfigRecord.from_model(row) for row in result.scalars().all()]
        except (SQLAlchemyError, OSError) as e:
            raise ConfigStoreError(f"Failed to load active configuration: {e}") from e

    async def find_by_key(self, key: str) -> Optional[ConfigRecord]:
        """Load one row by key, active or not."""
        try:
            async with self._session_factory() as session:
                row = await session.get(SystemConfig, key)
                return ConfigRecord.from_model(row) if row else None
        except (SQLAlchemyError, OSError) as e:
            raise ConfigStoreError(f"Failed to load configuration {key}: {e}") from e

    async def upsert(
        self,
        key: str,
        value: Any,
        type: Optional[str] = None,
        description: Optional[str] = None,
    ) -> ConfigRecord:
        """
        Insert or update a configuration row.

        Args:
            key: Configuration key
            value: New value; non-string values are serialized
            type: Grouping category; None keeps the existing one
            description: Human-readable description; None keeps the existing one

        Returns:
            Snapshot of the stored row. A freshly inserted row has
            ``created_at == updated_at``.

        Raises:
            ConfigStoreError: If the key is invalid or the write fails
        """
        _validate_key(key)
        serialized = value if isinstance(value, str) else serialize_value(value)

        try:
            async with self._session_factory() as session:
                row = await session.get(SystemConfig, key)
                now = utc_now()

                if row:
                    row.value = serialized
                    if type is not None:
                        row.type = type
                    if description is not None:
                        row.description = description
                    row.is_active = True
                    row.updated_at = now
                else:
                    row = SystemConfig(
                        key=key,
                        value=serialized,
                        type=type,
                        description=description,
                        is_active=True,
                        created_at=now,
                        updated_at=now,
                    )
                    session.add(row)

                await session.commit()
                await session.refresh(row)
                return ConfigRecord.from_model(row)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to upsert configuration {key}: {e}")
            raise ConfigStoreError(f"Failed to save configuration {key}: {e}") from e

    async def soft_delete(self, key: str) -> ConfigRecord:
        """
        Mark a configuration row inactive.

        Raises:
            ConfigNotFoundError: If the key does not exist or is already inactive
            ConfigStoreError: If the write fails
        """
        try:
            async with self._session_factory() as session:
                row = await session.get(SystemConfig, key)
                if not row or not row.is_active:
                    raise ConfigNotFoundError(key)

                row.is_active = False
                row.updated_at = utc_now()
                await session.commit()
                await session.refresh(row)
                return ConfigRecord.from_model(row)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to delete configuration {key}: {e}")
            raise ConfigStoreError(f"Failed to delete configuration {key}: {e}") from e

    async def bulk_upsert(self, records: list[dict[str, Any]]) -> list[UpsertOutcome]:
        """Upsert each record independently; one failure does not stop the rest."""
        outcomes = []
        for item in records:
            key = item.get("key") if isinstance(item, dict) else None
            try:
                if not isinstance(item, dict):
                    raise ConfigStoreError(f"Invalid configuration entry: {item!r}")
                record = await self.upsert(
                    key,
                    item.get("value"),
                    type=item.get("type"),
                    description=item.get("description"),
                )
                outcomes.append(UpsertOutcome(key=key, record=record))
            except ConfigStoreError as e:
                logger.warning(f"Bulk upsert failed for {key!r}: {e}")
                outcomes.append(UpsertOutcome(key=key, error=str(e)))
        return outcomes

    async def find_many(self, query: Optional[dict[str, Any]] = None) -> list[ConfigRecord]:
        """
        Run a legacy structured query natively.

        Supports ``where`` (with OR/AND/NOT and per-field operators),
        ``orderBy`` (one field or a list), ``take`` and ``skip``.
        """
        query = query or {}
        for option in IGNORED_QUERY_OPTIONS:
            if option in query:
                logger.warning(f"Ignoring unsupported query option '{option}' for system_config")

        stmt = select(SystemConfig).where(build_where_clause(query.get("where")))
        if query.get("orderBy"):
            stmt = stmt.order_by(*_order_clauses(query["orderBy"]))
        if query.get("skip"):
            stmt = stmt.offset(int(query["skip"]))
        if query.get("take") is not None:
            stmt = stmt.limit(int(query["take"]))

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [ConfigRecord.from_model(row) for row in result.scalars().all()]
        except (SQLAlchemyError, OSError) as e:
            raise ConfigStoreError(f"Configuration query failed: {e}") from e

    async def count(self, where: Optional[dict[str, Any]] = None) -> int:
        """Count rows matching a legacy ``where`` object."""
        stmt = select(func.count()).select_from(SystemConfig).where(build_where_clause(where))
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return int(result.scalar_one())
        except (SQLAlchemyError, OSError) as e:
            raise ConfigStoreError(f"Configuration count failed: {e}") from e
