"""Base schemas with common configuration."""
from datetime import datetime, UTC
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer


def serialize_datetime_utc(dt: datetime) -> str:
    """ISO 8601 in UTC with a ``Z`` suffix. Naive values (SQLite rows) are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat().replace('+00:00', 'Z')


# Timestamps leave the API as explicit UTC strings
UTCDateTime = Annotated[datetime, PlainSerializer(serialize_datetime_utc, return_type=str)]


class BaseSchema(BaseModel):
    """Response schema that can be built straight from record dataclasses."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )
