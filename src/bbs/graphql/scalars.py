"""
Custom GraphQL scalars
"""

from datetime import UTC, datetime
from typing import NewType

import strawberry


def _serialize_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.isoformat()


def _parse_time(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


Time = strawberry.scalar(
    NewType("Time", datetime),
    serialize=_serialize_time,
    parse_value=_parse_time,
    description="ISO-8601 timestamp with UTC offset",
)
