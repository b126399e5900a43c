"""
Identifier generation for threads, posts and anonymous authors.

Thread and post ids are the number of milliseconds since ``ID_EPOCH`` written
in base32 (``0-9a-v``) and left-padded to 8 characters. 32**8 milliseconds is
roughly 34.8 years, after which ids grow to 9 characters. Equal-length ids
sort in creation order.

Anonymous author ids use the same alphabet and width, derived from an HMAC of
the user id and the thread id so one user keeps one id inside a thread.
"""

from __future__ import annotations

import hashlib
import hmac
import re
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

ALPHABET = "0123456789abcdefghijklmnopqrstuv"
ID_WIDTH = 8
ID_EPOCH = datetime(2018, 1, 1, tzinfo=UTC)

_GENERATED_ID_RE = re.compile(r"^[0-9a-v]{8,9}$")
_MAX_ALLOCATION_ATTEMPTS = 1000
_UNIQUE_VIOLATION = "23505"

RowT = TypeVar("RowT")


def encode_base32(value: int, width: int = ID_WIDTH) -> str:
    """Encode a non-negative integer, left-padding with '0' to ``width``."""
    if value < 0:
        raise ValueError("value must be non-negative")

    chars = []
    while value:
        value, rem = divmod(value, 32)
        chars.append(ALPHABET[rem])
    encoded = "".join(reversed(chars)) or "0"
    return encoded.rjust(width, "0")


def milliseconds_since_epoch(now: datetime | None = None) -> int:
    now = now or datetime.now(UTC)
    return (now - ID_EPOCH) // timedelta(milliseconds=1)


def time_ordered_id(now: datetime | None = None, offset_ms: int = 0) -> str:
    """Return the id for ``now`` (default: current time), shifted by ``offset_ms``."""
    return encode_base32(milliseconds_since_epoch(now) + offset_ms)


def anonymous_author_id(user_id: UUID | str, thread_id: str, secret: str) -> str:
    """Per-thread pseudonym for a user posting anonymously."""
    message = f"{user_id}:{thread_id}".encode()
    digest = hmac.new(secret.encode(), message, hashlib.sha256).digest()
    # 40 bits are exactly 8 base32 characters
    return encode_base32(int.from_bytes(digest[:5], "big"))


def looks_like_generated_id(value: str) -> bool:
    """True when ``value`` could be mistaken for a generated or anonymous id."""
    return bool(_GENERATED_ID_RE.match(value))


async def insert_with_time_id(
    session: AsyncSession,
    build: Callable[[str], RowT],
    now: datetime | None = None,
) -> RowT:
    """
    Insert the row ``build(id)`` under the first free time-ordered id.

    Each attempt runs in a savepoint. When the id is already taken, including
    by a concurrent transaction, the next millisecond is tried, so rows created
    within the same millisecond still get distinct, ordered ids. ``build`` is
    called again for every candidate so id-derived fields stay consistent.

    Raises:
        IntegrityError: for any violation other than a duplicate id
        RuntimeError: if no free id was found
    """
    now = now or datetime.now(UTC)
    for offset in range(_MAX_ALLOCATION_ATTEMPTS):
        row = build(time_ordered_id(now, offset))
        try:
            async with session.begin_nested():
                session.add(row)
                await session.flush()
        except IntegrityError as e:
            if getattr(e.orig, "pgcode", None) != _UNIQUE_VIOLATION:
                raise
            continue
        return row
    raise RuntimeError("Could not allocate a time-ordered id")
