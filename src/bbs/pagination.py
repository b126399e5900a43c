"""
Cursor based slicing shared by thread, reply and notification lists.

A slice request carries exactly one of ``before`` / ``after``:

* ``before: ""`` slices from the beginning: the head page, read forward.
* ``after: ""`` slices to the end: the tail page, read backward.
* ``after: <cursor>`` reads forward from the cursor (towards the tail).
* ``before: <cursor>`` reads backward from the cursor (towards the head).

Rows always come back in the list's natural order. Cursors are opaque
urlsafe-base64 strings of ``<ISO time>|<id>`` so a page boundary survives
rows being inserted in between requests.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

from sqlalchemy import Select, tuple_

from .config import settings
from .errors import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class SliceRequest:
    """Validated form of a ``SliceQuery`` input."""

    cursor: str
    forward: bool
    limit: int

    @property
    def from_edge(self) -> bool:
        return self.cursor == ""


@dataclass(frozen=True)
class SliceResult:
    items: list[Any]
    first_cursor: str
    last_cursor: str


def parse_slice_query(before: str | None, after: str | None, limit: int) -> SliceRequest:
    """
    Validate the before/after/limit triple.

    Raises:
        ValidationError: both or neither cursor given, or a non-positive limit
    """
    if before is not None and after is not None:
        raise ValidationError("Only one of 'before' and 'after' may be set")
    if before is None and after is None:
        raise ValidationError("One of 'before' or 'after' is required")
    if limit is None or limit < 1:
        raise ValidationError("'limit' must be a positive integer")

    limit = min(limit, settings.max_slice_limit)
    if before is not None:
        # an empty cursor flips direction so it starts at the matching edge
        return SliceRequest(cursor=before, forward=before == "", limit=limit)
    return SliceRequest(cursor=after, forward=after != "", limit=limit)


def encode_cursor(timestamp: datetime, row_id: Any) -> str:
    raw = f"{timestamp.isoformat()}|{row_id}".encode()
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(cursor: str) -> tuple[datetime, str]:
    """
    Split a cursor into its timestamp and id parts.

    Raises:
        ValidationError: if the cursor was not produced by ``encode_cursor``
    """
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        raw = base64.urlsafe_b64decode(padded.encode("ascii")).decode()
        time_part, row_id = raw.split("|", 1)
        timestamp = datetime.fromisoformat(time_part)
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise ValidationError("Malformed cursor") from e
    if not row_id:
        raise ValidationError("Malformed cursor")
    return timestamp, row_id


def apply_slice(
    stmt: Select,
    time_column: Any,
    id_column: Any,
    request: SliceRequest,
    *,
    newest_first: bool,
    parse_id: Callable[[str], Any] = str,
) -> Select:
    """Add keyset filtering, ordering and the limit to ``stmt``."""
    # Reading forward through an oldest-first list (or backward through a
    # newest-first one) walks keys in ascending order.
    ascending = request.forward != newest_first

    if not request.from_edge:
        timestamp, raw_id = decode_cursor(request.cursor)
        try:
            row_id = parse_id(raw_id)
        except ValueError as e:
            raise ValidationError("Malformed cursor") from e
        key = tuple_(time_column, id_column)
        stmt = stmt.where(key > (timestamp, row_id) if ascending else key < (timestamp, row_id))

    if ascending:
        stmt = stmt.order_by(time_column.asc(), id_column.asc())
    else:
        stmt = stmt.order_by(time_column.desc(), id_column.desc())
    return stmt.limit(request.limit)


def build_slice(
    rows: Sequence[T],
    request: SliceRequest,
    key: Callable[[T], tuple[datetime, Any]],
) -> SliceResult:
    """Put fetched rows into natural order and compute the boundary cursors."""
    items = list(rows)
    if not request.forward:
        items.reverse()

    if not items:
        return SliceResult(items=[], first_cursor=request.cursor, last_cursor=request.cursor)

    return SliceResult(
        items=items,
        first_cursor=encode_cursor(*key(items[0])),
        last_cursor=encode_cursor(*key(items[-1])),
    )
