"""
Unit tests for cursor slicing
"""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from bbs.config import settings
from bbs.dbmodels import Threads
from bbs.errors import ValidationError
from bbs.pagination import (
    SliceRequest,
    apply_slice,
    build_slice,
    decode_cursor,
    encode_cursor,
    parse_slice_query,
)


def _compile(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


class TestParseSliceQuery:
    def test_empty_before_starts_at_head(self):
        request = parse_slice_query("", None, 10)
        assert request == SliceRequest(cursor="", forward=True, limit=10)
        assert request.from_edge

    def test_empty_after_starts_at_tail(self):
        request = parse_slice_query(None, "", 10)
        assert request == SliceRequest(cursor="", forward=False, limit=10)
        assert request.from_edge

    def test_before_cursor_reads_backward(self):
        request = parse_slice_query("abc", None, 5)
        assert request == SliceRequest(cursor="abc", forward=False, limit=5)
        assert not request.from_edge

    def test_after_cursor_reads_forward(self):
        request = parse_slice_query(None, "abc", 5)
        assert request == SliceRequest(cursor="abc", forward=True, limit=5)

    def test_rejects_both_cursors(self):
        with pytest.raises(ValidationError, match="Only one"):
            parse_slice_query("", "", 10)

    def test_rejects_missing_cursor(self):
        with pytest.raises(ValidationError, match="required"):
            parse_slice_query(None, None, 10)

    @pytest.mark.parametrize("limit", [0, -3])
    def test_rejects_non_positive_limit(self, limit):
        with pytest.raises(ValidationError, match="limit"):
            parse_slice_query(None, "", limit)

    def test_clamps_large_limit(self):
        request = parse_slice_query(None, "", settings.max_slice_limit + 50)
        assert request.limit == settings.max_slice_limit


class TestCursor:
    def test_decode_returns_time_and_id(self):
        ts = datetime(2024, 2, 3, 4, 5, 6, 789000, tzinfo=UTC)
        assert decode_cursor(encode_cursor(ts, "0abcdefg")) == (ts, "0abcdefg")

    def test_cursor_is_url_safe_without_padding(self):
        cursor = encode_cursor(datetime(2024, 1, 1, tzinfo=UTC), "x")
        assert "=" not in cursor
        assert "+" not in cursor
        assert "/" not in cursor

    @pytest.mark.parametrize("cursor", ["not-a-cursor!", "bm9waXBl", "MjAyNC0wMS0wMXw"])
    def test_malformed_cursor_is_rejected(self, cursor):
        with pytest.raises(ValidationError, match="Malformed cursor"):
            decode_cursor(cursor)


class TestApplySlice:
    def test_empty_before_gives_newest_threads_first(self):
        request = parse_slice_query("", None, 10)
        sql = _compile(
            apply_slice(
                select(Threads), Threads.create_time, Threads.id, request, newest_first=True
            )
        )
        assert "ORDER BY threads.create_time DESC, threads.id DESC" in sql

    def test_empty_after_gives_oldest_threads(self):
        request = parse_slice_query(None, "", 10)
        sql = _compile(
            apply_slice(
                select(Threads), Threads.create_time, Threads.id, request, newest_first=True
            )
        )
        assert "WHERE" not in sql
        assert "ORDER BY threads.create_time ASC, threads.id ASC" in sql

    def test_newest_first_list_from_head(self):
        request = SliceRequest(cursor="", forward=True, limit=3)
        sql = _compile(
            apply_slice(
                select(Threads), Threads.create_time, Threads.id, request, newest_first=True
            )
        )
        assert "ORDER BY threads.create_time DESC, threads.id DESC" in sql
        assert "WHERE" not in sql
        assert "LIMIT" in sql

    def test_newest_first_list_backward_from_cursor(self):
        cursor = encode_cursor(datetime(2024, 1, 1, tzinfo=UTC), "0abcdefg")
        request = SliceRequest(cursor=cursor, forward=False, limit=3)
        sql = _compile(
            apply_slice(
                select(Threads), Threads.create_time, Threads.id, request, newest_first=True
            )
        )
        assert "(threads.create_time, threads.id) >" in sql
        assert "ORDER BY threads.create_time ASC, threads.id ASC" in sql

    def test_oldest_first_list_forward_from_cursor(self):
        cursor = encode_cursor(datetime(2024, 1, 1, tzinfo=UTC), "0abcdefg")
        request = SliceRequest(cursor=cursor, forward=True, limit=3)
        sql = _compile(
            apply_slice(
                select(Threads), Threads.create_time, Threads.id, request, newest_first=False
            )
        )
        assert "(threads.create_time, threads.id) >" in sql
        assert "ORDER BY threads.create_time ASC, threads.id ASC" in sql

    def test_unparseable_cursor_id_is_rejected(self):
        cursor = encode_cursor(datetime(2024, 1, 1, tzinfo=UTC), "not-a-number")
        request = SliceRequest(cursor=cursor, forward=True, limit=3)
        with pytest.raises(ValidationError, match="Malformed cursor"):
            apply_slice(
                select(Threads),
                Threads.create_time,
                Threads.id,
                request,
                newest_first=True,
                parse_id=int,
            )


class TestBuildSlice:
    def _rows(self, count):
        start = datetime(2024, 1, 1, tzinfo=UTC)
        return [
            SimpleNamespace(id=f"row{i}", ts=start + timedelta(minutes=i)) for i in range(count)
        ]

    def test_forward_keeps_order_and_sets_cursors(self):
        rows = self._rows(3)
        request = SliceRequest(cursor="", forward=True, limit=3)

        page = build_slice(rows, request, key=lambda row: (row.ts, row.id))

        assert [row.id for row in page.items] == ["row0", "row1", "row2"]
        assert decode_cursor(page.first_cursor) == (rows[0].ts, "row0")
        assert decode_cursor(page.last_cursor) == (rows[2].ts, "row2")

    def test_backward_rows_are_put_back_in_natural_order(self):
        rows = self._rows(3)
        request = SliceRequest(cursor="", forward=False, limit=3)

        page = build_slice(rows, request, key=lambda row: (row.ts, row.id))

        assert [row.id for row in page.items] == ["row2", "row1", "row0"]
        assert decode_cursor(page.first_cursor)[1] == "row2"

    def test_empty_slice_echoes_requested_cursor(self):
        request = SliceRequest(cursor="abc", forward=True, limit=3)

        page = build_slice([], request, key=lambda row: (row.ts, row.id))

        assert page.items == []
        assert page.first_cursor == "abc"
        assert page.last_cursor == "abc"
