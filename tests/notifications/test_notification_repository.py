"""
Unit tests for notification aggregation, fan-out and read state
"""

import uuid
from datetime import UTC, datetime
from types import SimpleNamespace

import pytest
from sqlalchemy.dialects import postgresql

from bbs.dbmodels import Notifications
from bbs.notifications.repository import (
    announce,
    mark_read,
    record_quoted,
    record_replied,
    unread_counts,
)


def _sql(db_session, call_index=0) -> str:
    stmt = db_session.execute.await_args_list[call_index].args[0]
    return str(stmt.compile(dialect=postgresql.dialect()))


class TestRecordReplied:
    @pytest.mark.asyncio
    async def test_creates_unread_notification(self, db_session, make_result):
        db_session.execute.return_value = make_result(scalars=[])
        recipient = uuid.uuid4()
        when = datetime(2024, 5, 1, tzinfo=UTC)

        noti = await record_replied(
            db_session,
            recipient_id=recipient,
            thread_id="0abcdefg",
            replier="alice",
            event_time=when,
        )

        assert isinstance(noti, Notifications)
        assert noti.type == "replied"
        assert noti.user_id == recipient
        assert noti.actors == ["alice"]
        assert noti.event_time == when
        assert noti.has_read is False
        db_session.add.assert_called_once_with(noti)
        assert "FOR UPDATE" in _sql(db_session)

    @pytest.mark.asyncio
    async def test_folds_into_existing_unread_notification(self, db_session, make_result):
        existing = SimpleNamespace(
            id=uuid.uuid4(), actors=["alice"], event_time=datetime(2024, 1, 1, tzinfo=UTC)
        )
        db_session.execute.return_value = make_result(scalars=[existing])
        when = datetime(2024, 5, 1, tzinfo=UTC)

        noti = await record_replied(
            db_session,
            recipient_id=uuid.uuid4(),
            thread_id="0abcdefg",
            replier="bob",
            event_time=when,
        )

        assert noti is existing
        assert existing.actors == ["alice", "bob"]
        assert existing.event_time == when
        db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_repeated_actor_is_not_duplicated(self, db_session, make_result):
        existing = SimpleNamespace(
            id=uuid.uuid4(), actors=["alice"], event_time=datetime(2024, 1, 1, tzinfo=UTC)
        )
        db_session.execute.return_value = make_result(scalars=[existing])

        await record_replied(
            db_session, recipient_id=uuid.uuid4(), thread_id="0abcdefg", replier="alice"
        )

        assert existing.actors == ["alice"]


class TestRecordQuoted:
    @pytest.mark.asyncio
    async def test_keyed_by_quoted_post(self, db_session, make_result):
        db_session.execute.return_value = make_result(scalars=[])

        noti = await record_quoted(
            db_session,
            recipient_id=uuid.uuid4(),
            thread_id="0abcdefg",
            post_id="0abcdefh",
            quoter="carol",
        )

        assert noti.type == "quoted"
        assert noti.post_id == "0abcdefh"
        assert noti.actors == ["carol"]
        assert "notifications.post_id" in _sql(db_session)


class TestAnnounce:
    @pytest.mark.asyncio
    async def test_inserts_for_every_user(self, db_session, make_result):
        db_session.execute.return_value = make_result(rows=[1, 2, 3])

        count = await announce(db_session, title="Maintenance", content="Back soon")

        assert count == 3
        sql = _sql(db_session)
        assert sql.startswith("INSERT INTO notifications")
        assert "FROM users" in sql

    @pytest.mark.asyncio
    async def test_event_time_is_bound_with_time_zone(self, db_session, make_result):
        db_session.execute.return_value = make_result(rows=[1])

        await announce(db_session, title="t", content="c")

        stmt = db_session.execute.await_args.args[0]
        event_time = next(
            bind for bind in stmt.compile().binds.values() if isinstance(bind.value, datetime)
        )
        assert event_time.type.timezone is True


class TestReadState:
    @pytest.mark.asyncio
    async def test_unread_counts_include_every_type(self, db_session, make_result):
        db_session.execute.return_value = make_result(rows=[("replied", 2)])

        counts = await unread_counts(db_session, uuid.uuid4())

        assert counts == {"system": 0, "replied": 2, "quoted": 0}

    @pytest.mark.asyncio
    async def test_mark_read_without_ids_is_a_no_op(self, db_session):
        await mark_read(db_session, uuid.uuid4(), [])
        db_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_mark_read_is_scoped_to_user(self, db_session):
        await mark_read(db_session, uuid.uuid4(), [uuid.uuid4()])

        sql = _sql(db_session)
        assert sql.startswith("UPDATE notifications SET has_read")
        assert "notifications.user_id" in sql
