"""
Unit tests for thread resolvers
"""

import uuid
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.dialects import postgresql

from bbs.config import get_anonymous_id_secret, settings
from bbs.dbmodels import Threads
from bbs.errors import AuthenticationRequired, NotFoundError, ValidationError
from bbs.graphql.resolvers.thread import (
    publish_thread,
    resolve_thread_by_id,
    resolve_thread_replies,
    resolve_thread_slice,
    resolve_title,
    thread_from_model,
)
from bbs.graphql.types.slice import SliceQuery
from bbs.graphql.types.thread import ThreadInput
from bbs.identifiers import anonymous_author_id
from bbs.pagination import decode_cursor, encode_cursor

MODULE = "bbs.graphql.resolvers.thread"
BASE_TIME = datetime(2024, 3, 1, tzinfo=UTC)


def _thread_row(thread_id, minutes=0, **overrides):
    values = {
        "id": thread_id,
        "user_id": uuid.uuid4(),
        "anonymous": False,
        "author": "alice",
        "title": "hello",
        "content": "first",
        "main_tag": "tech",
        "sub_tags": ["python"],
        "reply_count": 2,
        "create_time": BASE_TIME + timedelta(minutes=minutes),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _post_row(post_id, minutes=0):
    return SimpleNamespace(
        id=post_id,
        thread_id="0abcdefg",
        user_id=uuid.uuid4(),
        anonymous=True,
        author="3kq9m0a1",
        content="reply",
        quote_count=None,
        create_time=BASE_TIME + timedelta(minutes=minutes),
    )


def _sql(db_session, index=0):
    stmt = db_session.execute.await_args_list[index].args[0]
    return str(stmt.compile(dialect=postgresql.dialect()))


class TestResolveTitle:
    def test_missing_title_uses_default(self):
        assert resolve_title(None) == settings.default_thread_title
        assert resolve_title("   ") == settings.default_thread_title

    def test_title_is_trimmed(self):
        assert resolve_title("  Hello  ") == "Hello"

    def test_long_title_rejected(self):
        with pytest.raises(ValidationError, match="Title exceeds"):
            resolve_title("x" * (settings.max_title_length + 1))


class TestThreadFromModel:
    def test_converts_row(self):
        thread = thread_from_model(_thread_row("0abcdefg", sub_tags=None, reply_count=None))

        assert thread.id == "0abcdefg"
        assert thread.sub_tags == []
        assert thread.reply_count == 0
        assert thread.main_tag == "tech"

    def test_blank_stored_title_falls_back(self):
        thread = thread_from_model(_thread_row("0abcdefg", title=""))
        assert thread.title == settings.default_thread_title


class TestResolveThreadById:
    @pytest.mark.asyncio
    async def test_found(self, mock_info, db_session, make_result, patched_resolver):
        db_session.execute.return_value = make_result(scalar=_thread_row("0abcdefg"))

        with patched_resolver(MODULE, db_session, None):
            thread = await resolve_thread_by_id(mock_info, "0abcdefg")

        assert thread.title == "hello"
        assert thread.sub_tags == ["python"]

    @pytest.mark.asyncio
    async def test_not_found(self, mock_info, db_session, make_result, patched_resolver):
        db_session.execute.return_value = make_result(scalar=None)

        with patched_resolver(MODULE, db_session, None):
            with pytest.raises(NotFoundError, match="Thread 'missing' not found"):
                await resolve_thread_by_id(mock_info, "missing")


class TestResolveThreadSlice:
    @pytest.mark.asyncio
    async def test_newest_first_from_head(
        self, mock_info, db_session, make_result, patched_resolver
    ):
        rows = [_thread_row("0000000c", 2), _thread_row("0000000b", 1)]
        db_session.execute.return_value = make_result(scalars=rows)

        with patched_resolver(MODULE, db_session, None):
            page = await resolve_thread_slice(mock_info, None, SliceQuery(limit=2, before=""))

        assert [thread.id for thread in page.threads] == ["0000000c", "0000000b"]
        assert decode_cursor(page.slice_info.first_cursor)[1] == "0000000c"
        assert decode_cursor(page.slice_info.last_cursor)[1] == "0000000b"
        sql = _sql(db_session)
        assert "ORDER BY threads.create_time DESC, threads.id DESC" in sql
        assert "threads.main_tag" not in sql.split("FROM")[1]

    @pytest.mark.asyncio
    async def test_tag_filter_matches_main_or_sub_tags(
        self, mock_info, db_session, make_result, patched_resolver
    ):
        db_session.execute.return_value = make_result(scalars=[])

        with patched_resolver(MODULE, db_session, None):
            await resolve_thread_slice(
                mock_info, [" python ", "tech", "python"], SliceQuery(limit=10, before="")
            )

        sql = _sql(db_session)
        assert "threads.main_tag IN" in sql
        assert "threads.sub_tags &&" in sql
        assert " OR " in sql

    @pytest.mark.asyncio
    async def test_empty_slice_echoes_cursor(
        self, mock_info, db_session, make_result, patched_resolver
    ):
        cursor = encode_cursor(BASE_TIME, "0000000a")
        db_session.execute.return_value = make_result(scalars=[])

        with patched_resolver(MODULE, db_session, None):
            page = await resolve_thread_slice(mock_info, None, SliceQuery(limit=5, after=cursor))

        assert page.threads == []
        assert page.slice_info.first_cursor == cursor
        assert page.slice_info.last_cursor == cursor

    @pytest.mark.asyncio
    async def test_both_cursors_rejected(self, mock_info, db_session, patched_resolver):
        with patched_resolver(MODULE, db_session, None):
            with pytest.raises(ValidationError, match="Only one of"):
                await resolve_thread_slice(
                    mock_info, None, SliceQuery(limit=5, before="", after="")
                )
        db_session.execute.assert_not_called()


class TestResolveThreadReplies:
    @pytest.mark.asyncio
    async def test_tail_page_keeps_oldest_first(
        self, mock_info, db_session, make_result, patched_resolver
    ):
        parent = thread_from_model(_thread_row("0abcdefg"))
        # The tail page is read backward, newest rows first
        rows = [_post_row("0000000f", 5), _post_row("0000000e", 4)]
        db_session.execute.return_value = make_result(scalars=rows)

        with patched_resolver(MODULE, db_session, None):
            page = await resolve_thread_replies(parent, mock_info, SliceQuery(limit=2, after=""))

        assert [post.id for post in page.posts] == ["0000000e", "0000000f"]
        assert page.posts[0].quote_count == 0
        sql = _sql(db_session)
        assert "posts.thread_id =" in sql
        assert "ORDER BY posts.create_time DESC, posts.id DESC" in sql


class TestPublishThread:
    @pytest.fixture
    def user(self, auth_context):
        return SimpleNamespace(id=auth_context.user_id, name="alice", email="alice@bbs.test")

    @pytest.fixture
    def side_effects(self, fixed_id_insert):
        with (
            patch(f"{MODULE}.insert_with_time_id", new=fixed_id_insert("0abcdefg")),
            patch(f"{MODULE}.record_thread_tags", new=AsyncMock()) as record,
        ):
            yield record

    @pytest.mark.asyncio
    async def test_requires_authentication(self, mock_info, db_session, patched_resolver):
        with patched_resolver(MODULE, db_session, None):
            with pytest.raises(AuthenticationRequired):
                await publish_thread(
                    mock_info, ThreadInput(anonymous=False, content="hi", main_tag="tech")
                )

    @pytest.mark.asyncio
    async def test_publishes_with_default_title(
        self,
        mock_info,
        db_session,
        auth_context,
        make_result,
        patched_resolver,
        user,
        side_effects,
    ):
        db_session.execute.side_effect = [
            make_result(scalars=["tech", "life"]),
            make_result(scalar=user),
        ]

        with patched_resolver(MODULE, db_session, auth_context):
            thread = await publish_thread(
                mock_info,
                ThreadInput(
                    anonymous=False,
                    content="first",
                    main_tag=" tech ",
                    sub_tags=["python", "python", " web"],
                ),
            )

        assert thread.id == "0abcdefg"
        assert thread.author == "alice"
        assert thread.title == settings.default_thread_title
        assert thread.main_tag == "tech"
        assert thread.sub_tags == ["python", "web"]
        assert thread.reply_count == 0

        added = db_session.add.call_args.args[0]
        assert isinstance(added, Threads)
        assert added.user_id == auth_context.user_id
        side_effects.assert_awaited_once_with(db_session, "tech", ["python", "web"])

    @pytest.mark.asyncio
    async def test_anonymous_author_is_per_thread_id(
        self,
        mock_info,
        db_session,
        auth_context,
        make_result,
        patched_resolver,
        user,
        side_effects,
    ):
        user.name = None
        db_session.execute.side_effect = [make_result(scalars=["tech"]), make_result(scalar=user)]

        with patched_resolver(MODULE, db_session, auth_context):
            thread = await publish_thread(
                mock_info,
                ThreadInput(anonymous=True, content="first", main_tag="tech", title="Q"),
            )

        assert thread.anonymous is True
        assert thread.title == "Q"
        assert thread.author == anonymous_author_id(
            auth_context.user_id, "0abcdefg", get_anonymous_id_secret()
        )

    @pytest.mark.asyncio
    async def test_unknown_main_tag_rejected(
        self, mock_info, db_session, auth_context, make_result, patched_resolver, side_effects
    ):
        db_session.execute.return_value = make_result(scalars=["tech"])

        with patched_resolver(MODULE, db_session, auth_context):
            with pytest.raises(ValidationError, match="is not a main tag"):
                await publish_thread(
                    mock_info, ThreadInput(anonymous=False, content="hi", main_tag="music")
                )
        db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_too_many_sub_tags_rejected(
        self, mock_info, db_session, auth_context, make_result, patched_resolver, side_effects
    ):
        db_session.execute.return_value = make_result(scalars=["tech"])
        sub_tags = [f"t{i}" for i in range(settings.max_sub_tags + 1)]

        with patched_resolver(MODULE, db_session, auth_context):
            with pytest.raises(ValidationError, match="subTags"):
                await publish_thread(
                    mock_info,
                    ThreadInput(anonymous=False, content="hi", main_tag="tech", sub_tags=sub_tags),
                )
        side_effects.assert_not_awaited()
