from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import strawberry
from sqlalchemy import or_, select

from ...config import settings
from ...database.connection import get_async_session
from ...dbmodels import Posts, Threads
from ...errors import NotFoundError, ValidationError
from ...identifiers import insert_with_time_id
from ...logging import get_logger
from ...pagination import apply_slice, build_slice, parse_slice_query
from ...tags.repository import (
    list_main_tags,
    normalize_tags,
    record_thread_tags,
    validate_thread_tags,
)
from ..access_control import require_user_id
from .post import load_current_user, post_from_model, resolve_author, validate_content

if TYPE_CHECKING:
    from ..types.post import PostSlice
    from ..types.slice import SliceQuery
    from ..types.thread import Thread, ThreadInput, ThreadSlice

logger = get_logger(__name__)


def thread_from_model(thread: Threads) -> Thread:
    from ..types.thread import Thread as ThreadType

    return ThreadType(
        id=thread.id,
        anonymous=thread.anonymous,
        author=thread.author,
        content=thread.content,
        create_time=thread.create_time,
        main_tag=thread.main_tag,
        sub_tags=list(thread.sub_tags or []),
        title=thread.title or settings.default_thread_title,
        reply_count=thread.reply_count or 0,
    )


def resolve_title(title: str | None) -> str:
    """Trim the title, falling back to the default for a missing or blank one."""
    title = (title or "").strip()
    if not title:
        return settings.default_thread_title
    if len(title) > settings.max_title_length:
        raise ValidationError(f"Title exceeds {settings.max_title_length} characters")
    return title


# Query resolvers
async def resolve_thread_by_id(info: strawberry.Info, id: str) -> Thread:
    async with get_async_session() as session:
        result = await session.execute(select(Threads).where(Threads.id == id))
        thread = result.scalar_one_or_none()

        if not thread:
            logger.info("Thread not found", thread_id=id)
            raise NotFoundError(f"Thread '{id}' not found")

        return thread_from_model(thread)


async def resolve_thread_slice(
    info: strawberry.Info, tags: list[str] | None, query: SliceQuery
) -> ThreadSlice:
    """
    Resolve a slice of threads, newest first.

    Without tags every thread is listed; otherwise a thread matches when its
    main tag or any of its sub tags is one of ``tags``.
    """
    from ..types.slice import SliceInfo
    from ..types.thread import ThreadSlice as ThreadSliceType

    request = parse_slice_query(query.before, query.after, query.limit)
    tag_filter = normalize_tags(tags or [])

    async with get_async_session() as session:
        stmt = select(Threads)
        if tag_filter:
            stmt = stmt.where(
                or_(Threads.main_tag.in_(tag_filter), Threads.sub_tags.overlap(tag_filter))
            )
        stmt = apply_slice(stmt, Threads.create_time, Threads.id, request, newest_first=True)

        result = await session.execute(stmt)
        page = build_slice(
            result.scalars().all(), request, key=lambda thread: (thread.create_time, thread.id)
        )

        return ThreadSliceType(
            threads=[thread_from_model(thread) for thread in page.items],
            slice_info=SliceInfo(first_cursor=page.first_cursor, last_cursor=page.last_cursor),
        )


async def resolve_thread_replies(
    thread: Thread, info: strawberry.Info, query: SliceQuery
) -> PostSlice:
    """Resolve a slice of a thread's replies, oldest first."""
    from ..types.post import PostSlice as PostSliceType
    from ..types.slice import SliceInfo

    request = parse_slice_query(query.before, query.after, query.limit)

    async with get_async_session() as session:
        stmt = select(Posts).where(Posts.thread_id == thread.id)
        stmt = apply_slice(stmt, Posts.create_time, Posts.id, request, newest_first=False)

        result = await session.execute(stmt)
        page = build_slice(
            result.scalars().all(), request, key=lambda post: (post.create_time, post.id)
        )

        return PostSliceType(
            posts=[post_from_model(post) for post in page.items],
            slice_info=SliceInfo(first_cursor=page.first_cursor, last_cursor=page.last_cursor),
        )


# Mutation resolvers
async def publish_thread(info: strawberry.Info, input: ThreadInput) -> Thread:
    """Publish a new thread and record its tags in the tag tree."""
    user_id = await require_user_id(info)
    content = validate_content(input.content)
    title = resolve_title(input.title)

    async with get_async_session() as session:
        main_tags = await list_main_tags(session)
        main_tag, sub_tags = validate_thread_tags(input.main_tag, input.sub_tags, main_tags)

        user = await load_current_user(session, user_id)

        now = datetime.now(UTC)

        def build(thread_id: str) -> Threads:
            return Threads(
                id=thread_id,
                user_id=user_id,
                anonymous=input.anonymous,
                author=resolve_author(user, thread_id, input.anonymous),
                title=title,
                content=content,
                main_tag=main_tag,
                sub_tags=sub_tags,
                reply_count=0,
                create_time=now,
            )

        thread = await insert_with_time_id(session, build, now)
        await record_thread_tags(session, main_tag, sub_tags)

        logger.info(
            "Thread published",
            thread_id=thread.id,
            main_tag=main_tag,
            sub_tags=sub_tags,
            anonymous=input.anonymous,
        )
        return thread_from_model(thread)
