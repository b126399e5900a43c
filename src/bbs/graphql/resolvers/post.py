from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import strawberry
from sqlalchemy import select, update

from ...auth.provisioning import get_user_by_id
from ...config import get_anonymous_id_secret, settings
from ...database.connection import get_async_session
from ...dbmodels import PostQuotes, Posts, Threads, Users
from ...errors import AuthenticationRequired, NotFoundError, ValidationError
from ...identifiers import anonymous_author_id, insert_with_time_id
from ...logging import get_logger
from ...notifications.repository import record_quoted, record_replied
from ..access_control import require_user_id

if TYPE_CHECKING:
    from ..types.post import Post, PostInput

logger = get_logger(__name__)


def post_from_model(post: Posts) -> Post:
    from ..types.post import Post as PostType

    return PostType(
        id=post.id,
        anonymous=post.anonymous,
        author=post.author,
        content=post.content,
        create_time=post.create_time,
        quote_count=post.quote_count or 0,
        thread_id=post.thread_id,
    )


def validate_content(content: str) -> str:
    """Reject blank or oversized content. The content itself is stored as given."""
    if not content or not content.strip():
        raise ValidationError("Content must not be empty")
    if len(content) > settings.max_content_length:
        raise ValidationError(f"Content exceeds {settings.max_content_length} characters")
    return content


def resolve_author(user: Users, thread_id: str, anonymous: bool) -> str:
    """
    Work out the author string stored with a thread or post.

    Anonymous authors get an id derived from the user and the thread, so it is
    stable inside one thread and unrelated across threads.
    """
    if anonymous:
        return anonymous_author_id(user.id, thread_id, get_anonymous_id_secret())
    if not user.name:
        raise ValidationError("Set a name before publishing non-anonymously")
    return user.name


def normalize_quote_ids(quotes: Sequence[str] | None) -> list[str]:
    """Deduplicate quoted post ids, keeping the quoting order."""
    ids: list[str] = []
    for quote in quotes or []:
        quote = quote.strip()
        if quote and quote not in ids:
            ids.append(quote)
    if len(ids) > settings.max_quotes:
        raise ValidationError(f"At most {settings.max_quotes} posts can be quoted")
    return ids


async def load_current_user(session, user_id: UUID) -> Users:
    user = await get_user_by_id(session, user_id)
    if user is None:
        # Token refers to a user that no longer exists
        raise AuthenticationRequired()
    return user


# Query resolvers
async def resolve_post_by_id(info: strawberry.Info, id: str) -> Post:
    async with get_async_session() as session:
        result = await session.execute(select(Posts).where(Posts.id == id))
        post = result.scalar_one_or_none()

        if not post:
            logger.info("Post not found", post_id=id)
            raise NotFoundError(f"Post '{id}' not found")

        return post_from_model(post)


async def resolve_post_quotes(post: Post, info: strawberry.Info) -> list[Post]:
    """Resolve the posts quoted by ``post`` in quoting order."""
    async with get_async_session() as session:
        stmt = (
            select(Posts)
            .join(PostQuotes, PostQuotes.quoted_post_id == Posts.id)
            .where(PostQuotes.post_id == post.id)
            .order_by(PostQuotes.position)
        )
        result = await session.execute(stmt)
        return [post_from_model(quoted) for quoted in result.scalars().all()]


# Mutation resolvers
async def publish_post(info: strawberry.Info, input: PostInput) -> Post:
    """
    Publish a reply to a thread.

    Bumps the thread's reply count and the quote count of every quoted post,
    then notifies the thread author and the authors of quoted posts.
    """
    user_id = await require_user_id(info)
    content = validate_content(input.content)
    quote_ids = normalize_quote_ids(input.quotes)

    async with get_async_session() as session:
        result = await session.execute(
            select(Threads).where(Threads.id == input.thread_id).with_for_update()
        )
        thread = result.scalar_one_or_none()
        if not thread:
            raise NotFoundError(f"Thread '{input.thread_id}' not found")

        quoted_posts: list[Posts] = []
        if quote_ids:
            result = await session.execute(
                select(Posts).where(Posts.id.in_(quote_ids), Posts.thread_id == thread.id)
            )
            found = {quoted.id: quoted for quoted in result.scalars().all()}
            missing = [quote_id for quote_id in quote_ids if quote_id not in found]
            if missing:
                raise ValidationError(
                    f"Quoted posts not found in this thread: {', '.join(missing)}"
                )
            quoted_posts = [found[quote_id] for quote_id in quote_ids]

        user = await load_current_user(session, user_id)
        author = resolve_author(user, thread.id, input.anonymous)

        now = datetime.now(UTC)
        post = await insert_with_time_id(
            session,
            lambda post_id: Posts(
                id=post_id,
                thread_id=thread.id,
                user_id=user_id,
                anonymous=input.anonymous,
                author=author,
                content=content,
                quote_count=0,
                create_time=now,
            ),
            now,
        )

        for position, quoted in enumerate(quoted_posts):
            session.add(PostQuotes(post_id=post.id, quoted_post_id=quoted.id, position=position))

        await session.execute(
            update(Threads)
            .where(Threads.id == thread.id)
            .values(reply_count=Threads.reply_count + 1)
        )
        if quote_ids:
            await session.execute(
                update(Posts)
                .where(Posts.id.in_(quote_ids))
                .values(quote_count=Posts.quote_count + 1)
            )

        if thread.user_id != user_id:
            await record_replied(
                session,
                recipient_id=thread.user_id,
                thread_id=thread.id,
                replier=author,
                event_time=now,
            )
        for quoted in quoted_posts:
            if quoted.user_id != user_id:
                await record_quoted(
                    session,
                    recipient_id=quoted.user_id,
                    thread_id=thread.id,
                    post_id=quoted.id,
                    quoter=author,
                    event_time=now,
                )

        logger.info(
            "Post published",
            post_id=post.id,
            thread_id=thread.id,
            anonymous=input.anonymous,
            quotes=len(quoted_posts),
        )
        return post_from_model(post)
