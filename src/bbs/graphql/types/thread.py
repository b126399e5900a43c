"""
Thread GraphQL type definitions
"""

from __future__ import annotations

import strawberry

from ..scalars import Time
from .post import PostSlice
from .slice import SliceInfo, SliceQuery


@strawberry.type
class Thread:
    """A thread: the opening content plus its replies."""

    id: str = strawberry.field(
        description="UUID with 8 chars in length, and will increase to 9 after 30 years."
    )
    anonymous: bool = strawberry.field(description="Thread was published anonymously or not.")
    author: str = strawberry.field(
        description="Same format as id if anonymous, name of User otherwise."
    )
    content: str
    create_time: Time
    main_tag: str = strawberry.field(description="Only one mainTag is allowed.")
    sub_tags: list[str] | None = strawberry.field(description="Optional, maximum of 4.")
    title: str | None = strawberry.field(description="Default to '无题'.")
    reply_count: int

    @strawberry.field
    async def replies(self, info: strawberry.Info, query: SliceQuery) -> PostSlice:
        """Replies of this thread, oldest first."""
        from ..resolvers.thread import resolve_thread_replies

        return await resolve_thread_replies(self, info, query)


@strawberry.type
class ThreadSlice:
    threads: list[Thread | None]
    slice_info: SliceInfo


@strawberry.input
class ThreadInput:
    """Construct a new thread."""

    anonymous: bool = strawberry.field(
        description="Toggle anonymousness. If true, a new ID will be generated in each thread."
    )
    content: str
    main_tag: str = strawberry.field(description="Required. Only one mainTag is allowed.")
    sub_tags: list[str] | None = strawberry.field(
        default=None, description="Optional, maximum of 4."
    )
    title: str | None = strawberry.field(
        default=None, description="Optional. If not set, the title will be '无题'."
    )
