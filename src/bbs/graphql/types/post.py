"""
Post GraphQL type definitions
"""

from __future__ import annotations

import strawberry

from ..scalars import Time
from .slice import SliceInfo


@strawberry.type
class Post:
    """Object describing a Post."""

    id: str
    anonymous: bool
    author: str
    content: str
    create_time: Time
    quote_count: int
    thread_id: strawberry.Private[str]

    @strawberry.field
    async def quotes(self, info: strawberry.Info) -> list[Post] | None:
        """Posts quoted by this post, in quoting order."""
        from ..resolvers.post import resolve_post_quotes

        return await resolve_post_quotes(self, info)


@strawberry.type
class PostSlice:
    """A slice of the replies of a thread."""

    posts: list[Post | None]
    slice_info: SliceInfo


@strawberry.input
class PostInput:
    """Input object describing a Post to be published."""

    thread_id: str = strawberry.field(name="threadID")
    anonymous: bool
    content: str
    quotes: list[str] | None = strawberry.field(
        default=None, description="Set quoting PostIDs."
    )
