"""
Root GraphQL mutation definitions
"""

import strawberry

from ..types.post import Post, PostInput
from ..types.thread import Thread, ThreadInput
from ..types.user import User


@strawberry.type
class Mutation:
    """Root GraphQL mutation type."""

    # Post mutations
    @strawberry.mutation(name="pubPost")
    async def pub_post(self, info: strawberry.Info, post: PostInput) -> Post:
        """Publish a new post."""
        from ..resolvers.post import publish_post

        return await publish_post(info, post)

    # User mutations
    @strawberry.mutation
    async def auth(self, info: strawberry.Info, email: str) -> bool:
        """Register/Login via email address. An email containing login info will be sent to the provided email address."""  # noqa: E501
        from ..resolvers.auth import request_login

        return await request_login(info, email)

    @strawberry.mutation(name="setName")
    async def set_name(self, info: strawberry.Info, name: str) -> User:
        """Set the Name of user."""
        from ..resolvers.user import set_name

        return await set_name(info, name)

    @strawberry.mutation(name="syncTags")
    async def sync_tags(self, info: strawberry.Info, tags: list[str | None]) -> User:
        """Directly edit tags subscribed by user."""
        from ..resolvers.user import sync_tags

        return await sync_tags(info, tags)

    @strawberry.mutation(name="addSubbedTags")
    async def add_subbed_tags(self, info: strawberry.Info, tags: list[str]) -> User:
        """Add tags subscribed by user."""
        from ..resolvers.user import add_subbed_tags

        return await add_subbed_tags(info, tags)

    @strawberry.mutation(name="delSubbedTags")
    async def del_subbed_tags(self, info: strawberry.Info, tags: list[str]) -> User:
        """Delete tags subscribed by user."""
        from ..resolvers.user import del_subbed_tags

        return await del_subbed_tags(info, tags)

    # Thread mutations
    @strawberry.mutation(name="pubThread")
    async def pub_thread(self, info: strawberry.Info, thread: ThreadInput) -> Thread:
        """Publish a new thread."""
        from ..resolvers.thread import publish_thread

        return await publish_thread(info, thread)
