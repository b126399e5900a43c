"""
Root GraphQL query definitions
"""

import strawberry

from ..types.notification import NotiSlice, UnreadNotiCount
from ..types.post import Post
from ..types.slice import SliceQuery
from ..types.tags import Tags
from ..types.thread import Thread, ThreadSlice
from ..types.user import User


@strawberry.type
class Query:
    """Root GraphQL query type."""

    @strawberry.field
    async def post(self, info: strawberry.Info, id: str) -> Post:
        """A post object."""
        from ..resolvers.post import resolve_post_by_id

        return await resolve_post_by_id(info, id)

    @strawberry.field
    async def profile(self, info: strawberry.Info) -> User:
        """A user profile object."""
        from ..resolvers.user import resolve_profile

        return await resolve_profile(info)

    @strawberry.field
    async def thread_slice(
        self, info: strawberry.Info, query: SliceQuery, tags: list[str] | None = None
    ) -> ThreadSlice:
        """A slice of thread."""
        from ..resolvers.thread import resolve_thread_slice

        return await resolve_thread_slice(info, tags, query)

    @strawberry.field
    async def thread(self, info: strawberry.Info, id: str) -> Thread:
        """A thread object."""
        from ..resolvers.thread import resolve_thread_by_id

        return await resolve_thread_by_id(info, id)

    @strawberry.field
    async def unread_noti_count(self, info: strawberry.Info) -> UnreadNotiCount:
        """The count of unread notifications."""
        from ..resolvers.notification import resolve_unread_noti_count

        return await resolve_unread_noti_count(info)

    @strawberry.field
    async def notification(self, info: strawberry.Info, type: str, query: SliceQuery) -> NotiSlice:
        """Notifications for current user."""
        from ..resolvers.notification import resolve_notification_slice

        return await resolve_notification_slice(info, type, query)

    @strawberry.field
    async def tags(self, info: strawberry.Info) -> Tags:
        """Containing mainTags and tagTree."""
        from ..resolvers.tags import resolve_tags

        return await resolve_tags(info)
