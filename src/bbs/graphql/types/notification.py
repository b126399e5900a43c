"""
Notification GraphQL type definitions
"""

import strawberry

from ..scalars import Time
from .post import Post
from .slice import SliceInfo
from .thread import Thread


@strawberry.type
class UnreadNotiCount:
    """Count of different types of unread notifications."""

    system: int = strawberry.field(description="Announcement messages from server.")
    replied: int = strawberry.field(description="Threads that are replied.")
    quoted: int = strawberry.field(description="Posts that are quoted.")


@strawberry.type
class SystemNoti:
    """Object describing a system notification."""

    id: str
    type: str = strawberry.field(
        description='Type of Notification. "system", "replied" or "quoted".'
    )
    event_time: Time
    has_read: bool
    title: str
    content: str


@strawberry.type
class RepliedNoti:
    """Object describing a replied notification."""

    id: str
    type: str
    event_time: Time
    has_read: bool
    thread: Thread = strawberry.field(description="The thread object that is replied.")
    repliers: list[str] = strawberry.field(
        description="Users that replied, as in the author field of Post."
    )


@strawberry.type
class Quoted:
    """Object describing a quoted notification."""

    id: str
    type: str
    event_time: Time
    has_read: bool
    thread: Thread = strawberry.field(description="The thread object that is quoted in.")
    post: Post = strawberry.field(description="The post object that is quoted.")
    quoters: list[str] = strawberry.field(
        description="Users that quoted the post, as in the author field of Post."
    )


@strawberry.type
class NotiSlice:
    """A slice of one type of notification. Only the list matching the type is set."""

    slice_info: SliceInfo
    system: list[SystemNoti] | None = None
    replied: list[RepliedNoti] | None = None
    quoted: list[Quoted] | None = None
