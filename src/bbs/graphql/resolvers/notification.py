from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

import strawberry
from sqlalchemy import select

from ...database.connection import get_async_session
from ...dbmodels import NOTIFICATION_TYPES, Notifications, Posts, Threads
from ...errors import ValidationError
from ...logging import get_logger
from ...notifications.repository import mark_read, unread_counts
from ...pagination import apply_slice, build_slice, parse_slice_query
from ..access_control import require_user_id
from .post import post_from_model
from .thread import thread_from_model

if TYPE_CHECKING:
    from ..types.notification import NotiSlice, UnreadNotiCount
    from ..types.slice import SliceQuery

logger = get_logger(__name__)


async def resolve_unread_noti_count(info: strawberry.Info) -> UnreadNotiCount:
    from ..types.notification import UnreadNotiCount as UnreadNotiCountType

    user_id = await require_user_id(info)

    async with get_async_session() as session:
        counts = await unread_counts(session, user_id)

    return UnreadNotiCountType(
        system=counts["system"], replied=counts["replied"], quoted=counts["quoted"]
    )


async def resolve_notification_slice(
    info: strawberry.Info, type: str, query: SliceQuery
) -> NotiSlice:
    """
    Resolve a slice of the current user's notifications of one type, newest first.

    Returned notifications are marked read; the response still carries the
    read state they had before this request.
    """
    from ..types.notification import NotiSlice as NotiSliceType
    from ..types.notification import Quoted, RepliedNoti, SystemNoti
    from ..types.slice import SliceInfo

    if type not in NOTIFICATION_TYPES:
        raise ValidationError(
            f"Unknown notification type '{type}', expected one of {', '.join(NOTIFICATION_TYPES)}"
        )
    request = parse_slice_query(query.before, query.after, query.limit)
    user_id = await require_user_id(info)

    async with get_async_session() as session:
        stmt = select(Notifications).where(
            Notifications.user_id == user_id, Notifications.type == type
        )
        stmt = apply_slice(
            stmt,
            Notifications.event_time,
            Notifications.id,
            request,
            newest_first=True,
            parse_id=UUID,
        )
        result = await session.execute(stmt)
        page = build_slice(
            result.scalars().all(), request, key=lambda noti: (noti.event_time, noti.id)
        )

        thread_ids = {noti.thread_id for noti in page.items if noti.thread_id}
        post_ids = {noti.post_id for noti in page.items if noti.post_id}
        threads: dict[str, Threads] = {}
        posts: dict[str, Posts] = {}
        if thread_ids:
            result = await session.execute(select(Threads).where(Threads.id.in_(thread_ids)))
            threads = {thread.id: thread for thread in result.scalars().all()}
        if post_ids:
            result = await session.execute(select(Posts).where(Posts.id.in_(post_ids)))
            posts = {post.id: post for post in result.scalars().all()}

        items: list = []
        for noti in page.items:
            if type == "system":
                items.append(
                    SystemNoti(
                        id=str(noti.id),
                        type=noti.type,
                        event_time=noti.event_time,
                        has_read=noti.has_read,
                        title=noti.title or "",
                        content=noti.content or "",
                    )
                )
                continue

            thread = threads.get(noti.thread_id)
            if thread is None:
                logger.warning(
                    "Notification refers to a missing thread", notification_id=str(noti.id)
                )
                continue

            if type == "replied":
                items.append(
                    RepliedNoti(
                        id=str(noti.id),
                        type=noti.type,
                        event_time=noti.event_time,
                        has_read=noti.has_read,
                        thread=thread_from_model(thread),
                        repliers=list(noti.actors or []),
                    )
                )
            else:
                post = posts.get(noti.post_id)
                if post is None:
                    logger.warning(
                        "Notification refers to a missing post", notification_id=str(noti.id)
                    )
                    continue
                items.append(
                    Quoted(
                        id=str(noti.id),
                        type=noti.type,
                        event_time=noti.event_time,
                        has_read=noti.has_read,
                        thread=thread_from_model(thread),
                        post=post_from_model(post),
                        quoters=list(noti.actors or []),
                    )
                )

        unread = [noti.id for noti in page.items if not noti.has_read]
        await mark_read(session, user_id, unread)
        if unread:
            logger.info("Notifications marked read", type=type, count=len(unread))

        return NotiSliceType(
            slice_info=SliceInfo(first_cursor=page.first_cursor, last_cursor=page.last_cursor),
            **{type: items},
        )
