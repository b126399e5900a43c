"""Repository helpers for notification fan-out, aggregation and read state."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func, insert, literal, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..dbmodels import NOTIFICATION_TYPES, Notifications, Users
from ..logging import get_logger

logger = get_logger(__name__)


async def _record_aggregated(
    session: AsyncSession,
    *,
    recipient_id: UUID,
    type_: str,
    thread_id: str,
    post_id: str | None,
    actor: str,
    event_time: datetime,
) -> Notifications:
    """
    Fold an event into the recipient's unread notification for the same target.

    Repeated replies to one thread (or quotes of one post) accumulate actors on
    a single unread notification; once it is read, the next event opens a new one.
    """
    stmt = (
        select(Notifications)
        .where(
            Notifications.user_id == recipient_id,
            Notifications.type == type_,
            Notifications.thread_id == thread_id,
            Notifications.has_read.is_(False),
        )
        .with_for_update()
    )
    if post_id is not None:
        stmt = stmt.where(Notifications.post_id == post_id)

    result = await session.execute(stmt)
    existing = result.scalars().first()

    if existing is not None:
        if actor not in existing.actors:
            existing.actors = [*existing.actors, actor]
        existing.event_time = event_time
        logger.debug(
            "Notification aggregated",
            notification_id=str(existing.id),
            type=type_,
            actors=len(existing.actors),
        )
        return existing

    noti = Notifications(
        user_id=recipient_id,
        type=type_,
        thread_id=thread_id,
        post_id=post_id,
        actors=[actor],
        event_time=event_time,
        has_read=False,
    )
    session.add(noti)
    await session.flush()
    logger.debug("Notification created", notification_id=str(noti.id), type=type_)
    return noti


async def record_replied(
    session: AsyncSession,
    *,
    recipient_id: UUID,
    thread_id: str,
    replier: str,
    event_time: datetime | None = None,
) -> Notifications:
    return await _record_aggregated(
        session,
        recipient_id=recipient_id,
        type_="replied",
        thread_id=thread_id,
        post_id=None,
        actor=replier,
        event_time=event_time or datetime.now(UTC),
    )


async def record_quoted(
    session: AsyncSession,
    *,
    recipient_id: UUID,
    thread_id: str,
    post_id: str,
    quoter: str,
    event_time: datetime | None = None,
) -> Notifications:
    return await _record_aggregated(
        session,
        recipient_id=recipient_id,
        type_="quoted",
        thread_id=thread_id,
        post_id=post_id,
        actor=quoter,
        event_time=event_time or datetime.now(UTC),
    )


async def announce(
    session: AsyncSession, *, title: str, content: str, event_time: datetime | None = None
) -> int:
    """Create a system notification for every user. Returns the number created."""
    now = event_time or datetime.now(UTC)
    stmt = insert(Notifications).from_select(
        ["user_id", "type", "title", "content", "event_time", "has_read"],
        select(
            Users.id,
            literal("system", Notifications.type.type),
            literal(title, Notifications.title.type),
            literal(content, Notifications.content.type),
            literal(now, Notifications.event_time.type),
            literal(False, Notifications.has_read.type),
        ),
    )
    result = await session.execute(stmt)
    count = result.rowcount or 0
    logger.info("System notification announced", title=title, recipients=count)
    return count


async def unread_counts(session: AsyncSession, user_id: UUID) -> dict[str, int]:
    stmt = (
        select(Notifications.type, func.count())
        .where(Notifications.user_id == user_id, Notifications.has_read.is_(False))
        .group_by(Notifications.type)
    )
    result = await session.execute(stmt)
    counts = {type_: 0 for type_ in NOTIFICATION_TYPES}
    for type_, count in result.all():
        counts[type_] = count
    return counts


async def mark_read(session: AsyncSession, user_id: UUID, ids: Iterable[UUID]) -> None:
    ids = list(ids)
    if not ids:
        return
    stmt = (
        update(Notifications)
        .where(Notifications.user_id == user_id, Notifications.id.in_(ids))
        .values(has_read=True)
    )
    await session.execute(stmt)
