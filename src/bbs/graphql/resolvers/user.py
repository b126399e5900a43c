from __future__ import annotations

from typing import TYPE_CHECKING

import strawberry
from sqlalchemy import select

from ...config import settings
from ...database.connection import get_async_session
from ...dbmodels import Users
from ...errors import ValidationError
from ...identifiers import looks_like_generated_id
from ...logging import get_logger
from ...tags.repository import normalize_tags
from ..access_control import require_user_id
from .post import load_current_user

if TYPE_CHECKING:
    from ..types.user import User

logger = get_logger(__name__)


def user_from_model(user: Users) -> User:
    from ..types.user import User as UserType

    return UserType(
        id=user.id,
        email=user.email,
        name=user.name,
        tags=list(user.tags or []),
    )


def validate_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValidationError("Name must not be empty")
    if len(name) > settings.max_name_length:
        raise ValidationError(f"Name exceeds {settings.max_name_length} characters")
    if looks_like_generated_id(name):
        # Would be indistinguishable from an anonymous author
        raise ValidationError("Name must not look like an anonymous id")
    return name


async def resolve_profile(info: strawberry.Info) -> User:
    user_id = await require_user_id(info)

    async with get_async_session() as session:
        user = await load_current_user(session, user_id)
        return user_from_model(user)


async def set_name(info: strawberry.Info, name: str) -> User:
    """Set the current user's name. Names are unique across users."""
    user_id = await require_user_id(info)
    name = validate_name(name)

    async with get_async_session() as session:
        user = await load_current_user(session, user_id)

        result = await session.execute(
            select(Users.id).where(Users.name == name, Users.id != user_id)
        )
        if result.scalar_one_or_none() is not None:
            raise ValidationError(f"Name '{name}' is already taken")

        user.name = name
        await session.flush()

        logger.info("User name set", user_id=str(user_id))
        return user_from_model(user)


async def sync_tags(info: strawberry.Info, tags: list[str | None]) -> User:
    """Replace the current user's subscribed tags."""
    user_id = await require_user_id(info)
    subscribed = normalize_tags(tags, limit=settings.max_subscribed_tags)

    async with get_async_session() as session:
        user = await load_current_user(session, user_id)
        user.tags = subscribed
        await session.flush()

        logger.info("Subscribed tags synced", user_id=str(user_id), count=len(subscribed))
        return user_from_model(user)


async def add_subbed_tags(info: strawberry.Info, tags: list[str]) -> User:
    user_id = await require_user_id(info)
    additions = normalize_tags(tags)

    async with get_async_session() as session:
        user = await load_current_user(session, user_id)
        user.tags = normalize_tags(
            [*(user.tags or []), *additions], limit=settings.max_subscribed_tags
        )
        await session.flush()

        logger.info("Subscribed tags added", user_id=str(user_id), count=len(user.tags))
        return user_from_model(user)


async def del_subbed_tags(info: strawberry.Info, tags: list[str]) -> User:
    user_id = await require_user_id(info)
    removed = set(normalize_tags(tags))

    async with get_async_session() as session:
        user = await load_current_user(session, user_id)
        user.tags = [tag for tag in user.tags or [] if tag not in removed]
        await session.flush()

        logger.info("Subscribed tags removed", user_id=str(user_id), count=len(user.tags))
        return user_from_model(user)
