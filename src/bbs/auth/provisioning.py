"""User provisioning and lookup."""

from __future__ import annotations

import re
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..dbmodels import Users
from ..errors import ValidationError
from ..logging import get_logger
from .adapters.base import Principal

logger = get_logger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: str) -> str:
    """
    Trim and lowercase an email address.

    Raises:
        ValidationError: If the address is not plausibly valid
    """
    normalized = email.strip().lower()
    if len(normalized) > 255 or not _EMAIL_RE.match(normalized):
        raise ValidationError("Invalid email address")
    return normalized


async def get_user_by_id(db: AsyncSession, user_id: UUID) -> Users | None:
    """Get a user by ID."""
    stmt = select(Users).where(Users.id == user_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> Users | None:
    stmt = select(Users).where(Users.email == email)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def ensure_user_for_email(db: AsyncSession, email: str) -> tuple[Users, bool]:
    """
    Find the user registered with ``email`` or register a new one.

    Returns:
        (user, created)
    """
    email = normalize_email(email)
    user = await get_user_by_email(db, email)
    if user:
        return user, False

    user = Users(email=email, tags=[])
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("Registered new user", user_id=str(user.id))
    return user, True


async def resolve_principal_user(db: AsyncSession, principal: Principal) -> Users | None:
    """
    Map a verified principal onto a local user.

    Issued tokens carry the user id as subject. Principals without a usable
    subject (the development adapter) are provisioned by email.
    """
    subject = principal["subject"]
    try:
        user_id = UUID(subject)
    except ValueError:
        user_id = None

    if user_id is not None:
        return await get_user_by_id(db, user_id)

    email = principal.get("email")
    if not email:
        return None
    user, _ = await ensure_user_for_email(db, email)
    return user
