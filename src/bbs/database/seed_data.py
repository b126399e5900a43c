"""
Reusable seed data functions for database initialization.

Main and recommended tags are administered through configuration
(``BBS_MAIN_TAGS`` / ``BBS_RECOMMENDED_TAGS``) and the ``bbs tags`` CLI; this
module makes sure the configured ones exist.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..logging import get_logger
from ..tags.repository import ensure_main_tag, normalize_tags, set_recommended

logger = get_logger(__name__)


async def ensure_configured_tags(
    db: AsyncSession,
    *,
    main_tags: Sequence[str] | None = None,
    recommended_tags: Sequence[str] | None = None,
) -> tuple[list[str], list[str]]:
    """
    Ensure the configured main and recommended tags exist.

    Main tags keep the configured order. Tags already in the database but not
    configured are left untouched.

    Returns:
        (main tags, recommended tags) that were ensured
    """
    mains = normalize_tags(settings.main_tags if main_tags is None else main_tags)
    recommended = normalize_tags(
        settings.recommended_tags if recommended_tags is None else recommended_tags
    )

    for position, name in enumerate(mains):
        await ensure_main_tag(db, name, sort_order=position)
    for name in recommended:
        await set_recommended(db, name, True)

    logger.debug("Configured tags ensured", main_tags=mains, recommended=recommended)
    return mains, recommended


async def seed_initial_data(db: AsyncSession) -> None:
    """
    Seed all initial data required for the application.

    Args:
        db: Database session
    """
    logger.info("Starting database seeding")

    mains, recommended = await ensure_configured_tags(db)
    logger.info("Ensured configured tags", main_tags=len(mains), recommended=len(recommended))

    logger.info("Database seeding completed")
