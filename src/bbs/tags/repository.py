"""Repository helpers for main tags, recommended tags and the tag tree."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..dbmodels import Tags, TagTree
from ..errors import ValidationError
from ..logging import get_logger

logger = get_logger(__name__)


def normalize_tags(tags: Iterable[str | None], limit: int | None = None) -> list[str]:
    """
    Trim tag names, drop empty/null entries and duplicates (first wins).

    Raises:
        ValidationError: if a tag is too long or more than ``limit`` remain
    """
    normalized: list[str] = []
    seen: set[str] = set()
    for tag in tags:
        if tag is None:
            continue
        name = tag.strip()
        if not name or name in seen:
            continue
        if len(name) > settings.max_tag_length:
            raise ValidationError(
                f"Tag '{name[:16]}...' exceeds {settings.max_tag_length} characters"
            )
        seen.add(name)
        normalized.append(name)

    if limit is not None and len(normalized) > limit:
        raise ValidationError(f"At most {limit} tags are allowed")
    return normalized


def validate_thread_tags(
    main_tag: str, sub_tags: Sequence[str] | None, main_tags: Sequence[str]
) -> tuple[str, list[str]]:
    """Check the tag rules of a new thread and return the cleaned tags."""
    main = main_tag.strip()
    if not main:
        raise ValidationError("mainTag is required")
    if main not in main_tags:
        raise ValidationError(f"'{main}' is not a main tag")

    subs = normalize_tags(sub_tags or [])
    if len(subs) > settings.max_sub_tags:
        raise ValidationError(f"At most {settings.max_sub_tags} subTags are allowed")

    main_set = set(main_tags)
    for sub in subs:
        if sub in main_set:
            raise ValidationError(f"Main tag '{sub}' cannot be used as a subTag")

    return main, subs


def build_tag_tree(
    main_tags: Sequence[str],
    pairs: Iterable[tuple[str, str]],
    query: str | None = None,
) -> list[tuple[str, list[str]]]:
    """
    Group (main_tag, sub_tag) pairs under the ordered main tags.

    With a query, only sub tags containing it (case-insensitive) are kept and
    nodes are dropped unless the main tag or one of its sub tags matches.
    """
    subs_by_main: dict[str, set[str]] = {main: set() for main in main_tags}
    for main, sub in pairs:
        if main in subs_by_main:
            subs_by_main[main].add(sub)

    needle = query.strip().casefold() if query else ""
    tree: list[tuple[str, list[str]]] = []
    for main in main_tags:
        subs = sorted(subs_by_main[main])
        if needle:
            subs = [sub for sub in subs if needle in sub.casefold()]
            if not subs and needle not in main.casefold():
                continue
        tree.append((main, subs))
    return tree


async def list_main_tags(session: AsyncSession) -> list[str]:
    stmt = select(Tags.name).where(Tags.is_main).order_by(Tags.sort_order, Tags.name)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_recommended_tags(session: AsyncSession) -> list[str]:
    stmt = select(Tags.name).where(Tags.is_recommended).order_by(Tags.sort_order, Tags.name)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def load_tag_tree(
    session: AsyncSession, query: str | None = None
) -> list[tuple[str, list[str]]]:
    main_tags = await list_main_tags(session)
    result = await session.execute(select(TagTree.main_tag, TagTree.sub_tag))
    return build_tag_tree(main_tags, [tuple(row) for row in result.all()], query)


async def next_main_tag_order(session: AsyncSession) -> int:
    """Sort order that places a new main tag after the existing ones."""
    result = await session.execute(
        select(func.coalesce(func.max(Tags.sort_order) + 1, 0)).where(Tags.is_main)
    )
    return result.scalar_one()


async def ensure_main_tag(session: AsyncSession, name: str, sort_order: int | None = None) -> int:
    """
    Create ``name`` as a main tag, or promote an existing tag.

    Without ``sort_order`` a tag that is already main keeps its position and
    any other tag is placed after the last main tag. Returns the order used.
    """
    if sort_order is None:
        current = select(Tags.sort_order).where(Tags.name == name, Tags.is_main)
        result = await session.execute(current)
        sort_order = result.scalar_one_or_none()
        if sort_order is None:
            sort_order = await next_main_tag_order(session)

    stmt = (
        insert(Tags)
        .values(name=name, is_main=True, sort_order=sort_order)
        .on_conflict_do_update(
            index_elements=[Tags.name],
            set_={"is_main": True, "sort_order": sort_order},
        )
    )
    await session.execute(stmt)
    logger.info("Main tag ensured", tag=name, sort_order=sort_order)
    return sort_order


async def set_recommended(session: AsyncSession, name: str, recommended: bool = True) -> None:
    if recommended:
        stmt = (
            insert(Tags)
            .values(name=name, is_recommended=True)
            .on_conflict_do_update(index_elements=[Tags.name], set_={"is_recommended": True})
        )
    else:
        stmt = update(Tags).where(Tags.name == name).values(is_recommended=False)
    await session.execute(stmt)
    logger.info("Tag recommendation updated", tag=name, recommended=recommended)


async def record_thread_tags(session: AsyncSession, main_tag: str, sub_tags: Sequence[str]) -> None:
    """Remember sub tags and their pairing with the main tag for the tag tree."""
    if not sub_tags:
        return

    await session.execute(
        insert(Tags)
        .values([{"name": sub} for sub in sub_tags])
        .on_conflict_do_nothing(index_elements=[Tags.name])
    )
    await session.execute(
        insert(TagTree)
        .values([{"main_tag": main_tag, "sub_tag": sub} for sub in sub_tags])
        .on_conflict_do_nothing(index_elements=[TagTree.main_tag, TagTree.sub_tag])
    )
