from __future__ import annotations

from typing import TYPE_CHECKING

import strawberry

from ...database.connection import get_async_session
from ...tags.repository import list_main_tags, list_recommended_tags, load_tag_tree

if TYPE_CHECKING:
    from ..types.tags import TagTreeNode, Tags


async def resolve_tags(info: strawberry.Info) -> Tags:
    from ..types.tags import Tags as TagsType

    async with get_async_session() as session:
        main_tags = await list_main_tags(session)
        recommended = await list_recommended_tags(session)

    return TagsType(main_tags=main_tags, recommended=recommended)


async def resolve_tag_tree(info: strawberry.Info, query: str | None = None) -> list[TagTreeNode]:
    """Sub tags used with each main tag; ``query`` filters sub tags by substring."""
    from ..types.tags import TagTreeNode as TagTreeNodeType

    async with get_async_session() as session:
        tree = await load_tag_tree(session, query)

    return [TagTreeNodeType(main_tag=main, sub_tags=subs) for main, subs in tree]
