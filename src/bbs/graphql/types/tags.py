"""
Tag GraphQL type definitions
"""

import strawberry


@strawberry.type
class TagTreeNode:
    main_tag: str
    sub_tags: list[str] | None


@strawberry.type
class Tags:
    """Containing mainTags, recommended tags and the tag tree."""

    main_tags: list[str] = strawberry.field(description="Main tags are predefined manually.")
    recommended: list[str] = strawberry.field(
        description="Recommended tags are picked manually."
    )

    @strawberry.field
    async def tree(
        self, info: strawberry.Info, query: str | None = None
    ) -> list[TagTreeNode] | None:
        """Sub tags grouped under their main tags, optionally filtered by ``query``."""
        from ..resolvers.tags import resolve_tag_tree

        return await resolve_tag_tree(info, query)
