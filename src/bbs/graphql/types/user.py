"""
User GraphQL type definitions
"""

from uuid import UUID

import strawberry


@strawberry.type
class User:
    """User profile."""

    id: strawberry.Private[UUID]
    email: str
    name: str | None = strawberry.field(
        description="The Name of user. Required when not posting anonymously."
    )
    tags: list[str] | None = strawberry.field(description="Tags saved by user.")
