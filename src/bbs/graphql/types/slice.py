"""
Slice (cursor pagination) GraphQL type definitions
"""

import strawberry


@strawberry.type
class SliceInfo:
    """SliceInfo objects are generated by the server. Can be used in consecutive queries."""

    first_cursor: str
    last_cursor: str


@strawberry.input
class SliceQuery:
    """Selects a specific 'slice' of an object to return. Affects returned SliceInfo."""

    limit: int = strawberry.field(description="Set the amount of returned items.")
    before: str | None = strawberry.field(
        default=None,
        description=(
            "Either this field or 'after' is required. "
            "An empty string means slice from the beginning."
        ),
    )
    after: str | None = strawberry.field(
        default=None,
        description=(
            "Either this field or 'before' is required. "
            "An empty string means slice to the end."
        ),
    )
