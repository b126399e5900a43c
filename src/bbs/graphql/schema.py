"""
GraphQL schema and FastAPI router
"""

from typing import Any

import strawberry
from fastapi import Request
from graphql import GraphQLError, get_introspection_query, graphql_sync
from graphql import validate_schema as gql_validate_schema
from strawberry.extensions import MaskErrors
from strawberry.fastapi import GraphQLRouter

from ..config import settings
from ..errors import AuthenticationRequired, NotFoundError, ValidationError
from ..logging import get_logger
from .mutations.root import Mutation
from .queries.root import Query

logger = get_logger(__name__)

# Errors whose message is meant for the client
CLIENT_ERRORS = (ValidationError, NotFoundError, AuthenticationRequired)


def should_mask_error(error: GraphQLError) -> bool:
    """Hide unexpected failures; syntax/validation and domain errors pass through."""
    original = error.original_error
    if original is None:
        return False
    if isinstance(original, CLIENT_ERRORS):
        return False
    logger.error("Unhandled error in resolver", path=error.path, error=str(original))
    return True


def build_schema(mask_errors: bool = False) -> strawberry.Schema:
    extensions = [MaskErrors(should_mask_error=should_mask_error)] if mask_errors else []
    return strawberry.Schema(query=Query, mutation=Mutation, extensions=extensions)


schema = build_schema(mask_errors=not settings.debug)


def validate_schema() -> None:
    """
    Check the schema at startup: type references resolve and introspection runs.

    Raises:
        RuntimeError: if either check reports errors
    """
    graphql_schema = schema._schema

    problems = [str(e) for e in gql_validate_schema(graphql_schema)]
    if not problems:
        result = graphql_sync(graphql_schema, get_introspection_query())
        problems = [str(e) for e in result.errors or []]

    if problems:
        logger.error("GraphQL schema validation failed", errors=problems)
        raise RuntimeError(f"GraphQL schema validation failed: {'; '.join(problems)}")
    logger.info("GraphQL schema validation successful")


async def get_context(request: Request) -> dict[str, Any]:
    # access_control caches the resolved auth context under "auth_context"
    return {"request": request}


def create_graphql_router() -> GraphQLRouter[dict[str, Any], None]:
    return GraphQLRouter(
        schema,
        path="/graphql",
        graphiql=settings.debug,
        context_getter=get_context,
    )
