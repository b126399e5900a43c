"""
Shared access control logic for GraphQL resolvers
"""

from typing import TYPE_CHECKING
from uuid import UUID

import strawberry

from ..auth.context import ANONYMOUS_CONTEXT
from ..auth.middleware import get_auth_context_optional
from ..errors import AuthenticationRequired
from ..logging import get_logger

if TYPE_CHECKING:
    from ..auth.context import AuthContext

logger = get_logger(__name__)


async def get_auth_context_from_info(info: strawberry.Info) -> "AuthContext":
    """
    Extract auth context from GraphQL info object.

    The context is resolved once per request and cached on the GraphQL context.
    """
    cached = info.context.get("auth_context")
    if cached is not None:
        return cached

    request = info.context.get("request")
    if not request:
        logger.error("Request not found in GraphQL context")
        return ANONYMOUS_CONTEXT

    auth_context = await get_auth_context_optional(
        authorization=request.headers.get("authorization"),
    )
    info.context["auth_context"] = auth_context
    return auth_context


async def require_user_id(info: strawberry.Info) -> UUID:
    """
    Return the authenticated user's id.

    Raises:
        AuthenticationRequired: If the request is not authenticated
    """
    auth_context = await get_auth_context_from_info(info)
    if not auth_context.is_authenticated or auth_context.user_id is None:
        raise AuthenticationRequired()
    return auth_context.user_id
