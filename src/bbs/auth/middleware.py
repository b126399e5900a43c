"""Authentication dependencies for FastAPI and GraphQL."""

from __future__ import annotations

from fastapi import Header, HTTPException

from ..database.connection import get_async_session
from ..logging import get_logger, set_user_context
from .adapters.base import AuthenticationError
from .context import ANONYMOUS_CONTEXT, AuthContext
from .factory import get_auth_adapter_cached
from .provisioning import resolve_principal_user

logger = get_logger(__name__)


async def get_auth_context(
    authorization: str | None = Header(None),
) -> AuthContext:
    """
    Extract authentication context from request headers.

    This function:
    1. Extracts Bearer token from Authorization header
    2. Verifies token using the configured auth adapter
    3. Maps the principal onto a local user
    4. Returns AuthContext for the request

    For no-auth mode, any token (or none at all) authenticates the dev user.
    """
    adapter = get_auth_adapter_cached()

    # NoAuthAdapter has this attribute
    is_no_auth_mode = hasattr(adapter, "default_user_id")

    if not authorization:
        if is_no_auth_mode:
            authorization = "Bearer dev-token"
        else:
            return ANONYMOUS_CONTEXT

    if not authorization.startswith("Bearer "):
        logger.warning("Invalid authorization format received")
        raise HTTPException(
            status_code=401,
            detail="Invalid authorization format. Expected: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization[7:]

    if not token:
        logger.warning("Empty token provided")
        raise HTTPException(
            status_code=401,
            detail="Empty token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        principal = await adapter.verify_token(token)

        async with get_async_session() as db:
            user = await resolve_principal_user(db, principal)
            user_id = user.id if user else None

        if user_id is None:
            raise AuthenticationError("Unknown user")

        set_user_context(str(user_id))
        logger.debug(
            "Request authenticated",
            provider=principal.get("provider"),
            user_id=str(user_id),
        )

        return AuthContext(user_id=user_id, principal=principal, token=token)

    except AuthenticationError as e:
        logger.warning("Authentication failed", error=str(e))
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    except Exception as e:
        logger.error("Unexpected authentication error", error=str(e))
        raise HTTPException(
            status_code=401,
            detail="Authentication failed",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_auth_context_optional(
    authorization: str | None = Header(None),
) -> AuthContext:
    """
    Optional authentication - returns unauthenticated context on failure.

    Use this for endpoints that work both authenticated and unauthenticated.
    """
    try:
        return await get_auth_context(authorization)
    except HTTPException:
        return ANONYMOUS_CONTEXT
