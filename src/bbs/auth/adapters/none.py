"""No-auth adapter for local development without authentication."""

from __future__ import annotations

import os
from uuid import UUID

from ...logging import get_logger
from .base import AuthenticationError, Principal

logger = get_logger(__name__)


class NoAuthAdapter:
    """
    No-auth adapter that bypasses authentication for local development.

    Every request is treated as the same development user.
    WARNING: Only use this in development environments!
    """

    def __init__(self, default_user_id: str = "dev-user", default_email: str = "dev@example.com"):
        self.default_user_id = default_user_id
        self.default_email = default_email

        environment = os.getenv("BBS_ENVIRONMENT", os.getenv("ENVIRONMENT", "")).lower()
        if environment in ("production", "prod"):
            logger.error(
                "NoAuthAdapter detected in production environment! "
                "This is a security risk and should never be used in production.",
                environment=environment,
            )
            raise RuntimeError(
                "NoAuthAdapter cannot be used in production environments. "
                "Please configure the jwt authentication provider."
            )

        logger.warning(
            "NoAuthAdapter is active - ALL requests will be treated as authenticated! "
            "This should ONLY be used in development.",
            user_id=default_user_id,
        )

    async def verify_token(self, token: str) -> Principal:
        """
        Always returns the development principal - no actual verification.

        Any non-empty token will be accepted.
        """
        if not token:
            raise AuthenticationError("Token required (even in no-auth mode)")

        return Principal(
            provider="none",
            subject=self.default_user_id,
            email=self.default_email,
            claims={
                "mode": "development",
                "token": token[:20] + "..." if len(token) > 20 else token,
            },
        )

    async def issue_token(self, user_id: UUID | None = None, claims: dict | None = None) -> str:
        """Issue a fake development token."""
        token_parts = [
            "dev-token",
            str(user_id) if user_id else self.default_user_id,
            "no-auth-mode",
        ]

        if claims:
            token_parts.extend(f"{k}={v}" for k, v in claims.items())

        return "|".join(token_parts)

    async def get_user_info(self, token: str) -> dict:
        """Return fake user info for development."""
        return {
            "id": self.default_user_id,
            "email": self.default_email,
            "mode": "no-auth",
            "token_preview": token[:20] + "..." if len(token) > 20 else token,
        }
