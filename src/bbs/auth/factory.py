"""Factory for creating auth adapters based on configuration."""

from __future__ import annotations

import json
import os

from ..config import settings
from .adapters.base import AuthAdapter
from .adapters.jwt import JWTAuthAdapter
from .adapters.none import NoAuthAdapter


def _load_auth_config() -> dict:
    config_str = os.getenv("BBS_AUTH_CONFIG")
    if config_str is None:
        return dict(settings.auth_config)
    try:
        config = json.loads(config_str)
    except json.JSONDecodeError:
        return {}
    return config if isinstance(config, dict) else {}


def get_auth_adapter() -> AuthAdapter:
    """Create and return the configured auth adapter."""
    provider = os.getenv("BBS_AUTH_PROVIDER") or settings.auth_provider
    config = _load_auth_config()

    if provider == "none":
        return NoAuthAdapter(
            default_user_id=config.get("default_user_id", "dev-user"),
            default_email=config.get("default_email", "dev@example.com"),
        )

    elif provider == "jwt":
        secret_key = (
            config.get("secret_key") or os.getenv("BBS_JWT_SECRET") or settings.jwt_secret
        )
        if not secret_key:
            raise ValueError(
                "JWT secret key is required. Set BBS_JWT_SECRET or provide in config."
            )

        return JWTAuthAdapter(
            secret_key=secret_key,
            algorithm=config.get("algorithm", settings.jwt_algorithm),
            issuer=config.get("issuer", settings.jwt_issuer),
            audience=config.get("audience", settings.jwt_audience),
            token_expiry_hours=int(
                config.get("token_expiry_hours", settings.login_token_expiry_hours)
            ),
        )

    else:
        raise ValueError(f"Unsupported auth provider: {provider}")


def get_auth_adapter_cached() -> AuthAdapter:
    """Get the auth adapter instance (no global caching for thread safety)."""
    # Creating an adapter is cheap and keeps env changes in tests visible
    return get_auth_adapter()
