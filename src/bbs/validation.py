"""
Configuration validation for the BBS application.

Run at startup so misconfiguration is reported before the first request.
"""

from __future__ import annotations

from typing import Any

from .config import settings
from .database.connection import get_async_session, test_database_connection
from .database.seed_data import ensure_configured_tags
from .logging import get_logger

logger = get_logger(__name__)


class ConfigurationError(Exception):
    """Raised when application validation fails."""

    pass


def _is_production() -> bool:
    return settings.environment.lower() in ("production", "prod")


def _new_results(**extra: Any) -> dict[str, Any]:
    return {"valid": True, "warnings": [], "errors": [], **extra}


async def validate_database_connection() -> dict[str, Any]:
    """Validate that the database is accessible and responsive."""
    results = _new_results(connection_info=None)

    success, error_message = await test_database_connection()

    if success:
        results["connection_info"] = {
            "status": "connected",
            "message": "Database connection successful",
        }
        logger.info("Database connection validation successful")
    else:
        results["valid"] = False
        results["errors"].append(error_message)
        logger.error("Database connection validation failed", error=error_message)

    return results


async def validate_tag_configuration() -> dict[str, Any]:
    """
    Ensure configured main/recommended tags exist.

    Threads cannot be published without at least one main tag, so an empty
    set is reported as a warning.
    """
    results = _new_results(tag_info=None)

    try:
        async with get_async_session() as db:
            mains, recommended = await ensure_configured_tags(db)
        results["tag_info"] = {"main_tags": mains, "recommended": recommended}
        if not mains:
            results["warnings"].append(
                "No main tags configured - set BBS_MAIN_TAGS or use 'bbs tags add-main'"
            )
        logger.info("Tag validation: configured tags ensured", main_tags=len(mains))
    except Exception as e:
        results["errors"].append(f"Failed to ensure configured tags: {str(e)}")
        results["valid"] = False
        logger.error("Tag validation failed", error=str(e))

    return results


async def validate_auth_configuration() -> dict[str, Any]:
    """Validate authentication configuration."""
    results = _new_results(auth_info={"provider": settings.auth_provider})

    if settings.auth_provider == "none":
        if _is_production():
            warning = "No-auth mode detected in production environment - this is a security risk!"
            results["warnings"].append(warning)
            logger.warning(warning)
        else:
            logger.info("Auth validation: No-auth mode enabled for development")

    elif settings.auth_provider == "jwt":
        if not settings.jwt_secret:
            error = "JWT authentication enabled but BBS_JWT_SECRET not configured"
            results["errors"].append(error)
            results["valid"] = False
            logger.error(error)
        else:
            logger.info("Auth validation: JWT authentication configured")

    else:
        error = f"Unsupported auth provider: {settings.auth_provider}"
        results["errors"].append(error)
        results["valid"] = False
        logger.error(error)

    if _is_production() and not (settings.anonymous_id_secret or settings.jwt_secret):
        error = "BBS_ANONYMOUS_ID_SECRET must be set in production"
        results["errors"].append(error)
        results["valid"] = False
        logger.error(error)

    return results


async def validate_startup_configuration() -> dict[str, Any]:
    """Run every startup check and combine the results."""
    logger.info("Starting application configuration validation")

    db_results = await validate_database_connection()
    if db_results["valid"]:
        tag_results = await validate_tag_configuration()
    else:
        logger.warning("Skipping tag validation due to database connection failure")
        tag_results = _new_results(tag_info=None)
        tag_results["valid"] = False
        tag_results["errors"].append("Skipped due to database connection failure")
    auth_results = await validate_auth_configuration()

    combined_results = {
        "overall_valid": db_results["valid"] and tag_results["valid"] and auth_results["valid"],
        "database": db_results,
        "tags": tag_results,
        "auth": auth_results,
        "environment": {
            "auth_provider": settings.auth_provider,
            "environment": settings.environment,
            "debug": settings.debug,
        },
    }

    sections = (db_results, tag_results, auth_results)
    if combined_results["overall_valid"]:
        logger.info("Application configuration validation completed successfully")
    else:
        logger.error(
            "Application configuration validation failed",
            errors=[error for section in sections for error in section["errors"]],
        )

    warnings = [warning for section in sections for warning in section["warnings"]]
    if warnings:
        logger.warning("Configuration warnings detected", warnings=warnings)

    return combined_results


def get_startup_recommendations(validation_results: dict[str, Any]) -> list[str]:
    recommendations = []

    if not validation_results.get("database", {}).get("valid", False):
        recommendations.append(
            "Database connection failed - check that PostgreSQL is running and accessible"
        )
        return recommendations

    if validation_results["auth"]["auth_info"]["provider"] == "none" and (
        settings.environment.lower() not in ("development", "dev")
    ):
        recommendations.append(
            "Configure the jwt authentication provider for non-development environments"
        )

    if not validation_results["overall_valid"]:
        recommendations.append("Fix configuration errors before deploying to production")

    return recommendations
