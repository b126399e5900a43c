"""
Main FastAPI application for the BBS backend
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import settings
from ..database import dispose_database, init_database
from ..logging import configure_logging, get_logger
from ..middleware import LoggingContextMiddleware

# Configure logging before creating logger
configure_logging(debug=settings.debug)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database, check configuration, and close the pool on shutdown."""
    from ..validation import (
        ConfigurationError,
        get_startup_recommendations,
        validate_startup_configuration,
    )

    logger.info("Starting BBS API", version=__version__, environment=settings.environment)
    init_database()

    try:
        results = await validate_startup_configuration()
    except Exception as e:
        logger.error("Startup validation crashed; continuing without it", error=str(e))
    else:
        if not results["overall_valid"]:
            if settings.environment.lower() in ("production", "prod"):
                raise ConfigurationError("Startup validation failed in production")
            logger.warning(
                "Starting with configuration errors",
                database_errors=results["database"]["errors"],
                tag_errors=results["tags"]["errors"],
                auth_errors=results["auth"]["errors"],
            )
        recommendations = get_startup_recommendations(results)
        if recommendations:
            logger.info("Configuration recommendations", recommendations=recommendations)

    yield

    await dispose_database()
    logger.info("BBS API stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="BBS API",
        description="GraphQL backend for a tag based forum",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.add_middleware(LoggingContextMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():  # pyright: ignore [reportUnusedFunction]
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    # GraphQL endpoint (allow disabling for tests)
    if not os.getenv("BBS_DISABLE_GRAPHQL"):
        try:
            from ..graphql.schema import create_graphql_router, validate_schema

            logger.info("Validating GraphQL schema...")
            validate_schema()

            app.include_router(create_graphql_router(), prefix="")
            logger.info("GraphQL endpoint initialized successfully", endpoint="/graphql")
        except Exception as e:  # pragma: no cover
            logger.error("Failed to initialize GraphQL endpoint", error=str(e))
            raise

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bbs.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
