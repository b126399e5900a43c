"""
Middleware for request context and logging
"""

import json
import re
import time
from collections.abc import Callable
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging import clear_request_context, get_logger, set_request_context

logger = get_logger(__name__)

SENSITIVE_KEYS = {
    "password",
    "token",
    "api_key",
    "secret",
    "auth",
    "authorization",
    "access_token",
    "refresh_token",
    "key",
    "jwt",
    "session",
    "cookie",
    "credentials",
    "email",
}

REQUEST_ID_HEADER = "X-Request-ID"

_OPERATION_RE = re.compile(r"\b(query|mutation)\s+(\w+)")


def sanitize_query_params(params: dict[str, Any]) -> dict[str, Any]:
    """Remove sensitive query parameters from logging.

    Args:
        params: Dictionary of query parameters

    Returns:
        Dictionary with sensitive parameters redacted
    """
    sanitized = {}
    for key, value in params.items():
        if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
            sanitized[key] = "[REDACTED]"
        else:
            sanitized[key] = value

    return sanitized


def operation_name_from_query(query: str) -> str | None:
    """Derive a loggable operation name from a raw GraphQL document."""
    if not query:
        return None
    if "__schema" in query or "IntrospectionQuery" in query:
        return "__introspection"

    match = _OPERATION_RE.search(query)
    if match:
        kind = "mutation:" if match.group(1) == "mutation" else ""
        return f"{kind}{match.group(2)}"
    return "unnamed_operation"


def _operation_from_payload(payload: dict[str, Any]) -> str | None:
    operation = payload.get("operationName")
    if isinstance(operation, str) and operation:
        return operation
    query = payload.get("query")
    return operation_name_from_query(query) if isinstance(query, str) else None


async def extract_graphql_operation_name(request: Request) -> str | None:
    """Operation name of a GraphQL request sent over GET or POST, if any."""
    if request.url.path != "/graphql":
        return None

    if request.method == "GET":
        return _operation_from_payload(dict(request.query_params))

    if request.method == "POST":
        body = await request.body()
        if not body:
            return None
        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None
        # Batched requests arrive as a list
        if isinstance(payload, list):
            return "batch" if payload else None
        return _operation_from_payload(payload) if isinstance(payload, dict) else None

    return None


class LoggingContextMiddleware(BaseHTTPMiddleware):
    """Give each request an id, log its start and end, and echo the id back."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(request.headers.get(REQUEST_ID_HEADER))
        started = time.perf_counter()

        try:
            params = None
            if request.query_params:
                params = sanitize_query_params(dict(request.query_params))
                # GraphQL documents and variables sent over GET are never logged
                if request.url.path == "/graphql":
                    for key in ("query", "variables", "extensions"):
                        if key in params:
                            params[key] = "[REDACTED]"

            operation = await extract_graphql_operation_name(request)
            logger.info(
                "Request started",
                method=request.method,
                path=request.url.path,
                query_params=params,
                graphql_operation=operation,
                user_agent=request.headers.get("user-agent"),
                remote_addr=request.client.host if request.client else None,
            )

            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id

            logger.info(
                "Request completed",
                status_code=response.status_code,
                method=request.method,
                path=request.url.path,
                graphql_operation=operation,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            return response

        except Exception as e:
            logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            raise

        finally:
            clear_request_context()
