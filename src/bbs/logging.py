"""
Logging setup for the BBS backend, built on structlog.

Every event carries the request id and the authenticated user id when they
are known. Addresses under ``to`` / ``email`` keys are masked to their domain
so login traffic does not leak mailbox names into the logs.
"""

import base64
import logging
import secrets
import sys
import time
from contextvars import ContextVar
from typing import Any

import structlog

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_ctx: ContextVar[str | None] = ContextVar("user_id", default=None)

MASKED_KEYS = ("to", "email")

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("sqlalchemy.engine", "dramatiq.broker", "uvicorn.access")


def add_request_context(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    _ = logger, method_name

    request_id = request_id_ctx.get()
    if request_id:
        event_dict.setdefault("request_id", request_id)
    user_id = user_id_ctx.get()
    if user_id:
        event_dict.setdefault("user_id", user_id)
    return event_dict


def mask_address(address: str) -> str:
    """``alice@example.com`` -> ``a***@example.com``."""
    local, sep, domain = address.partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"


def mask_addresses(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    _ = logger, method_name

    for key in MASKED_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str):
            event_dict[key] = mask_address(value)
    return event_dict


def configure_logging(debug: bool = False, level: str | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        debug: Human-readable console output instead of JSON lines, at DEBUG level.
        level: Explicit level name; defaults to ``BBS_LOG_LEVEL``.
    """
    if debug:
        log_level = logging.DEBUG
    else:
        from .config import settings

        log_level = logging.getLevelName((level or settings.log_level).upper())
        if not isinstance(log_level, int):
            log_level = logging.INFO

    logging.basicConfig(level=log_level, stream=sys.stdout, format="%(message)s", force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_request_context,
        mask_addresses,
        structlog.processors.TimeStamper(fmt="ISO", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if debug:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        # Tag names and default titles are often not ASCII
        processors.append(structlog.processors.JSONRenderer(ensure_ascii=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def generate_request_id() -> str:
    """14-char urlsafe id: microsecond timestamp plus 2 random bytes."""
    timestamp_us = int(time.time() * 1_000_000)
    raw = timestamp_us.to_bytes(8, byteorder="big") + secrets.token_bytes(2)
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def set_request_context(request_id: str | None = None) -> str:
    """Start a request scope and return its id."""
    request_id = request_id or generate_request_id()
    request_id_ctx.set(request_id)
    user_id_ctx.set(None)
    return request_id


def set_user_context(user_id: str | None) -> None:
    user_id_ctx.set(user_id)


def clear_request_context() -> None:
    request_id_ctx.set(None)
    user_id_ctx.set(None)
