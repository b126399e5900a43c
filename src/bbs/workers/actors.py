"""Dramatiq actors for background mail delivery."""

from __future__ import annotations

import dramatiq
from dramatiq import actor
from dramatiq.brokers.redis import RedisBroker

from ..config import Settings
from ..logging import get_logger
from ..mail.sender import deliver, render_login_email

logger = get_logger(__name__)


settings = Settings()
broker = RedisBroker(url=settings.redis_url)
dramatiq.set_broker(broker)


@actor(queue_name=settings.mail_queue_name, max_retries=5, min_backoff=5000, max_backoff=60000)
def send_login_email(email: str, token: str) -> None:
    """Render and deliver a login mail.

    Retry policy:
    - max_retries: 5 attempts
    - min_backoff: 5 seconds
    - max_backoff: 60 seconds
    """
    logger.info("Sending login mail", mail_backend=settings.mail_backend)
    try:
        deliver(render_login_email(email, token, settings), settings)
    except Exception as e:
        logger.error("Login mail delivery failed", error=str(e))
        raise
