"""Login mail rendering and delivery backends."""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from urllib.parse import urlencode

from ..config import Settings, settings
from ..logging import get_logger

logger = get_logger(__name__)


def build_login_link(token: str, base_url: str | None = None) -> str:
    base = (base_url or settings.frontend_base_url).rstrip("/")
    return f"{base}/login?{urlencode({'token': token})}"


def render_login_email(email: str, token: str, config: Settings | None = None) -> EmailMessage:
    config = config or settings
    link = build_login_link(token, config.frontend_base_url)

    message = EmailMessage()
    message["Subject"] = "Your login link"
    message["From"] = config.mail_from
    message["To"] = email
    message.set_content(
        "Open the link below to log in:\n\n"
        f"{link}\n\n"
        f"The link stays valid for {config.login_token_expiry_hours} hours.\n"
        "If you did not ask to log in, ignore this mail.\n"
    )
    return message


def deliver(message: EmailMessage, config: Settings | None = None) -> None:
    """Send ``message`` through the configured mail backend."""
    config = config or settings

    if config.mail_backend == "console":
        logger.info(
            "Mail delivered to console backend",
            to=message["To"],
            subject=message["Subject"],
            body=message.get_content(),
        )
        return

    if config.mail_backend == "smtp":
        with smtplib.SMTP(config.smtp_host, config.smtp_port, timeout=30) as smtp:
            if config.smtp_use_tls:
                smtp.starttls()
            if config.smtp_username:
                smtp.login(config.smtp_username, config.smtp_password or "")
            smtp.send_message(message)
        logger.info("Mail delivered via SMTP", to=message["To"], smtp_host=config.smtp_host)
        return

    raise ValueError(f"Unsupported mail backend: {config.mail_backend}")
