from __future__ import annotations

import strawberry

from ...auth.factory import get_auth_adapter_cached
from ...auth.provisioning import ensure_user_for_email, normalize_email
from ...database.connection import get_async_session
from ...logging import get_logger
from ...workers.actors import send_login_email

logger = get_logger(__name__)


async def request_login(info: strawberry.Info, email: str) -> bool:
    """
    Register or log in by email.

    Finds or creates the user, issues a login token and queues a mail carrying
    the login link. The token itself is never returned to the caller.
    """
    email = normalize_email(email)

    async with get_async_session() as session:
        user, created = await ensure_user_for_email(session, email)
        user_id = user.id

    adapter = get_auth_adapter_cached()
    token = await adapter.issue_token(user_id, {"email": email})

    message = send_login_email.send(email, token)
    logger.info(
        "Login mail queued",
        user_id=str(user_id),
        created=created,
        message_id=message.message_id,
    )
    return True
