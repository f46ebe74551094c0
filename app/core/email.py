from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from app.core.email_config import MailTransportConfig

logger = logging.getLogger(__name__)


def _send_email_sync(
    message: EmailMessage, transport: MailTransportConfig, timeout: float
) -> None:
    if transport.use_ssl:
        server = smtplib.SMTP_SSL(transport.host, transport.port, timeout=timeout)
    else:
        server = smtplib.SMTP(transport.host, transport.port, timeout=timeout)

    with server:
        if not transport.use_ssl:
            server.ehlo()
            if server.has_extn("starttls"):
                server.starttls()
                server.ehlo()
        if transport.username and transport.password:
            server.login(transport.username, transport.password)
        server.send_message(message)


async def send_email(
    message: EmailMessage, transport: MailTransportConfig, timeout: float
) -> None:
    """Hand ``message`` to the SMTP transport in a worker thread.

    A single attempt, bounded by ``timeout``; failures propagate unchanged.
    """
    await asyncio.wait_for(
        asyncio.to_thread(_send_email_sync, message, transport, timeout),
        timeout=timeout,
    )
    logger.debug("Email handed to %s transport", transport.provider.value)
