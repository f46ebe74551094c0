"""
Mail dispatcher: hands composed contact messages to the configured transport.

No retries are attempted; a failed send surfaces as ``DeliveryError`` and the
caller decides what it means for the response.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from functools import lru_cache
from typing import Optional

from app.core.email import send_email
from app.core.email_config import EmailConfig, email_config
from app.core.errors import DeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailMessage:
    sender: str
    recipient: str
    subject: str
    text_body: str
    html_body: str
    reply_to: Optional[str] = None


class MailDispatcher:
    """Sends ``MailMessage`` objects through one resolved transport."""

    def __init__(self, config: EmailConfig):
        self.config = config

    @property
    def provider(self) -> str:
        return self.config.transport.provider.value

    def build_email_message(self, mail: MailMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = mail.sender
        msg["To"] = mail.recipient
        msg["Subject"] = mail.subject
        msg["Date"] = formatdate(localtime=False, usegmt=True)
        msg["Message-ID"] = make_msgid(domain=mail.sender.rpartition("@")[2] or None)
        if mail.reply_to:
            msg["Reply-To"] = mail.reply_to
        msg.set_content(mail.text_body)
        msg.add_alternative(mail.html_body, subtype="html")
        return msg

    async def send(self, mail: MailMessage) -> None:
        transport = self.config.transport
        if transport.is_sandbox and self.config.production:
            logger.error(
                "No mail provider configured; refusing sandbox transport in production",
                extra={"outcome": "delivery_refused", "provider": self.provider},
            )
            raise DeliveryError("no mail provider configured")

        try:
            message = self.build_email_message(mail)
            await send_email(message, transport, self.config.timeout_seconds)
        except Exception as exc:
            logger.error(
                "Mail send via %s failed: %s: %s",
                self.provider,
                type(exc).__name__,
                exc,
                extra={"outcome": "delivery_failed", "provider": self.provider},
            )
            raise DeliveryError(str(exc)) from exc


@lru_cache
def get_mail_dispatcher() -> MailDispatcher:
    """Process-wide dispatcher dependency."""
    return MailDispatcher(email_config)
