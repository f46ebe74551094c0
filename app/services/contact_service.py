from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from app.core.email_config import EmailConfig
from app.core.errors import DeliveryError
from app.schemas.contact import ContactSubmission
from app.services.mail_dispatcher import MailDispatcher, MailMessage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestMeta:
    """Origin of a submission; only ever written into the operator mail."""

    client_ip: str
    user_agent: Optional[str]
    received_at: datetime
    request_id: Optional[str] = None


def _header_text(value: str) -> str:
    # Header values may not contain line breaks.
    return " ".join(value.split())


def _html_text(value: str) -> str:
    return html.escape(value).replace("\n", "<br>")


class ContactService:
    """Composes and delivers the mails produced by an accepted submission."""

    def __init__(self, dispatcher: MailDispatcher, config: EmailConfig):
        self.dispatcher = dispatcher
        self.config = config

    def build_notification(
        self, submission: ContactSubmission, meta: RequestMeta
    ) -> MailMessage:
        name = submission.name.strip()
        email = submission.email.strip()
        message = submission.message.strip()
        user_agent = meta.user_agent or "unknown"
        received = meta.received_at.astimezone(timezone.utc)

        text_body = "\n".join(
            [
                f"Name: {name}",
                f"Email: {email}",
                f"IP address: {meta.client_ip}",
                f"User-Agent: {user_agent}",
                f"Timestamp: {received.isoformat()}",
                "",
                "Message:",
                message,
                "",
                "---",
                f"This email was sent via the contact form on {self.config.site_url}.",
            ]
        )
        html_body = (
            "<h2>New contact request</h2>"
            f"<p><strong>Name:</strong> {_html_text(name)}</p>"
            f'<p><strong>Email:</strong> <a href="mailto:{html.escape(email, quote=True)}">'
            f"{_html_text(email)}</a></p>"
            f"<p><strong>IP address:</strong> {html.escape(meta.client_ip)}</p>"
            f"<p><strong>Timestamp:</strong> {received.strftime('%Y-%m-%d %H:%M:%S UTC')}</p>"
            "<h3>Message:</h3>"
            f"<p>{_html_text(message)}</p>"
            "<hr>"
            f"<p><small>This email was sent via the contact form on "
            f"{html.escape(self.config.site_url)}.</small></p>"
        )
        return MailMessage(
            sender=self.config.from_email,
            recipient=self.config.to_email,
            subject=f"Contact request from {_header_text(name)}",
            text_body=text_body,
            html_body=html_body,
            reply_to=email,
        )

    def build_confirmation(self, submission: ContactSubmission) -> MailMessage:
        name = submission.name.strip()
        message = submission.message.strip()
        site = self.config.site_name
        contact = self.config.contact_address
        url = self.config.site_url

        text_body = "\n".join(
            [
                f"Dear {name},",
                "",
                "thank you for your message. We have received your request "
                "and will get back to you within 24 hours.",
                "",
                "Your message:",
                f'"{message}"',
                "",
                "Kind regards",
                f"The {site} team",
                "",
                "---",
                site,
                f"Email: {contact}",
                f"Web: {url}",
            ]
        )
        html_body = (
            "<h2>Thank you for your message</h2>"
            f"<p>Dear {_html_text(name)},</p>"
            "<p>thank you for your message. We have received your request "
            "and will get back to you within 24 hours.</p>"
            "<h3>Your message:</h3>"
            '<blockquote style="border-left: 3px solid #2c3e50; padding-left: 1rem; '
            'margin: 1rem 0; color: #666;">'
            f"{_html_text(message)}"
            "</blockquote>"
            f"<p>Kind regards<br>The {html.escape(site)} team</p>"
            "<hr>"
            f"<p><small>{html.escape(site)}<br>"
            f'Email: <a href="mailto:{html.escape(contact, quote=True)}">{html.escape(contact)}</a><br>'
            f'Web: <a href="{html.escape(url, quote=True)}">{html.escape(url)}</a></small></p>'
        )
        return MailMessage(
            sender=self.config.from_email,
            recipient=submission.email.strip(),
            subject=_header_text(f"Your message has been received - {site}"),
            text_body=text_body,
            html_body=html_body,
        )

    async def notify_operator(
        self, submission: ContactSubmission, meta: RequestMeta
    ) -> None:
        """Send the operator notification; ``DeliveryError`` propagates."""
        await self.dispatcher.send(self.build_notification(submission, meta))

    async def send_confirmation(
        self, submission: ContactSubmission, request_id: Optional[str] = None
    ) -> bool:
        """Send the submitter confirmation. Failures are logged, never raised."""
        try:
            await self.dispatcher.send(self.build_confirmation(submission))
        except DeliveryError:
            logger.warning(
                "Confirmation email could not be sent id=%s",
                request_id,
                extra={"outcome": "confirmation_failed", "request_id": request_id},
            )
            return False
        logger.info(
            "Confirmation email sent id=%s",
            request_id,
            extra={"outcome": "confirmation_sent", "request_id": request_id},
        )
        return True
