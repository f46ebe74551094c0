"""
=============================================================================
ERINNERUNGSLICHT - MAIL TRANSPORT CONFIGURATION
=============================================================================

Resolves, once per process, which mail transport the contact form uses and
which addresses it sends from and to. Selection is a pure function of the
settings, in priority order:

    1. Custom SMTP server      (SMTP_HOST, SMTP_PORT, SMTP_SECURE, SMTP_USER, SMTP_PASS)
    2. Gmail with app password (GMAIL_USER, GMAIL_APP_PASSWORD)
    3. SendGrid SMTP relay     (SENDGRID_API_KEY)
    4. Ethereal sandbox        (nothing configured; never used in production)

Usage:
    from app.core.email_config import email_config

    transport = email_config.transport
    recipient = email_config.to_email
=============================================================================
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import SecretStr

from app.core.config import Settings, settings


class MailProvider(str, Enum):
    SMTP = "smtp"
    GMAIL = "gmail"
    SENDGRID = "sendgrid"
    ETHEREAL = "ethereal"


GMAIL_HOST = "smtp.gmail.com"
GMAIL_PORT = 465
SENDGRID_HOST = "smtp.sendgrid.net"
SENDGRID_PORT = 587
SENDGRID_USER = "apikey"
ETHEREAL_HOST = "smtp.ethereal.email"
ETHEREAL_PORT = 587
ETHEREAL_USER = "ethereal.user@ethereal.email"
ETHEREAL_PASS = "ethereal.pass"


@dataclass(frozen=True)
class MailTransportConfig:
    """Connection parameters of one SMTP-speaking mail provider."""

    provider: MailProvider
    host: str
    port: int
    use_ssl: bool = False
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)

    @property
    def is_sandbox(self) -> bool:
        return self.provider is MailProvider.ETHEREAL


@dataclass(frozen=True)
class EmailConfig:
    """Everything the mail dispatcher and the contact endpoint need to send."""

    transport: MailTransportConfig
    from_email: str
    to_email: str
    send_confirmation: bool
    timeout_seconds: float
    site_name: str
    site_url: str
    contact_address: str
    production: bool = False


def _secret(value: Optional[SecretStr]) -> Optional[str]:
    return value.get_secret_value() if value else None


def resolve_mail_transport(config: Settings) -> MailTransportConfig:
    """Pick the first fully configured provider."""
    if config.SMTP_HOST:
        return MailTransportConfig(
            provider=MailProvider.SMTP,
            host=config.SMTP_HOST,
            port=config.SMTP_PORT,
            use_ssl=config.SMTP_SECURE,
            username=config.SMTP_USER,
            password=_secret(config.SMTP_PASS),
        )

    if config.GMAIL_USER and config.GMAIL_APP_PASSWORD:
        return MailTransportConfig(
            provider=MailProvider.GMAIL,
            host=GMAIL_HOST,
            port=GMAIL_PORT,
            use_ssl=True,
            username=config.GMAIL_USER,
            password=_secret(config.GMAIL_APP_PASSWORD),
        )

    if config.SENDGRID_API_KEY:
        return MailTransportConfig(
            provider=MailProvider.SENDGRID,
            host=SENDGRID_HOST,
            port=SENDGRID_PORT,
            username=SENDGRID_USER,
            password=_secret(config.SENDGRID_API_KEY),
        )

    return MailTransportConfig(
        provider=MailProvider.ETHEREAL,
        host=ETHEREAL_HOST,
        port=ETHEREAL_PORT,
        username=ETHEREAL_USER,
        password=ETHEREAL_PASS,
    )


def build_email_config(config: Settings) -> EmailConfig:
    return EmailConfig(
        transport=resolve_mail_transport(config),
        from_email=config.FROM_EMAIL,
        to_email=config.TO_EMAIL,
        send_confirmation=config.SEND_CONFIRMATION,
        timeout_seconds=config.MAIL_SEND_TIMEOUT_SECONDS,
        site_name=config.SITE_NAME,
        site_url=config.SITE_URL,
        contact_address=config.CONTACT_ADDRESS,
        production=config.ENVIRONMENT == "production",
    )


# Singleton instance - resolved once at import, never re-read per request
email_config = build_email_config(settings)
