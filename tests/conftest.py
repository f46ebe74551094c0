import dataclasses
import os
import tempfile
import time
from typing import List

# Settings are read at import time; keep test runs away from real mail
# providers and from the working directory's log folder.
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="contact-api-logs-"))
for _var in ("SMTP_HOST", "GMAIL_USER", "GMAIL_APP_PASSWORD", "SENDGRID_API_KEY"):
    os.environ.pop(_var, None)

import pytest
from fastapi.testclient import TestClient

from app.api.routes.contact import get_contact_service
from app.core.email_config import email_config
from app.core.errors import DeliveryError
from app.core.rate_limiter import reset_rate_limiter_state
from app.main import app
from app.services.contact_service import ContactService
from app.services.mail_dispatcher import MailDispatcher, MailMessage

# -----------------------------------------------------------------------------
# Mail fixtures
# -----------------------------------------------------------------------------


class RecordingDispatcher(MailDispatcher):
    """Dispatcher that records messages instead of talking SMTP."""

    __test__ = False

    def __init__(self, config, fail_recipients=(), error=None):
        super().__init__(config)
        self.sent: List[MailMessage] = []
        self.attempts: List[MailMessage] = []
        self.fail_recipients = set(fail_recipients)
        self.error = error or DeliveryError("transport down")

    async def send(self, mail: MailMessage) -> None:
        self.attempts.append(mail)
        if mail.recipient in self.fail_recipients:
            raise self.error
        self.sent.append(mail)


@pytest.fixture
def mail_config():
    return dataclasses.replace(email_config, send_confirmation=False)


@pytest.fixture
def make_dispatcher(mail_config):
    def _make(config=None, **kwargs):
        return RecordingDispatcher(config or mail_config, **kwargs)

    return _make


@pytest.fixture
def dispatcher(make_dispatcher):
    return make_dispatcher()


@pytest.fixture(autouse=True)
def _reset_limiter():
    reset_rate_limiter_state()
    yield
    reset_rate_limiter_state()


# -----------------------------------------------------------------------------
# Client Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def make_client():
    """Build a TestClient whose contact service uses the given dispatcher/config."""
    clients = []

    def _make(dispatcher, config=None, **kwargs):
        service = ContactService(dispatcher, config or dispatcher.config)
        app.dependency_overrides[get_contact_service] = lambda: service
        client = TestClient(app, **kwargs)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client, dispatcher):
    return make_client(dispatcher)


# -----------------------------------------------------------------------------
# Payloads
# -----------------------------------------------------------------------------


@pytest.fixture
def now_ms():
    return lambda: int(time.time() * 1000)


@pytest.fixture
def valid_payload(now_ms):
    return {
        "name": "Jo",
        "email": "jo@example.com",
        "message": "Hello there, I need help.",
        "privacy": True,
        "website": "",
        "timestamp": str(now_ms() - 5000),
    }
