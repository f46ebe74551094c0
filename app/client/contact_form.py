"""
Client-side controller of the contact form.

Mirrors the server's field rules and spam heuristics for immediate feedback,
submits the form as JSON and, when the endpoint cannot be reached, offers a
pre-filled ``mailto:`` link instead of a dead end.

Usage:
    form = ContactForm(base_url="https://erinnerungslicht.de", language="en")
    form.set_value("name", "Jo")
    ...
    outcome = await form.submit()
"""
from __future__ import annotations

import html
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional
from urllib.parse import quote

import httpx

from app.client.messages import resolve_language, translate
from app.services.validation import MESSAGE_MIN_LENGTH, NAME_MIN_LENGTH, is_valid_email

logger = logging.getLogger(__name__)

HONEYPOT_FIELD = "website"
TIMESTAMP_FIELD = "timestamp"
MIN_FILL_MILLISECONDS = 3000


class FieldKind(str, Enum):
    TEXT = "text"
    EMAIL = "email"
    CHECKBOX = "checkbox"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind = FieldKind.TEXT
    required: bool = True
    min_length: Optional[int] = None


CONTACT_FIELDS = (
    FieldSpec("name", min_length=NAME_MIN_LENGTH),
    FieldSpec("email", kind=FieldKind.EMAIL),
    FieldSpec("message", min_length=MESSAGE_MIN_LENGTH),
    FieldSpec("privacy", kind=FieldKind.CHECKBOX),
)


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    INVALID = "invalid"
    ERROR = "error"
    FALLBACK = "fallback"
    BUSY = "busy"


@dataclass
class FormOutcome:
    kind: OutcomeKind
    message: Optional[str] = None
    field_errors: Dict[str, str] = field(default_factory=dict)
    server_errors: List[str] = field(default_factory=list)
    mailto_url: Optional[str] = None
    mailto_label: Optional[str] = None
    focus_field: Optional[str] = None
    status_code: Optional[int] = None


def encode_uri_component(value: str) -> str:
    """Percent-encode like JavaScript's ``encodeURIComponent``."""
    return quote(value, safe="!*'()")


class ContactForm:
    """One rendered contact form and its submission state."""

    def __init__(
        self,
        endpoint: str = "/api/contact",
        *,
        base_url: str = "",
        recipient: str = "info@erinnerungslicht.de",
        language: str = "de",
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        clock: Callable[[], float] = time.time,
        announce: Optional[Callable[[str], None]] = None,
    ):
        self.endpoint = endpoint
        self.base_url = base_url
        self.recipient = recipient
        self.language = resolve_language(language)
        self.timeout = timeout
        self._http_client = http_client
        self._clock = clock
        self._announce = announce

        self.values: Dict[str, object] = {}
        self.field_errors: Dict[str, str] = {}
        self.status_message: Optional[str] = None
        self.submit_enabled = True

        # Anti-spam metadata is fixed at render time so the timing check
        # measures how long the visitor actually spent on the form.
        self.honeypot = ""
        self.rendered_at_ms = self._now_ms()
        self.reset()

    # ------------------------------------------------------------------
    # Rendering & input
    # ------------------------------------------------------------------

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def hidden_fields_html(self) -> str:
        """Honeypot input (hidden from people and assistive tech) and render timestamp."""
        return (
            f'<input type="text" name="{HONEYPOT_FIELD}" class="honeypot" '
            f'tabindex="-1" aria-hidden="true" autocomplete="off" '
            f'value="{html.escape(self.honeypot, quote=True)}">'
            f'<input type="hidden" name="{TIMESTAMP_FIELD}" value="{self.rendered_at_ms}">'
        )

    def set_value(self, name: str, value: object) -> None:
        if name == HONEYPOT_FIELD:
            self.honeypot = str(value or "")
            return
        self.values[name] = value
        self.clear_field_error(name)

    def reset(self) -> None:
        self.values = {spec.name: (False if spec.kind is FieldKind.CHECKBOX else "") for spec in CONTACT_FIELDS}
        self.field_errors = {}

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _spec(self, name: str) -> FieldSpec:
        for spec in CONTACT_FIELDS:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def validate_field(self, name: str) -> Optional[str]:
        spec = self._spec(name)
        raw = self.values.get(name)
        error: Optional[str] = None

        if spec.kind is FieldKind.CHECKBOX:
            if spec.required and not raw:
                error = translate("checkbox", self.language)
        else:
            value = str(raw or "").strip()
            if spec.required and not value:
                error = translate("required", self.language)
            elif spec.kind is FieldKind.EMAIL and not is_valid_email(value):
                error = translate("email", self.language)
            elif spec.min_length and len(value) < spec.min_length:
                error = translate("minlength", self.language, min_length=spec.min_length)

        if error:
            self.field_errors[name] = error
        else:
            self.clear_field_error(name)
        return error

    def clear_field_error(self, name: str) -> None:
        self.field_errors.pop(name, None)

    def check_spam_protection(self) -> bool:
        if self.honeypot:
            logger.warning("Honeypot triggered")
            return False
        if self._now_ms() - self.rendered_at_ms < MIN_FILL_MILLISECONDS:
            logger.warning("Form submitted too quickly")
            return False
        return True

    def validate(self) -> bool:
        results = [self.validate_field(spec.name) for spec in CONTACT_FIELDS]
        return all(error is None for error in results)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def payload(self) -> dict:
        return {
            "name": str(self.values.get("name") or ""),
            "email": str(self.values.get("email") or ""),
            "message": str(self.values.get("message") or ""),
            "privacy": bool(self.values.get("privacy")),
            HONEYPOT_FIELD: self.honeypot,
            TIMESTAMP_FIELD: str(self.rendered_at_ms),
        }

    def mailto_url(self) -> str:
        name = str(self.values.get("name") or "")
        email = str(self.values.get("email") or "")
        message = str(self.values.get("message") or "")
        subject = translate("mail_subject", self.language, name=name)
        body = translate("mail_body", self.language, name=name, email=email, message=message)
        return (
            f"mailto:{self.recipient}"
            f"?subject={encode_uri_component(subject)}"
            f"&body={encode_uri_component(body)}"
        )

    def _show(self, message: str) -> str:
        self.status_message = message
        if self._announce is not None:
            self._announce(message)
        return message

    async def _post(self, payload: dict) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(self.endpoint, json=payload)
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
            return await client.post(self.endpoint, json=payload)

    def _interpret(self, response: httpx.Response) -> FormOutcome:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_success and body.get("success"):
            self.reset()
            return FormOutcome(
                OutcomeKind.SUCCESS,
                message=self._show(translate("success", self.language)),
                status_code=response.status_code,
            )

        server_errors: List[str] = []
        if response.status_code == 400:
            key = "validation"
            server_errors = [str(e) for e in body.get("errors") or []]
        elif response.status_code == 429:
            key = "rate_limited"
        else:
            key = "submit"

        logger.warning(
            "Contact endpoint rejected submission status=%s", response.status_code
        )
        return FormOutcome(
            OutcomeKind.ERROR,
            message=self._show(translate(key, self.language)),
            server_errors=server_errors,
            status_code=response.status_code,
        )

    async def submit(self) -> FormOutcome:
        """Validate locally, then send; one submission in flight per form."""
        if not self.submit_enabled:
            return FormOutcome(OutcomeKind.BUSY)

        fields_valid = self.validate()
        spam_ok = self.check_spam_protection()
        if not (fields_valid and spam_ok):
            message = None if spam_ok else self._show(translate("spam", self.language))
            focus = next(
                (spec.name for spec in CONTACT_FIELDS if spec.name in self.field_errors),
                None,
            )
            return FormOutcome(
                OutcomeKind.INVALID,
                message=message,
                field_errors=dict(self.field_errors),
                focus_field=focus,
            )

        self.submit_enabled = False
        try:
            response = await self._post(self.payload())
        except httpx.TransportError as exc:
            logger.warning("Contact endpoint unreachable: %s", type(exc).__name__)
            return FormOutcome(
                OutcomeKind.FALLBACK,
                message=self._show(translate("fallback", self.language)),
                mailto_url=self.mailto_url(),
                mailto_label=translate("fallback_button", self.language),
            )
        else:
            return self._interpret(response)
        finally:
            self.submit_enabled = True
