"""Client-side contact form controller."""
import json
from urllib.parse import unquote

import httpx
import pytest

from app.client.contact_form import (
    ContactForm,
    OutcomeKind,
    encode_uri_component,
)
from app.client.messages import resolve_language, translate


class FakeClock:
    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def _client(handler):
    return httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="http://testserver"
    )


def _json_handler(status_code, body, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=body)

    return handler


def _filled_form(clock, handler, language="en", **kwargs):
    form = ContactForm(
        http_client=_client(handler), clock=clock, language=language, **kwargs
    )
    form.set_value("name", "Jo")
    form.set_value("email", "jo@example.com")
    form.set_value("message", "Hello there, I need help.")
    form.set_value("privacy", True)
    clock.now += 5
    return form


@pytest.mark.asyncio
async def test_successful_submission_resets_form(clock):
    seen = []
    form = _filled_form(clock, _json_handler(200, {"success": True, "message": "ok"}, seen))

    outcome = await form.submit()

    assert outcome.kind is OutcomeKind.SUCCESS
    assert outcome.message == translate("success", "en")
    assert form.values["name"] == ""
    assert form.values["privacy"] is False
    assert form.submit_enabled is True

    payload = json.loads(seen[0].content)
    assert seen[0].url.path == "/api/contact"
    assert payload["name"] == "Jo"
    assert payload["privacy"] is True
    assert payload["website"] == ""
    assert payload["timestamp"] == str(int(1_700_000_000.0 * 1000))


@pytest.mark.asyncio
async def test_server_validation_errors_are_listed(clock):
    body = {"success": False, "message": "Validation failed", "errors": ["A valid email address is required"]}
    form = _filled_form(clock, _json_handler(400, body))

    outcome = await form.submit()

    assert outcome.kind is OutcomeKind.ERROR
    assert outcome.status_code == 400
    assert outcome.message == translate("validation", "en")
    assert outcome.server_errors == ["A valid email address is required"]
    assert form.values["name"] == "Jo"


@pytest.mark.asyncio
async def test_rate_limited_response(clock):
    form = _filled_form(clock, _json_handler(429, {"success": False, "message": "Too many"}))

    outcome = await form.submit()

    assert outcome.kind is OutcomeKind.ERROR
    assert outcome.message == translate("rate_limited", "en")


@pytest.mark.asyncio
async def test_server_error_is_not_a_fallback(clock):
    form = _filled_form(clock, _json_handler(500, {"success": False, "message": "x"}))

    outcome = await form.submit()

    assert outcome.kind is OutcomeKind.ERROR
    assert outcome.mailto_url is None
    assert outcome.message == translate("submit", "en")


@pytest.mark.asyncio
async def test_non_json_error_body(clock):
    form = _filled_form(clock, lambda request: httpx.Response(502, text="Bad gateway"))

    outcome = await form.submit()

    assert outcome.kind is OutcomeKind.ERROR
    assert outcome.status_code == 502


@pytest.mark.asyncio
async def test_unreachable_endpoint_offers_mailto(clock):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    form = _filled_form(clock, handler, recipient="info@erinnerungslicht.de")

    outcome = await form.submit()

    assert outcome.kind is OutcomeKind.FALLBACK
    assert outcome.message == translate("fallback", "en")
    assert outcome.mailto_label == "Open email"
    assert outcome.mailto_url.startswith("mailto:info@erinnerungslicht.de?subject=")
    assert "Contact%20request%20from%20Jo" in outcome.mailto_url
    body = unquote(outcome.mailto_url.split("&body=", 1)[1])
    assert "Hello there, I need help." in body
    assert form.submit_enabled is True
    assert form.values["name"] == "Jo"


@pytest.mark.asyncio
async def test_invalid_form_sends_nothing_and_focuses_first_error(clock):
    seen = []
    form = ContactForm(http_client=_client(_json_handler(200, {"success": True}, seen)), clock=clock, language="en")
    form.set_value("name", "Jo")
    form.set_value("email", "bad-email")
    clock.now += 5

    outcome = await form.submit()

    assert outcome.kind is OutcomeKind.INVALID
    assert outcome.focus_field == "email"
    assert set(outcome.field_errors) == {"email", "message", "privacy"}
    assert outcome.field_errors["message"] == "This field is required."
    assert seen == []


@pytest.mark.asyncio
async def test_honeypot_blocks_submission(clock):
    seen = []
    form = _filled_form(clock, _json_handler(200, {"success": True}, seen))
    form.set_value("website", "http://spam.example")

    outcome = await form.submit()

    assert outcome.kind is OutcomeKind.INVALID
    assert outcome.message == translate("spam", "en")
    assert seen == []


@pytest.mark.asyncio
async def test_too_fast_submission_blocked(clock):
    seen = []
    form = _filled_form(clock, _json_handler(200, {"success": True}, seen))
    form.rendered_at_ms = int(clock() * 1000) - 1000

    outcome = await form.submit()

    assert outcome.kind is OutcomeKind.INVALID
    assert seen == []


@pytest.mark.asyncio
async def test_second_submission_while_in_flight_is_busy(clock):
    form = _filled_form(clock, _json_handler(200, {"success": True}))
    form.submit_enabled = False

    outcome = await form.submit()

    assert outcome.kind is OutcomeKind.BUSY


@pytest.mark.asyncio
async def test_submit_disabled_while_request_in_flight(clock):
    states = []
    form = None

    def handler(request):
        states.append(form.submit_enabled)
        return httpx.Response(200, json={"success": True, "message": "ok"})

    form = _filled_form(clock, handler)
    await form.submit()

    assert states == [False]
    assert form.submit_enabled is True


@pytest.mark.asyncio
async def test_messages_are_announced(clock):
    announced = []
    form = _filled_form(
        clock,
        _json_handler(200, {"success": True, "message": "ok"}),
        language="de",
        announce=announced.append,
    )

    await form.submit()

    assert announced == [translate("success", "de")]
    assert form.status_message == announced[0]


def test_field_validation_messages_are_localized(clock):
    form = ContactForm(clock=clock, language="de")
    form.set_value("name", "A")

    assert form.validate_field("name") == "Mindestens 2 Zeichen erforderlich."
    assert form.validate_field("privacy") == "Sie müssen dieser Bedingung zustimmen."


def test_input_clears_field_error(clock):
    form = ContactForm(clock=clock, language="en")
    form.validate_field("email")
    assert "email" in form.field_errors

    form.set_value("email", "j")

    assert "email" not in form.field_errors


def test_hidden_fields_html(clock):
    form = ContactForm(clock=clock)
    rendered = form.hidden_fields_html()

    assert 'name="website"' in rendered
    assert 'tabindex="-1"' in rendered
    assert 'aria-hidden="true"' in rendered
    assert 'autocomplete="off"' in rendered
    assert f'name="timestamp" value="{form.rendered_at_ms}"' in rendered


@pytest.mark.parametrize(
    "language,expected",
    [("de", "de"), ("de-AT", "de"), ("EN", "en"), ("fr", "en"), ("", "de")],
)
def test_resolve_language(language, expected):
    assert resolve_language(language) == expected


def test_encode_uri_component_matches_javascript():
    assert encode_uri_component("Hi there & bye!") == "Hi%20there%20%26%20bye!"
    assert encode_uri_component("a/b?c=d") == "a%2Fb%3Fc%3Dd"
    assert encode_uri_component("Grüße") == "Gr%C3%BC%C3%9Fe"


@pytest.mark.asyncio
async def test_fallback_link_label_is_localized(clock):
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    form = _filled_form(clock, handler, language="de")

    outcome = await form.submit()

    assert outcome.kind is OutcomeKind.FALLBACK
    assert outcome.mailto_label == "E-Mail öffnen"
    assert "Kontaktanfrage%20von%20Jo" in outcome.mailto_url
