"""
Contact form endpoint.

Pipeline per request: rate limit -> field validation -> spam heuristics ->
operator notification -> response. The optional confirmation to the
submitter is handed to a background task once the operator has been
notified, so its outcome never changes the response.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from uuid import uuid4

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status

from app.core.config import settings
from app.core.email_config import email_config
from app.core.errors import ContactValidationError, SpamRejection
from app.core.rate_limiter import check_contact_rate_limit
from app.schemas.contact import ContactResponse, ContactSubmission
from app.schemas.error import ERROR_RESPONSES
from app.services.contact_service import ContactService, RequestMeta
from app.services.mail_dispatcher import MailDispatcher, get_mail_dispatcher
from app.services.spam_filter import SpamFilter
from app.services.validation import validate_submission

logger = logging.getLogger(__name__)

router = APIRouter()

SUCCESS_MESSAGE = "Message sent successfully"


@lru_cache
def get_spam_filter() -> SpamFilter:
    """Spam heuristics configured from settings, built once per process."""
    return SpamFilter.from_settings(settings)


def get_contact_service(
    dispatcher: MailDispatcher = Depends(get_mail_dispatcher),
) -> ContactService:
    return ContactService(dispatcher, email_config)


@router.post(
    "/contact",
    response_model=ContactResponse,
    status_code=status.HTTP_200_OK,
    summary="Submit the contact form",
    description="Validates a contact submission, screens it for spam and "
    "forwards it to the site operator by email. No authentication required.",
    responses={code: ERROR_RESPONSES[code] for code in (400, 429, 500)},
)
async def submit_contact(
    submission: ContactSubmission,
    request: Request,
    background_tasks: BackgroundTasks,
    client_ip: str = Depends(check_contact_rate_limit),
    spam_filter: SpamFilter = Depends(get_spam_filter),
    service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    request_id = getattr(request.state, "request_id", None) or uuid4().hex
    received_at = datetime.now(timezone.utc)

    errors = validate_submission(submission)
    if errors:
        logger.info(
            "Contact submission invalid id=%s ip=%s errors=%d",
            request_id,
            client_ip,
            len(errors),
            extra={"outcome": "invalid", "client_ip": client_ip, "request_id": request_id},
        )
        raise ContactValidationError(errors)

    verdict = spam_filter.evaluate(submission, int(received_at.timestamp() * 1000))
    if not verdict.accepted:
        logger.warning(
            "Contact submission rejected as spam id=%s ip=%s trigger=%s (%s)",
            request_id,
            client_ip,
            verdict.trigger.value,
            verdict.detail,
            extra={
                "outcome": "spam_rejected",
                "client_ip": client_ip,
                "request_id": request_id,
                "trigger": verdict.trigger.value,
            },
        )
        raise SpamRejection(verdict.trigger.value, verdict.detail)

    meta = RequestMeta(
        client_ip=client_ip,
        user_agent=request.headers.get("user-agent"),
        received_at=received_at,
        request_id=request_id,
    )
    await service.notify_operator(submission, meta)

    if service.config.send_confirmation:
        background_tasks.add_task(service.send_confirmation, submission, request_id)

    logger.info(
        "AUDIT: Contact form submission accepted id=%s ip=%s at=%s",
        request_id,
        client_ip,
        received_at.isoformat(),
        extra={"outcome": "accepted", "client_ip": client_ip, "request_id": request_id},
    )

    return ContactResponse(success=True, message=SUCCESS_MESSAGE)
