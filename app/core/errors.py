"""
=============================================================================
ERINNERUNGSLICHT - ERROR HANDLING MODULE
=============================================================================
Error taxonomy of the contact pipeline and the global exception handlers
that turn every failure into one of the public JSON shapes:

    {"success": false, "message": str}                  404 / 429 / 500
    {"success": false, "message": str, "errors": [str]}  400

Features:
- Domain errors carry their own status code and public message
- Spam rejections never reveal which heuristic fired
- Transport failures are logged with their cause, never returned
- Unhandled exceptions log a traceback and return a generic 500

Usage:
    # In main.py
    from app.core.errors import register_exception_handlers
    register_exception_handlers(app)
=============================================================================
"""

import logging
import traceback
from typing import List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error. Please try again later."
NOT_FOUND_MESSAGE = "Endpoint not found"


class ContactError(Exception):
    """Base class for failures of the contact pipeline."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message: str = INTERNAL_ERROR_MESSAGE

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)

    def to_content(self) -> dict:
        return {"success": False, "message": self.public_message}

    def headers(self) -> Optional[dict]:
        return None


class ContactValidationError(ContactError):
    """One or more field constraints are unmet."""

    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Validation failed"

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = list(errors)

    def to_content(self) -> dict:
        return {**super().to_content(), "errors": self.errors}


class SpamRejection(ContactError):
    """A spam heuristic fired. ``trigger`` is for the operator log only."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    public_message = "Request was rejected as spam"

    def __init__(self, trigger: str, detail: Optional[str] = None):
        super().__init__(detail or trigger)
        self.trigger = trigger
        self.detail = detail


class RateLimitExceeded(ContactError):
    """Too many attempts from one address in the current window."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    public_message = "Too many requests. Please try again later."

    def __init__(self, retry_after: int):
        super().__init__()
        self.retry_after = max(1, int(retry_after))

    def headers(self) -> Optional[dict]:
        return {"Retry-After": str(self.retry_after)}


class DeliveryError(ContactError):
    """The mail transport failed to accept a message."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = INTERNAL_ERROR_MESSAGE


def _format_request_error(error: dict) -> str:
    loc = [str(part) for part in error.get("loc", ()) if part != "body"]
    field = ".".join(loc)
    msg = error.get("msg", "invalid value")
    return f"{field}: {msg}" if field else msg


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(ContactError)
    async def contact_error_handler(request: Request, exc: ContactError):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_content(),
            headers=exc.headers(),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Undecodable or mistyped bodies are reported like field validation."""
        errors = [_format_request_error(e) for e in exc.errors()]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "message": ContactValidationError.public_message,
                "errors": errors,
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = NOT_FOUND_MESSAGE
        else:
            message = str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all handler for unhandled exceptions.

        - Logs the full traceback server-side
        - Returns a generic error message to prevent info leakage
        - In debug mode, includes the exception type
        """
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}:\n"
            f"{traceback.format_exc()}"
        )

        content = {"success": False, "message": INTERNAL_ERROR_MESSAGE}
        if settings.DEBUG:
            content["error_type"] = type(exc).__name__
        return JSONResponse(status_code=500, content=content)
