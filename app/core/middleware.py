import logging
import time
import uuid

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("contact_api.requests")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add X-Request-ID header for tracing.

    If the client sends X-Request-ID, it is preserved.
    Otherwise, a new UUID is generated.

    The request ID is:
    - Available in request.state.request_id for the route handlers
    - Bound to the structlog context, so every log line of the request carries it
    - Returned in response headers for client correlation
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "REQUEST | method=%s | path=%s | status=%s | %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        response.headers["X-Request-ID"] = request_id
        return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared body exceeds ``max_bytes`` with 413."""

    def __init__(self, app, max_bytes: int):
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next):
        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > self.max_bytes:
            return JSONResponse(
                status_code=413,
                content={"success": False, "message": "Request body too large"},
            )
        return await call_next(request)
