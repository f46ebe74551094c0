"""
Health check endpoint.

Liveness only: reports that the process is up and for how long. It does not
touch the mail transport or the rate limiter.
"""
import time
from datetime import datetime, timezone

from fastapi import APIRouter

from app.schemas.contact import HealthResponse

router = APIRouter(tags=["health"])

_STARTED_AT = time.monotonic()


def get_uptime_seconds() -> float:
    return time.monotonic() - _STARTED_AT


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Returns process status, current time and uptime in seconds.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="OK",
        timestamp=datetime.now(timezone.utc),
        uptime=round(get_uptime_seconds(), 3),
    )
