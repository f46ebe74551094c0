from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContactSubmission(BaseModel):
    """Raw contact form payload.

    Field constraints live in ``app.services.validation``, which reports
    every violated rule as an ordered message list.
    """

    model_config = ConfigDict(str_strip_whitespace=False, extra="ignore")

    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None
    privacy: bool = False
    website: Optional[str] = Field(None, description="Honeypot, must stay empty")
    timestamp: Optional[str] = Field(
        None, description="Epoch milliseconds at which the form was rendered"
    )

    @field_validator("privacy", mode="before")
    @classmethod
    def coerce_privacy(cls, v: Any) -> Any:
        # Unchecked checkboxes are simply absent; empty strings mean "not accepted".
        if v is None or v == "":
            return False
        return v

    @field_validator("timestamp", mode="before")
    @classmethod
    def stringify_timestamp(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v))
        return v


class ContactResponse(BaseModel):
    success: bool = True
    message: str


class HealthResponse(BaseModel):
    status: str = "OK"
    timestamp: datetime
    uptime: float = Field(..., description="Process uptime in seconds")
