"""
Response schemas shared by all endpoints.

Every response of the contact API is an object with a boolean ``success``
and a human-readable ``message``; validation failures add ``errors``.
"""
from typing import List

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Failure envelope used for 404, 429 and 500 responses."""

    success: bool = Field(False, description="Always false for errors")
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Too many requests. Please try again later."],
    )


class ValidationErrorResponse(ErrorResponse):
    """400 response listing every violated field rule, in rule order."""

    errors: List[str] = Field(
        default_factory=list,
        description="Ordered list of validation messages",
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": False,
                "message": "Validation failed",
                "errors": [
                    "Name is required (at least 2 characters)",
                    "A valid email address is required",
                ],
            }
        }
    }


# Common error responses for OpenAPI documentation
ERROR_RESPONSES = {
    400: {"model": ValidationErrorResponse, "description": "Validation Error"},
    404: {"model": ErrorResponse, "description": "Not Found"},
    429: {"model": ErrorResponse, "description": "Rate Limited or Rejected as Spam"},
    500: {"model": ErrorResponse, "description": "Internal Server Error"},
}
