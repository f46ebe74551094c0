"""Field validation for contact submissions.

Rules are independent and all of them are evaluated, in declaration order;
each contributes at most one message. An empty result means the submission
is structurally valid.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence, Union

from app.schemas.contact import ContactSubmission

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

NAME_MIN_LENGTH = 2
MESSAGE_MIN_LENGTH = 10


@dataclass(frozen=True)
class MinLengthRule:
    """Field must be present and at least ``min_length`` chars once trimmed."""

    field: str
    min_length: int
    message: str

    def check(self, submission: ContactSubmission) -> Optional[str]:
        value = getattr(submission, self.field)
        if not value or len(value.strip()) < self.min_length:
            return self.message
        return None


@dataclass(frozen=True)
class PatternRule:
    """Field must be present and match ``pattern`` in full."""

    field: str
    pattern: Pattern[str]
    message: str

    def check(self, submission: ContactSubmission) -> Optional[str]:
        value = getattr(submission, self.field)
        if not value or not self.pattern.fullmatch(value):
            return self.message
        return None


@dataclass(frozen=True)
class AcceptedRule:
    """Boolean field must be true (e.g. the privacy checkbox)."""

    field: str
    message: str

    def check(self, submission: ContactSubmission) -> Optional[str]:
        if not getattr(submission, self.field):
            return self.message
        return None


FieldRule = Union[MinLengthRule, PatternRule, AcceptedRule]

CONTACT_RULES: Sequence[FieldRule] = (
    MinLengthRule(
        "name",
        NAME_MIN_LENGTH,
        f"Name is required (at least {NAME_MIN_LENGTH} characters)",
    ),
    PatternRule("email", EMAIL_PATTERN, "A valid email address is required"),
    MinLengthRule(
        "message",
        MESSAGE_MIN_LENGTH,
        f"Message is required (at least {MESSAGE_MIN_LENGTH} characters)",
    ),
    AcceptedRule("privacy", "The privacy policy must be accepted"),
)


def validate_submission(
    submission: ContactSubmission, rules: Sequence[FieldRule] = CONTACT_RULES
) -> List[str]:
    """Return the ordered list of violated-rule messages for ``submission``."""
    errors: List[str] = []
    for rule in rules:
        message = rule.check(submission)
        if message is not None:
            errors.append(message)
    return errors


def is_valid_email(value: str) -> bool:
    return bool(value) and EMAIL_PATTERN.fullmatch(value) is not None
