"""Spam heuristics for contact submissions.

The heuristics are evaluated in order and the first one that fires decides
the rejection. They are signals, not a security boundary: the honeypot and
the render timestamp both come from the client.
"""
from __future__ import annotations

import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple, Union

from app.core.config import Settings
from app.schemas.contact import ContactSubmission

_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


class SpamTrigger(str, Enum):
    """Which heuristic rejected a submission."""

    HONEYPOT = "honeypot"
    TOO_FAST = "too_fast"
    KEYWORD = "keyword"


@dataclass(frozen=True)
class SpamVerdict:
    accepted: bool
    trigger: Optional[SpamTrigger] = None
    detail: Optional[str] = None


ACCEPT = SpamVerdict(accepted=True)


def parse_client_timestamp(raw: Optional[str]) -> Optional[int]:
    """Parse the leading integer of ``raw``; ``None`` when there is none."""
    if raw is None:
        return None
    match = _LEADING_INT_RE.match(str(raw))
    if not match:
        return None
    return int(match.group(1))


@dataclass(frozen=True)
class HoneypotRule:
    def check(self, submission: ContactSubmission, now_ms: int) -> Optional[SpamVerdict]:
        if submission.website:
            return SpamVerdict(False, SpamTrigger.HONEYPOT, "honeypot field filled")
        return None


@dataclass(frozen=True)
class MinimumFillTimeRule:
    min_fill_ms: int = 3000

    def check(self, submission: ContactSubmission, now_ms: int) -> Optional[SpamVerdict]:
        rendered_at = parse_client_timestamp(submission.timestamp)
        if rendered_at is None:
            return None
        elapsed = now_ms - rendered_at
        if elapsed < self.min_fill_ms:
            return SpamVerdict(
                False, SpamTrigger.TOO_FAST, f"submitted after {elapsed} ms"
            )
        return None


@dataclass(frozen=True)
class KeywordRule:
    keywords: Tuple[str, ...] = ()

    def check(self, submission: ContactSubmission, now_ms: int) -> Optional[SpamVerdict]:
        content = f"{submission.name or ''} {submission.message or ''}".lower()
        for keyword in self.keywords:
            if keyword in content:
                return SpamVerdict(
                    False, SpamTrigger.KEYWORD, f'keyword "{keyword}" found'
                )
        return None


SpamRule = Union[HoneypotRule, MinimumFillTimeRule, KeywordRule]


class SpamFilter:
    """Ordered set of spam heuristics."""

    def __init__(self, rules: Sequence[SpamRule]):
        self.rules = tuple(rules)

    @classmethod
    def build(
        cls, keywords: Iterable[str], min_fill_ms: int = 3000
    ) -> "SpamFilter":
        return cls(
            [
                HoneypotRule(),
                MinimumFillTimeRule(min_fill_ms),
                KeywordRule(tuple(k.lower() for k in keywords if k)),
            ]
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "SpamFilter":
        return cls.build(settings.SPAM_KEYWORDS, settings.SPAM_MIN_FILL_MILLISECONDS)

    def evaluate(
        self, submission: ContactSubmission, now_ms: Optional[int] = None
    ) -> SpamVerdict:
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        for rule in self.rules:
            verdict = rule.check(submission, now_ms)
            if verdict is not None:
                return verdict
        return ACCEPT
