import re

_EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")
_SENDGRID_KEY_RE = re.compile(r"\bSG\.[A-Za-z0-9_-]{10,}\.[A-Za-z0-9_-]{10,}\b")
_HEX_TOKEN_RE = re.compile(r"\b[a-fA-F0-9]{32,}\b")
_SECRET_ASSIGNMENT_RE = re.compile(
    r'(password|passwd|pass|pwd|secret|api[_-]?key|app[_-]?password)["\']?\s*[:=]\s*["\']?[^"\'&\s,]+',
    flags=re.IGNORECASE,
)


def _mask_email(match: re.Match) -> str:
    local, _, domain = match.group().partition("@")
    return f"{local[0]}***@{domain}"


def redact_pii(message: str) -> str:
    """Redact submitter addresses and credentials from log messages.

    Originating IP addresses are left intact: together with the timestamp
    they are what an operator needs to investigate abuse of the contact form.
    """
    if not isinstance(message, str):
        return str(message)

    # Emails: jane@example.com -> j***@example.com
    message = _EMAIL_RE.sub(_mask_email, message)

    message = _SENDGRID_KEY_RE.sub("[API_KEY_REDACTED]", message)
    message = _HEX_TOKEN_RE.sub("[TOKEN_REDACTED]", message)
    message = _SECRET_ASSIGNMENT_RE.sub(r"\1=[REDACTED]", message)

    return message
