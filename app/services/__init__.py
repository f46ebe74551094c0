"""
Contact pipeline services.

Services:
    - validation: field rules producing an ordered list of messages
    - spam_filter: honeypot, fill-time and keyword heuristics
    - mail_dispatcher: hands composed messages to the mail transport
    - contact_service: composes operator notification and confirmation mails
"""

from .contact_service import ContactService, RequestMeta
from .mail_dispatcher import MailDispatcher, MailMessage, get_mail_dispatcher
from .spam_filter import SpamFilter, SpamTrigger, SpamVerdict
from .validation import validate_submission

__all__ = [
    "ContactService",
    "RequestMeta",
    "MailDispatcher",
    "MailMessage",
    "get_mail_dispatcher",
    "SpamFilter",
    "SpamTrigger",
    "SpamVerdict",
    "validate_submission",
]
