"""Localized strings of the contact form controller (German and English)."""
from typing import Dict

DEFAULT_LANGUAGE = "de"
FALLBACK_LANGUAGE = "en"

MESSAGES: Dict[str, Dict[str, str]] = {
    "required": {
        "de": "Dieses Feld ist erforderlich.",
        "en": "This field is required.",
    },
    "email": {
        "de": "Bitte geben Sie eine gültige E-Mail-Adresse ein.",
        "en": "Please enter a valid email address.",
    },
    "minlength": {
        "de": "Mindestens {min_length} Zeichen erforderlich.",
        "en": "At least {min_length} characters required.",
    },
    "checkbox": {
        "de": "Sie müssen dieser Bedingung zustimmen.",
        "en": "You must agree to this condition.",
    },
    "spam": {
        "de": "Spam-Schutz fehlgeschlagen. Bitte versuchen Sie es erneut.",
        "en": "Spam protection failed. Please try again.",
    },
    "success": {
        "de": "Vielen Dank! Wir melden uns binnen 24 Stunden bei Ihnen.",
        "en": "Thank you! We will get back to you within 24 hours.",
    },
    "validation": {
        "de": "Bitte überprüfen Sie Ihre Eingaben.",
        "en": "Please check your input.",
    },
    "rate_limited": {
        "de": "Zu viele Anfragen. Bitte versuchen Sie es später erneut.",
        "en": "Too many requests. Please try again later.",
    },
    "submit": {
        "de": "Entschuldigung, beim Senden ist ein Fehler aufgetreten. Bitte versuchen Sie es erneut oder nutzen Sie unsere E-Mail-Adresse.",
        "en": "Sorry, an error occurred while sending. Please try again or use our email address.",
    },
    "fallback": {
        "de": "Das Kontaktformular ist momentan nicht verfügbar. Sie können uns direkt eine E-Mail senden:",
        "en": "The contact form is currently unavailable. You can send us an email directly:",
    },
    "fallback_button": {
        "de": "E-Mail öffnen",
        "en": "Open email",
    },
    "mail_subject": {
        "de": "Kontaktanfrage von {name}",
        "en": "Contact request from {name}",
    },
    "mail_body": {
        "de": "Name: {name}\nE-Mail: {email}\n\nNachricht:\n{message}",
        "en": "Name: {name}\nEmail: {email}\n\nMessage:\n{message}",
    },
}


def resolve_language(language: str) -> str:
    lang = (language or DEFAULT_LANGUAGE).split("-")[0].lower()
    return lang if lang in ("de", "en") else FALLBACK_LANGUAGE


def translate(key: str, language: str, **params) -> str:
    variants = MESSAGES.get(key)
    if variants is None:
        return "Ungültige Eingabe." if resolve_language(language) == "de" else "Invalid input."
    text = variants[resolve_language(language)]
    return text.format(**params) if params else text
