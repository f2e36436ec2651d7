"""
Input validators shared by the waitlist and contact pipelines.

Pure functions: each returns the cleaned value or raises AdmissionError
tagged with the matching failure. No I/O.
"""

import re
from typing import Iterable, Optional

from marketing_api.core.errors import AdmissionError, AdmissionFailure

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
EMAIL_MAX_LENGTH = 254
SUBJECT_MIN_LENGTH = 3
SUBJECT_MAX_LENGTH = 100
MESSAGE_MIN_LENGTH = 10
MESSAGE_MAX_LENGTH = 1000

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NAME_PATTERN = re.compile(r"^[a-zA-Z\s\-'.]+$")
REFERRAL_CODE_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
REFERRAL_CODE_MAX_LENGTH = 20

SOURCES = ("website", "referral", "social", "direct")
DEFAULT_SOURCE = "website"


def _trimmed(value: Optional[str]) -> str:
    return str(value).strip() if value is not None else ""


def validate_name(value: Optional[str]) -> str:
    name = _trimmed(value)
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise AdmissionError(AdmissionFailure.INVALID_NAME)
    if not NAME_PATTERN.match(name):
        raise AdmissionError(AdmissionFailure.INVALID_NAME)
    return name


def normalize_email(value: Optional[str]) -> str:
    return _trimmed(value).lower()


def validate_email(value: Optional[str]) -> str:
    email = normalize_email(value)
    if not email or len(email) > EMAIL_MAX_LENGTH or not EMAIL_PATTERN.match(email):
        raise AdmissionError(AdmissionFailure.INVALID_EMAIL)
    return email


def validate_subject(value: Optional[str], allowed_topics: Optional[Iterable[str]] = None) -> str:
    """
    Free-form subjects must be 3-100 characters. When a topic set is
    configured the subject must name one of the topics (case-insensitive)
    and the canonical topic is returned.
    """
    subject = _trimmed(value)
    topics = tuple(allowed_topics or ())
    if topics:
        if subject.lower() not in topics:
            raise AdmissionError(
                AdmissionFailure.INVALID_SUBJECT,
                f"Subject must be one of: {', '.join(topics)}",
            )
        return subject.lower()
    if not SUBJECT_MIN_LENGTH <= len(subject) <= SUBJECT_MAX_LENGTH:
        raise AdmissionError(AdmissionFailure.INVALID_SUBJECT)
    return subject


def validate_message(value: Optional[str]) -> str:
    message = _trimmed(value)
    if not MESSAGE_MIN_LENGTH <= len(message) <= MESSAGE_MAX_LENGTH:
        raise AdmissionError(AdmissionFailure.INVALID_MESSAGE)
    return message


def validate_source(value: Optional[str]) -> str:
    """Signup channel; blank means the site itself."""
    source = _trimmed(value).lower()
    if not source:
        return DEFAULT_SOURCE
    if source not in SOURCES:
        raise AdmissionError(AdmissionFailure.INVALID_SOURCE)
    return source


def validate_referral_code(value: Optional[str]) -> Optional[str]:
    code = _trimmed(value)
    if not code:
        return None
    if len(code) > REFERRAL_CODE_MAX_LENGTH or not REFERRAL_CODE_PATTERN.match(code):
        raise AdmissionError(AdmissionFailure.INVALID_REFERRAL_CODE)
    return code
