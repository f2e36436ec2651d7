"""
Failure taxonomy for the admission pipelines.

Business-rule rejections are raised as a single tagged exception type,
AdmissionError, whose `failure` member identifies the rule that fired.
Infrastructure faults (database unreachable, driver errors) are never
wrapped in it and propagate unchanged.
"""

import enum
from typing import Optional


class AdmissionFailure(str, enum.Enum):
    INVALID_NAME = "INVALID_NAME"
    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_SUBJECT = "INVALID_SUBJECT"
    INVALID_MESSAGE = "INVALID_MESSAGE"
    INVALID_SOURCE = "INVALID_SOURCE"
    INVALID_REFERRAL_CODE = "INVALID_REFERRAL_CODE"
    WAITLIST_FULL = "WAITLIST_FULL"
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
    IP_RATE_LIMITED = "IP_RATE_LIMITED"
    NOT_FOUND = "NOT_FOUND"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"


DEFAULT_MESSAGES = {
    AdmissionFailure.INVALID_NAME: (
        "Name must be between 2 and 50 characters and contain only letters, "
        "spaces, hyphens, apostrophes, and periods"
    ),
    AdmissionFailure.INVALID_EMAIL: "Please enter a valid email address",
    AdmissionFailure.INVALID_SUBJECT: "Subject must be between 3 and 100 characters",
    AdmissionFailure.INVALID_MESSAGE: "Message must be between 10 and 1000 characters",
    AdmissionFailure.INVALID_SOURCE: "Source must be one of: website, referral, social, direct",
    AdmissionFailure.INVALID_REFERRAL_CODE: (
        "Referral code must be at most 20 characters and contain only letters, "
        "numbers, hyphens, and underscores"
    ),
    AdmissionFailure.WAITLIST_FULL: "We've reached our waitlist capacity. Please check back later!",
    AdmissionFailure.DUPLICATE_EMAIL: "This email is already on our waitlist. We will notify you.",
    AdmissionFailure.IP_RATE_LIMITED: "Too many submissions from your location. Please try again tomorrow.",
    AdmissionFailure.NOT_FOUND: "This email is not on our waitlist. Would you like to join?",
    AdmissionFailure.TOO_MANY_REQUESTS: "Too many requests from this IP, please try again later.",
}


class AdmissionError(Exception):
    """A submission was rejected by a business rule."""

    def __init__(self, failure: AdmissionFailure, message: Optional[str] = None):
        self.failure = failure
        self.message = message or DEFAULT_MESSAGES[failure]
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return self.failure.value

    def __repr__(self) -> str:
        return f"<AdmissionError(failure={self.failure.value}, message={self.message!r})>"


class ThrottleExceeded(AdmissionError):
    """The request throttle turned a request away before admission ran."""

    def __init__(self, retry_after: int):
        super().__init__(AdmissionFailure.TOO_MANY_REQUESTS)
        self.retry_after = retry_after


class UniquenessViolation(Exception):
    """The store rejected an insert because a unique field already holds the value."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Duplicate value for unique field '{field}'")
