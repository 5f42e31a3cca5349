"""
Error taxonomy for the assessment engine.

Request-scoped operations raise NotFound/Conflict/BadRequest directly; the API
layer maps them onto HTTP status codes. TransientError wraps database failures
inside the background schedulers so the retry policy can tell them apart.
"""

from __future__ import annotations


class AssessmentError(Exception):
    """Base class for all engine errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AssessmentError):
    """Referenced session/attempt/item/task/paper does not exist or is not the caller's."""

    status_code = 404


class ConflictError(AssessmentError):
    """State-machine violation (double submit, foreign grader, inactive attempt...)."""

    status_code = 409


class BadRequestError(AssessmentError):
    """Validation failure on caller-supplied input."""

    status_code = 400


class TransientError(AssessmentError):
    """Retryable storage failure raised from scheduler bodies."""

    status_code = 503
