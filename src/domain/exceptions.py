"""
Domain exceptions - Semantic error types for submissions and browser sessions.

This module defines domain-specific exceptions that communicate
failures without leaking infrastructure details (psycopg, Playwright).
"""

from enum import Enum


class LedgerError(Exception):
    """Base class for ledgerlab domain errors."""

    pass


class SubmissionFailure(str, Enum):
    """Why the fact store rejected a submission."""

    CONSTRAINT_VIOLATION = "constraint_violation"
    CONNECTIVITY = "connectivity"
    CONFLICT = "conflict"


class SubmissionError(LedgerError):
    """Transaction rejected by the store or connectivity lost."""

    def __init__(self, reason: SubmissionFailure, message: str) -> None:
        super().__init__(f"{reason.value}: {message}")
        self.reason = reason
        self.message = message


class UnknownPlaceholderError(LedgerError):
    """Placeholder was not part of the submitted request."""

    def __init__(self, placeholder: int) -> None:
        super().__init__(f"Placeholder {placeholder} was not used in this transaction")
        self.placeholder = placeholder


class SessionError(LedgerError):
    """Browser session absent, closed, or element not found."""

    pass
