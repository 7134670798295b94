"""
Domain layer - Transaction submission and browser sessions, zero framework imports.

This package defines the transaction model, the submitter service and
the browser session lifecycle. It declares its own port interfaces for
the fact store and the browser driver so adapters stay swappable.
"""

from .exceptions import (
    LedgerError,
    SessionError,
    SubmissionError,
    SubmissionFailure,
    UnknownPlaceholderError,
)
from .ports import BrowserDriver, DatabaseConnection
from .query import Query
from .session import BrowserSession, CaseOutcome, SessionState, run_session_groups, session_scope
from .submitter import TransactionSubmitter
from .transaction import (
    Fact,
    Op,
    Operation,
    Snapshot,
    TransactionRequest,
    TransactionResult,
)

__all__ = [
    "BrowserDriver",
    "BrowserSession",
    "CaseOutcome",
    "DatabaseConnection",
    "Fact",
    "LedgerError",
    "Op",
    "Operation",
    "Query",
    "SessionError",
    "SessionState",
    "Snapshot",
    "SubmissionError",
    "SubmissionFailure",
    "TransactionRequest",
    "TransactionResult",
    "TransactionSubmitter",
    "UnknownPlaceholderError",
    "run_session_groups",
    "session_scope",
]
