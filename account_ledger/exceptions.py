"""
Ledger error taxonomy.

Every failure the core reports carries an ErrorKind. Callers
branch on the kind, never on the message text, so messages
can be reworded without changing behaviour downstream.
"""

import enum


class ErrorKind(str, enum.Enum):
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    CONFLICT = "CONFLICT"
    STORAGE = "STORAGE"


class LedgerError(Exception):
    """Base class for every error raised by the ledger core."""

    kind: ErrorKind = ErrorKind.STORAGE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Malformed or missing input. Raised before any mutation."""

    kind = ErrorKind.VALIDATION


class NotFoundError(LedgerError):
    kind = ErrorKind.NOT_FOUND


class InsufficientFundsError(LedgerError):
    """A debit would drive an account balance below zero."""

    kind = ErrorKind.INSUFFICIENT_FUNDS


class ConflictError(LedgerError):
    """The operation is blocked by existing references."""

    kind = ErrorKind.CONFLICT


class StorageError(LedgerError):
    """
    The database failed in a way not otherwise classified.

    The unit of work has been rolled back when this is raised,
    so the whole operation can be retried.
    """

    kind = ErrorKind.STORAGE
