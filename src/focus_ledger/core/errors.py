"""Errors raised by the ledger core.

Every failure is scoped to the single requested operation and leaves the
store unchanged. The presentation layer decides how to word them.
"""


class LedgerError(Exception):
    """Base class for all ledger errors."""


class ConflictError(LedgerError):
    """Singleton or relational state forbids the operation."""


class NotFoundError(LedgerError):
    """A referenced entity does not exist."""


class ValidationError(LedgerError):
    """Malformed or out-of-range input."""
