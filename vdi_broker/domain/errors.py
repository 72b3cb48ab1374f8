"""
Domain errors raised by the ledger and the identity store.
"""


class LedgerError(Exception):
    """Base class for state-transition failures surfaced to API callers."""
    pass


class NotFoundError(LedgerError):
    """Referenced VDI, user or request does not exist."""
    pass


class ConflictError(LedgerError):
    """Requested transition is not valid for the current state."""
    pass
