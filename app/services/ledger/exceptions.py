"""
Ledger Domain Exceptions

All exceptions raised by the idempotency ledger.
"""


class LedgerError(Exception):
    """Base exception for ledger errors"""
    pass


class LedgerWriteError(LedgerError):
    """Raised when an entry cannot be appended (event log store unavailable)"""
    pass


class LedgerReadError(LedgerError):
    """Raised when the presence check cannot be answered; callers must not act"""
    pass
