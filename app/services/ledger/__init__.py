"""
Idempotency Ledger Package
"""

from app.services.ledger.service import (
    EventLedger,
    ActionTag,
    SYSTEM_SUBSCRIBER_ID,
    STORE_UNAVAILABLE_ERRORS,
    action_for_window,
)

from app.services.ledger.exceptions import (
    LedgerError,
    LedgerWriteError,
    LedgerReadError,
)

__all__ = [
    "EventLedger",
    "ActionTag",
    "SYSTEM_SUBSCRIBER_ID",
    "STORE_UNAVAILABLE_ERRORS",
    "action_for_window",
    "LedgerError",
    "LedgerWriteError",
    "LedgerReadError",
]
