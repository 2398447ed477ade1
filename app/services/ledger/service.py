"""
Idempotency Ledger

Append-only event log used both as the idempotency token for user-facing
side effects and as the audit trail.

The check-then-act sequence is NOT transactional with the subscriber store.
Duplicate rows are harmless for audit; only the presence check before a
message is sent protects the user from duplicates.
"""

import asyncio
import logging
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Any, Dict, Optional

import asyncpg

from app.services.ledger.exceptions import LedgerReadError, LedgerWriteError
from app.services.lifecycle.service import ReminderWindow, day_start

logger = logging.getLogger(__name__)

# Subscriber id used for system-wide events (job summaries)
SYSTEM_SUBSCRIBER_ID = 0

# Errors that mean "store unavailable" rather than a bug
STORE_UNAVAILABLE_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    asyncio.TimeoutError,
    ConnectionError,
    OSError,
)


class ActionTag(str, Enum):
    """Event log action names (shared with the main bot's event log)"""
    WEEK_REMINDER_SENT = "WEEK_REMINDER_SENT"
    THREE_DAY_REMINDER_SENT = "THREE_DAY_REMINDER_SENT"
    EXPIRY_REMINDER_SENT = "EXPIRY_REMINDER_SENT"
    EXPIRED_NOTIFICATION_SENT = "EXPIRED_NOTIFICATION_SENT"
    ACCESS_DISABLED = "SUBSCRIPTION_EXPIRED_ACCESS_DISABLED"
    ACCESS_SYNC_COMPLETED = "DAILY_ACCESS_MANAGEMENT_COMPLETED"
    BROADCAST_SENT = "BROADCAST_MESSAGE_SENT"
    WEEKLY_STATS_SENT = "WEEKLY_STATS_SENT"


_WINDOW_ACTIONS = {
    ReminderWindow.WEEK_BEFORE: ActionTag.WEEK_REMINDER_SENT,
    ReminderWindow.THREE_DAYS_BEFORE: ActionTag.THREE_DAY_REMINDER_SENT,
    ReminderWindow.ONE_DAY_BEFORE: ActionTag.EXPIRY_REMINDER_SENT,
    ReminderWindow.EXPIRED_TODAY: ActionTag.EXPIRED_NOTIFICATION_SENT,
}


def action_for_window(window: ReminderWindow) -> ActionTag:
    """
    Ledger action tag of a reminder window.

    Raises:
        ValueError: for ReminderWindow.NONE
    """
    try:
        return _WINDOW_ACTIONS[window]
    except KeyError:
        raise ValueError(f"No action tag for window {window!r}") from None


class EventLedger:
    """
    Idempotency ledger over the event log store.

    The store is any object exposing the coroutines
    ``append_event(subscriber_id, action, metadata)`` and
    ``event_exists_since(subscriber_id, action, since)``; in production this
    is the ``database`` module.
    """

    def __init__(self, store, tz: tzinfo):
        self.store = store
        self.tz = tz

    async def has_fired(self, subscriber_id: int, action: ActionTag, since: datetime) -> bool:
        """
        True if an entry for (subscriber, action) exists at or after since.

        Raises:
            LedgerReadError: store unavailable (caller must skip the side effect)
        """
        try:
            return bool(await self.store.event_exists_since(subscriber_id, _tag(action), since))
        except STORE_UNAVAILABLE_ERRORS as e:
            raise LedgerReadError(
                f"Cannot check {_tag(action)} for subscriber {subscriber_id}: {e}"
            ) from e

    async def has_fired_today(self, subscriber_id: int, action: ActionTag, now: Optional[datetime] = None) -> bool:
        """Presence check for the current calendar day of the operating timezone."""
        if now is None:
            now = datetime.now(timezone.utc)
        return await self.has_fired(subscriber_id, action, day_start(now, self.tz))

    async def record(self, subscriber_id: int, action: ActionTag, metadata: Optional[Dict[str, Any]] = None) -> None:
        """
        Append an entry. Safe to call more than once for the same event.

        Raises:
            LedgerWriteError: store unavailable
        """
        try:
            await self.store.append_event(subscriber_id, _tag(action), metadata or {})
        except STORE_UNAVAILABLE_ERRORS as e:
            raise LedgerWriteError(
                f"Cannot record {_tag(action)} for subscriber {subscriber_id}: {e}"
            ) from e
        logger.debug(f"LEDGER_RECORDED [user={subscriber_id}, action={_tag(action)}]")


def _tag(action) -> str:
    return action.value if isinstance(action, Enum) else str(action)
