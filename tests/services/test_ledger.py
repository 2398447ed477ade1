"""
Unit tests for the idempotency ledger.
"""
import asyncio
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import asyncpg

from app.services.ledger.exceptions import LedgerReadError, LedgerWriteError
from app.services.ledger.service import (
    ActionTag,
    EventLedger,
    action_for_window,
)
from app.services.lifecycle.service import ReminderWindow


class TestActionForWindow:
    """Tests for action_for_window"""

    def test_window_tags(self):
        """Each reminder window has its own action tag"""
        assert action_for_window(ReminderWindow.WEEK_BEFORE) is ActionTag.WEEK_REMINDER_SENT
        assert action_for_window(ReminderWindow.THREE_DAYS_BEFORE) is ActionTag.THREE_DAY_REMINDER_SENT
        assert action_for_window(ReminderWindow.ONE_DAY_BEFORE) is ActionTag.EXPIRY_REMINDER_SENT
        assert action_for_window(ReminderWindow.EXPIRED_TODAY) is ActionTag.EXPIRED_NOTIFICATION_SENT

    def test_none_window_raises(self):
        """NONE is not a sendable window"""
        with pytest.raises(ValueError):
            action_for_window(ReminderWindow.NONE)

    def test_tags_match_event_log_names(self):
        """Stored names are shared with the bot's event log"""
        assert ActionTag.ACCESS_DISABLED.value == "SUBSCRIPTION_EXPIRED_ACCESS_DISABLED"
        assert ActionTag.ACCESS_SYNC_COMPLETED.value == "DAILY_ACCESS_MANAGEMENT_COMPLETED"
        assert ActionTag.BROADCAST_SENT.value == "BROADCAST_MESSAGE_SENT"


class TestEventLedger:
    """Tests for has_fired / has_fired_today / record"""

    @pytest.mark.asyncio
    async def test_record_then_has_fired_today(self, ledger, store, fixed_now):
        """An entry recorded today is seen by today's presence check"""
        assert await ledger.has_fired_today(5, ActionTag.EXPIRY_REMINDER_SENT, fixed_now) is False
        await ledger.record(5, ActionTag.EXPIRY_REMINDER_SENT, {"trial_flag": True})
        assert await ledger.has_fired_today(5, ActionTag.EXPIRY_REMINDER_SENT, fixed_now) is True
        assert store.events[0]["action"] == "EXPIRY_REMINDER_SENT"
        assert store.events[0]["metadata"] == {"trial_flag": True}

    @pytest.mark.asyncio
    async def test_yesterdays_entry_does_not_count(self, ledger, store, fixed_now):
        """Presence check starts at local midnight"""
        store.now = datetime(2025, 7, 23, 20, 59, tzinfo=timezone.utc)  # 23:59 Moscow, 23rd
        await ledger.record(5, ActionTag.EXPIRY_REMINDER_SENT)
        assert await ledger.has_fired_today(5, ActionTag.EXPIRY_REMINDER_SENT, fixed_now) is False

    @pytest.mark.asyncio
    async def test_other_action_or_subscriber_does_not_count(self, ledger, fixed_now):
        """Key is (subscriber, action)"""
        await ledger.record(5, ActionTag.EXPIRY_REMINDER_SENT)
        assert await ledger.has_fired_today(6, ActionTag.EXPIRY_REMINDER_SENT, fixed_now) is False
        assert await ledger.has_fired_today(5, ActionTag.THREE_DAY_REMINDER_SENT, fixed_now) is False

    @pytest.mark.asyncio
    async def test_has_fired_since_arbitrary_instant(self, ledger, store, fixed_now):
        """since is inclusive"""
        await ledger.record(9, ActionTag.ACCESS_DISABLED)
        assert await ledger.has_fired(9, ActionTag.ACCESS_DISABLED, since=fixed_now) is True
        assert await ledger.has_fired(9, ActionTag.ACCESS_DISABLED, since=fixed_now + timedelta(seconds=1)) is False

    @pytest.mark.asyncio
    async def test_read_failure_raises_ledger_read_error(self, ledger, store, fixed_now):
        """Store outage on presence check"""
        store.fail_reads = asyncpg.PostgresError("connection lost")
        with pytest.raises(LedgerReadError):
            await ledger.has_fired_today(1, ActionTag.WEEK_REMINDER_SENT, fixed_now)

    @pytest.mark.asyncio
    async def test_write_failure_raises_ledger_write_error(self, ledger, store):
        """Store outage on append"""
        store.fail_writes = asyncio.TimeoutError()
        with pytest.raises(LedgerWriteError):
            await ledger.record(1, ActionTag.WEEK_REMINDER_SENT)

    @pytest.mark.asyncio
    async def test_programming_errors_are_not_wrapped(self, tz):
        """Only store outages become LedgerError"""
        store = MagicMock()
        store.append_event = AsyncMock(side_effect=KeyError("bug"))
        ledger = EventLedger(store, tz)
        with pytest.raises(KeyError):
            await ledger.record(1, ActionTag.WEEK_REMINDER_SENT)

    @pytest.mark.asyncio
    async def test_record_passes_tag_string(self, tz):
        """Store receives plain action strings"""
        store = MagicMock()
        store.append_event = AsyncMock()
        ledger = EventLedger(store, tz)
        await ledger.record(0, ActionTag.ACCESS_SYNC_COMPLETED, {"disabled": 1})
        store.append_event.assert_awaited_once_with(0, "DAILY_ACCESS_MANAGEMENT_COMPLETED", {"disabled": 1})
