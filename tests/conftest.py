"""
Pytest configuration and shared fixtures.

FakeStore stands in for the ``database`` module (subscriber snapshots,
event log, statistics); FakeChannel stands in for TelegramChannel.
"""
import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from app.services.ledger.service import EventLedger
from app.services.notifications.dispatcher import NotificationDispatcher
from app.services.notifications.exceptions import DeliveryError
from app.services.subscribers.service import SubscriberSnapshotReader


MOSCOW = ZoneInfo("Europe/Moscow")


class FakeStore:
    """In-memory users + event_logs with the same query contract as database.py"""

    def __init__(self, now: Optional[datetime] = None):
        self.subscribers: List[Dict[str, Any]] = []
        self.events: List[Dict[str, Any]] = []
        self.payments: List[Dict[str, Any]] = []
        self.now = now or datetime(2025, 7, 24, 10, 0, tzinfo=timezone.utc)
        self.fail_reads: Optional[Exception] = None
        self.fail_writes: Optional[Exception] = None

    def add(self, **fields) -> Dict[str, Any]:
        sub = {
            "id": len(self.subscribers) + 1,
            "telegram_id": 1000 + len(self.subscribers) + 1,
            "username": None,
            "subscription_end": None,
            "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
            "promo_code_used_id": None,
            "wg_id": None,
            "config_issued": False,
            "is_deleted": False,
        }
        sub.update(fields)
        self.subscribers.append(sub)
        return sub

    def _live(self):
        return [s for s in self.subscribers if not s["is_deleted"]]

    def _check_read(self):
        if self.fail_reads is not None:
            raise self.fail_reads

    # Subscriber snapshots

    async def find_by_boundary_window(self, start, end, exclude_deleted=True):
        self._check_read()
        pool = self._live() if exclude_deleted else self.subscribers
        return [
            dict(s) for s in pool
            if s["subscription_end"] is not None and start <= s["subscription_end"] < end
        ]

    async def find_boundary_before(self, now):
        self._check_read()
        return [
            dict(s) for s in self._live()
            if s["subscription_end"] is not None
            and s["subscription_end"] < now
            and s["config_issued"]
            and s["wg_id"] is not None
        ]

    async def find_boundary_after_or_equal(self, now):
        self._check_read()
        return [
            dict(s) for s in self._live()
            if s["subscription_end"] is not None
            and s["subscription_end"] >= now
            and s["wg_id"] is not None
        ]

    async def find_broadcast_recipients(self, target, now):
        self._check_read()
        live = self._live()
        if target == "active":
            return [dict(s) for s in live if s["subscription_end"] and s["subscription_end"] > now]
        if target == "expired":
            return [dict(s) for s in live if s["subscription_end"] and s["subscription_end"] < now]
        return [dict(s) for s in live]

    # Event log

    async def append_event(self, subscriber_id, action, metadata=None):
        if self.fail_writes is not None:
            raise self.fail_writes
        self.events.append({
            "user_id": subscriber_id,
            "action": action,
            "metadata": metadata or {},
            "timestamp": self.now,
        })

    async def event_exists_since(self, subscriber_id, action, since):
        self._check_read()
        return any(
            e["user_id"] == subscriber_id and e["action"] == action and e["timestamp"] >= since
            for e in self.events
        )

    def events_for(self, action: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e["action"] == action]

    # Statistics

    async def count_new_users(self, since):
        return len([s for s in self._live() if s["created_at"] >= since])

    async def count_active_subscriptions(self, now):
        return len([s for s in self._live() if s["subscription_end"] and s["subscription_end"] > now])

    async def count_expired_subscriptions(self, since, now):
        return len([
            s for s in self._live()
            if s["subscription_end"] and since <= s["subscription_end"] < now
        ])

    async def get_completed_payments_summary(self, since):
        done = [p for p in self.payments if p["created_at"] >= since and p["status"] == "completed"]
        return {"count": len(done), "total": sum(p["amount"] for p in done)}

    async def count_events_since(self, action, since):
        return len([e for e in self.events if e["action"] == action and e["timestamp"] >= since])


class FakeChannel:
    """Records sent messages; addresses in fail_for raise DeliveryError, raise_for maps an address to any exception"""

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []
        self.fail_for = set()
        self.raise_for: Dict[int, Exception] = {}

    async def send(self, address, text, reply_markup=None, parse_mode="Markdown"):
        if address in self.raise_for:
            raise self.raise_for[address]
        if address in self.fail_for:
            raise DeliveryError(f"forbidden: {address}")
        self.sent.append({"address": address, "text": text, "reply_markup": reply_markup})

    def addresses(self) -> List[int]:
        return [m["address"] for m in self.sent]


@pytest.fixture
def tz():
    return MOSCOW


@pytest.fixture
def fixed_now():
    """10:00 UTC (13:00 Moscow), Thursday 2025-07-24"""
    return datetime(2025, 7, 24, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(fixed_now):
    return FakeStore(now=fixed_now)


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def ledger(store, tz):
    return EventLedger(store, tz)


@pytest.fixture
def reader(store, tz):
    return SubscriberSnapshotReader(store, tz)


@pytest.fixture
def dispatcher(channel, reader, ledger, tz):
    return NotificationDispatcher(
        channel,
        reader,
        ledger,
        tz,
        send_delay=0,
        language="ru",
        trial_period=timedelta(days=8),
        admin_ids=[1, 2],
    )
