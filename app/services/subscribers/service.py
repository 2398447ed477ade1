"""
Subscriber Snapshot Reader

Read-only candidate selection for the lifecycle jobs. Thin wrapper over the
subscriber store (the ``database`` module in production) that turns store
outages into SubscriberStoreError.
"""

import logging
from datetime import datetime, tzinfo
from enum import Enum
from typing import Any, Dict, List

from app.services.ledger.service import STORE_UNAVAILABLE_ERRORS
from app.services.lifecycle.service import ReminderWindow, window_bounds
from app.services.subscribers.exceptions import (
    InvalidBroadcastTargetError,
    SubscriberStoreError,
)

logger = logging.getLogger(__name__)


class BroadcastTarget(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    EXPIRED = "expired"


def parse_broadcast_target(value) -> BroadcastTarget:
    if isinstance(value, BroadcastTarget):
        return value
    try:
        return BroadcastTarget(str(value).lower())
    except ValueError:
        raise InvalidBroadcastTargetError(
            f"Unknown broadcast target {value!r}. Allowed: {[t.value for t in BroadcastTarget]}"
        ) from None


class SubscriberSnapshotReader:
    """Candidate queries for each job, evaluated against a caller-supplied now."""

    def __init__(self, store, tz: tzinfo):
        self.store = store
        self.tz = tz

    async def in_window(self, window: ReminderWindow, now: datetime) -> List[Dict[str, Any]]:
        start, end = window_bounds(window, now, self.tz)
        return await self._fetch(
            "find_by_boundary_window", start, end, exclude_deleted=True
        )

    async def disable_candidates(self, now: datetime) -> List[Dict[str, Any]]:
        """boundary < now, config issued, gate id present, not soft-deleted"""
        return await self._fetch("find_boundary_before", now)

    async def enable_candidates(self, now: datetime) -> List[Dict[str, Any]]:
        """boundary >= now, gate id present, not soft-deleted"""
        return await self._fetch("find_boundary_after_or_equal", now)

    async def broadcast_recipients(self, target: BroadcastTarget, now: datetime) -> List[Dict[str, Any]]:
        return await self._fetch("find_broadcast_recipients", target.value, now)

    async def _fetch(self, query: str, *args, **kwargs) -> List[Dict[str, Any]]:
        try:
            rows = await getattr(self.store, query)(*args, **kwargs)
        except STORE_UNAVAILABLE_ERRORS as e:
            logger.error(f"SUBSCRIBER_SNAPSHOT_FAILED [query={query}, error={type(e).__name__}: {str(e)[:100]}]")
            raise SubscriberStoreError(f"{query} failed: {e}") from e
        return [dict(row) for row in rows or []]
