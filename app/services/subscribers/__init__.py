"""
Subscriber Snapshot Package
"""

from app.services.subscribers.service import (
    SubscriberSnapshotReader,
    BroadcastTarget,
    parse_broadcast_target,
)

from app.services.subscribers.exceptions import (
    SubscriberStoreError,
    InvalidBroadcastTargetError,
)

__all__ = [
    "SubscriberSnapshotReader",
    "BroadcastTarget",
    "parse_broadcast_target",
    "SubscriberStoreError",
    "InvalidBroadcastTargetError",
]
