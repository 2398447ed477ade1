"""
Lifecycle Service Package
"""

from app.services.lifecycle.service import (
    LifecycleStatus,
    ReminderWindow,
    AccessAction,
    LifecycleClass,
    NO_CLASS,
    ensure_utc,
    day_start,
    window_bounds,
    is_in_window,
    is_active,
    entitlement_status,
    classify,
    access_action,
)

__all__ = [
    "LifecycleStatus",
    "ReminderWindow",
    "AccessAction",
    "LifecycleClass",
    "NO_CLASS",
    "ensure_utc",
    "day_start",
    "window_bounds",
    "is_in_window",
    "is_active",
    "entitlement_status",
    "classify",
    "access_action",
]
