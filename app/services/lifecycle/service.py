"""
Lifecycle Service Layer

Pure classification of a subscriber's time-remaining state.

All functions are pure business logic:
- No aiogram imports
- No database access
- No I/O, deterministic for a given (subscriber, now, tz)

Day-level decisions (reminder windows) use calendar days of the operating
timezone. Access decisions (enable/disable) compare full timestamps.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

DEFAULT_TRIAL_PERIOD = timedelta(days=8)


# ====================================================================================
# Types
# ====================================================================================

class LifecycleStatus(str, Enum):
    """Kind of entitlement a subscriber holds"""
    TRIAL = "trial"
    PAID = "paid"


class ReminderWindow(str, Enum):
    """Day-aligned windows relative to today's local midnight"""
    WEEK_BEFORE = "week_before"
    THREE_DAYS_BEFORE = "three_days_before"
    ONE_DAY_BEFORE = "one_day_before"
    EXPIRED_TODAY = "expired_today"
    NONE = "none"


class AccessAction(str, Enum):
    """What the access synchronizer must do with a subscriber's gate"""
    DISABLE = "disable"
    ENABLE = "enable"
    NONE = "none"


# Offsets in days from today's local midnight: window = [start, start + 1 day)
_WINDOW_OFFSETS = {
    ReminderWindow.EXPIRED_TODAY: 0,
    ReminderWindow.ONE_DAY_BEFORE: 1,
    ReminderWindow.THREE_DAYS_BEFORE: 3,
    ReminderWindow.WEEK_BEFORE: 7,
}


@dataclass(frozen=True)
class LifecycleClass:
    """Result of classification. status is None when there is no active class."""
    status: Optional[LifecycleStatus]
    window: ReminderWindow

    @property
    def is_trial(self) -> bool:
        return self.status is LifecycleStatus.TRIAL

    @property
    def has_class(self) -> bool:
        return self.status is not None


NO_CLASS = LifecycleClass(status=None, window=ReminderWindow.NONE)


# ====================================================================================
# Time helpers
# ====================================================================================

def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken as UTC (DB TIMESTAMP columns); aware ones are converted."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def day_start(now: datetime, tz: tzinfo) -> datetime:
    """Local midnight (in tz) of the day containing now, returned as aware UTC."""
    local = ensure_utc(now).astimezone(tz)
    midnight = datetime(local.year, local.month, local.day, tzinfo=tz)
    return midnight.astimezone(timezone.utc)


def _shift_days(midnight_utc: datetime, days: int, tz: tzinfo) -> datetime:
    # Wall-clock arithmetic keeps DST transitions on local midnight.
    local = midnight_utc.astimezone(tz)
    shifted = datetime(local.year, local.month, local.day, tzinfo=tz) + timedelta(days=days)
    shifted = datetime(shifted.year, shifted.month, shifted.day, tzinfo=tz)
    return shifted.astimezone(timezone.utc)


def window_bounds(window: ReminderWindow, now: datetime, tz: tzinfo) -> Tuple[datetime, datetime]:
    """
    Half-open [start, end) interval of a reminder window, in aware UTC.

    Raises:
        ValueError: for ReminderWindow.NONE (it has no interval)
    """
    if window not in _WINDOW_OFFSETS:
        raise ValueError(f"Window {window!r} has no interval")
    today = day_start(now, tz)
    offset = _WINDOW_OFFSETS[window]
    return _shift_days(today, offset, tz), _shift_days(today, offset + 1, tz)


def is_in_window(boundary: Optional[datetime], window: ReminderWindow, now: datetime, tz: tzinfo) -> bool:
    if boundary is None or window is ReminderWindow.NONE:
        return False
    start, end = window_bounds(window, now, tz)
    return start <= ensure_utc(boundary) < end


# ====================================================================================
# Classification
# ====================================================================================

def _field(subscriber: Mapping[str, Any], key: str) -> Any:
    try:
        return subscriber.get(key)
    except AttributeError:
        return getattr(subscriber, key, None)


def is_active(subscriber: Mapping[str, Any], now: datetime) -> bool:
    """Boundary is an inclusive upper bound: boundary == now is still active."""
    boundary = ensure_utc(_field(subscriber, "subscription_end"))
    if boundary is None:
        return False
    return boundary >= ensure_utc(now)


def entitlement_status(
    subscriber: Mapping[str, Any],
    now: datetime,
    trial_period: timedelta = DEFAULT_TRIAL_PERIOD,
) -> Optional[LifecycleStatus]:
    """
    Trial vs paid for a subscriber with a boundary.

    While the boundary is in the future the account age is measured at now.
    For a lapsed boundary it is measured at the boundary itself, so the
    "access suspended" notice still knows which kind of entitlement ended.

    Returns:
        None if the subscriber never had a boundary
    """
    boundary = ensure_utc(_field(subscriber, "subscription_end"))
    if boundary is None:
        return None

    now = ensure_utc(now)
    if _field(subscriber, "promo_code_used_id") is not None:
        return LifecycleStatus.PAID

    created_at = ensure_utc(_field(subscriber, "created_at"))
    if created_at is None:
        return LifecycleStatus.PAID

    reference = now if boundary >= now else boundary
    if reference - created_at < trial_period:
        return LifecycleStatus.TRIAL
    return LifecycleStatus.PAID


def classify(
    subscriber: Mapping[str, Any],
    now: datetime,
    tz: tzinfo,
    trial_period: timedelta = DEFAULT_TRIAL_PERIOD,
) -> LifecycleClass:
    """
    Classify a subscriber at instant now.

    Rules:
    - no boundary -> no class
    - boundary before today's local midnight -> no class (expired beyond today)
    - otherwise trial/paid crossed with the single window the boundary falls in
    - trial subscribers never get the week-before window

    Never raises: malformed input yields NO_CLASS.
    """
    try:
        boundary = ensure_utc(_field(subscriber, "subscription_end"))
        if boundary is None:
            return NO_CLASS

        if boundary < day_start(now, tz):
            return NO_CLASS

        status = entitlement_status(subscriber, now, trial_period)

        for window in (
            ReminderWindow.EXPIRED_TODAY,
            ReminderWindow.ONE_DAY_BEFORE,
            ReminderWindow.THREE_DAYS_BEFORE,
            ReminderWindow.WEEK_BEFORE,
        ):
            if is_in_window(boundary, window, now, tz):
                if window is ReminderWindow.WEEK_BEFORE and status is LifecycleStatus.TRIAL:
                    return LifecycleClass(status=status, window=ReminderWindow.NONE)
                return LifecycleClass(status=status, window=window)

        return LifecycleClass(status=status, window=ReminderWindow.NONE)
    except (TypeError, ValueError, AttributeError, OverflowError):
        return NO_CLASS


def access_action(subscriber: Mapping[str, Any], now: datetime) -> AccessAction:
    """
    Decide the gate state at full timestamp precision.

    DISABLE: boundary strictly before now.
    ENABLE: boundary at or after now.
    NONE: no boundary.
    """
    boundary = ensure_utc(_field(subscriber, "subscription_end"))
    if boundary is None:
        return AccessAction.NONE
    if boundary < ensure_utc(now):
        return AccessAction.DISABLE
    return AccessAction.ENABLE
