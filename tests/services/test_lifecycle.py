"""
Unit tests for lifecycle service layer.

Tests pure classification logic only. No DB, no Telegram.
"""
import pytest
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from app.services.lifecycle.service import (
    AccessAction,
    LifecycleStatus,
    NO_CLASS,
    ReminderWindow,
    access_action,
    classify,
    day_start,
    entitlement_status,
    is_active,
    is_in_window,
    window_bounds,
)

MOSCOW = ZoneInfo("Europe/Moscow")
NOW = datetime(2025, 7, 24, 10, 0, tzinfo=timezone.utc)  # 13:00 Moscow


def sub(boundary, created_at=datetime(2025, 1, 1, tzinfo=timezone.utc), promo=None):
    return {
        "id": 1,
        "telegram_id": 1001,
        "subscription_end": boundary,
        "created_at": created_at,
        "promo_code_used_id": promo,
    }


class TestDayAlignment:
    """Tests for day_start and window_bounds"""

    def test_day_start_is_local_midnight(self):
        """Moscow midnight of 2025-07-24 is 2025-07-23 21:00 UTC"""
        assert day_start(NOW, MOSCOW) == datetime(2025, 7, 23, 21, 0, tzinfo=timezone.utc)

    def test_naive_now_treated_as_utc(self):
        """Naive datetimes come from TIMESTAMP columns and are UTC"""
        assert day_start(NOW.replace(tzinfo=None), MOSCOW) == day_start(NOW, MOSCOW)

    def test_window_bounds_are_consecutive_days(self):
        """Each window spans exactly one local day at its offset"""
        midnight = datetime(2025, 7, 23, 21, 0, tzinfo=timezone.utc)
        assert window_bounds(ReminderWindow.EXPIRED_TODAY, NOW, MOSCOW) == (
            midnight, midnight + timedelta(days=1)
        )
        assert window_bounds(ReminderWindow.ONE_DAY_BEFORE, NOW, MOSCOW) == (
            midnight + timedelta(days=1), midnight + timedelta(days=2)
        )
        assert window_bounds(ReminderWindow.THREE_DAYS_BEFORE, NOW, MOSCOW) == (
            midnight + timedelta(days=3), midnight + timedelta(days=4)
        )
        assert window_bounds(ReminderWindow.WEEK_BEFORE, NOW, MOSCOW) == (
            midnight + timedelta(days=7), midnight + timedelta(days=8)
        )

    def test_window_bounds_none_raises(self):
        """NONE has no interval"""
        with pytest.raises(ValueError):
            window_bounds(ReminderWindow.NONE, NOW, MOSCOW)

    def test_window_bounds_follow_dst(self):
        """On a spring-forward day the local day is 23 hours long"""
        berlin = ZoneInfo("Europe/Berlin")
        now = datetime(2025, 3, 30, 12, 0, tzinfo=timezone.utc)
        start, end = window_bounds(ReminderWindow.EXPIRED_TODAY, now, berlin)
        assert start == datetime(2025, 3, 29, 23, 0, tzinfo=timezone.utc)
        assert end == datetime(2025, 3, 30, 22, 0, tzinfo=timezone.utc)

    def test_is_in_window_half_open(self):
        """Window start is inclusive, end is exclusive"""
        start, end = window_bounds(ReminderWindow.ONE_DAY_BEFORE, NOW, MOSCOW)
        assert is_in_window(start, ReminderWindow.ONE_DAY_BEFORE, NOW, MOSCOW) is True
        assert is_in_window(end, ReminderWindow.ONE_DAY_BEFORE, NOW, MOSCOW) is False
        assert is_in_window(None, ReminderWindow.ONE_DAY_BEFORE, NOW, MOSCOW) is False


class TestEntitlementStatus:
    """Tests for trial vs paid"""

    def test_young_account_without_promo_is_trial(self):
        """Created 2 days ago, no promo"""
        s = sub(NOW + timedelta(days=5), created_at=NOW - timedelta(days=2))
        assert entitlement_status(s, NOW) is LifecycleStatus.TRIAL

    def test_promo_makes_paid(self):
        """Any promo usage means paid"""
        s = sub(NOW + timedelta(days=5), created_at=NOW - timedelta(days=2), promo=7)
        assert entitlement_status(s, NOW) is LifecycleStatus.PAID

    def test_old_account_is_paid(self):
        """Account older than the trial period"""
        s = sub(NOW + timedelta(days=5), created_at=NOW - timedelta(days=30))
        assert entitlement_status(s, NOW) is LifecycleStatus.PAID

    def test_no_boundary_has_no_status(self):
        """Never had a subscription"""
        assert entitlement_status(sub(None), NOW) is None

    def test_missing_created_at_is_paid(self):
        """Account age unknown"""
        assert entitlement_status(sub(NOW + timedelta(days=1), created_at=None), NOW) is LifecycleStatus.PAID

    def test_lapsed_boundary_measured_at_boundary(self):
        """A lapsed trial stays trial even after the trial period has passed since creation"""
        created = NOW - timedelta(days=20)
        boundary = created + timedelta(days=7)
        assert entitlement_status(sub(boundary, created_at=created), NOW) is LifecycleStatus.TRIAL


class TestClassify:
    """Tests for classify"""

    @pytest.mark.parametrize("offset_days,expected", [
        (0, ReminderWindow.EXPIRED_TODAY),
        (1, ReminderWindow.ONE_DAY_BEFORE),
        (3, ReminderWindow.THREE_DAYS_BEFORE),
        (7, ReminderWindow.WEEK_BEFORE),
        (2, ReminderWindow.NONE),
        (5, ReminderWindow.NONE),
        (30, ReminderWindow.NONE),
    ])
    def test_paid_windows(self, offset_days, expected):
        """Paid subscriber: boundary at local noon offset_days ahead"""
        boundary = datetime(2025, 7, 24, 9, 0, tzinfo=timezone.utc) + timedelta(days=offset_days)
        result = classify(sub(boundary, promo=1), NOW, MOSCOW)
        assert result.status is LifecycleStatus.PAID
        assert result.window is expected

    def test_trial_exemption_from_week_window(self):
        """No promo, boundary exactly 7 days out, created 2 days ago: not in week-before"""
        s = sub(NOW + timedelta(days=7), created_at=NOW - timedelta(days=2))
        result = classify(s, NOW, MOSCOW)
        assert result.is_trial
        assert result.window is ReminderWindow.NONE

    def test_paid_in_week_window(self):
        """Same boundary with a promo is in the week-before window"""
        s = sub(NOW + timedelta(days=7), created_at=NOW - timedelta(days=2), promo=3)
        assert classify(s, NOW, MOSCOW).window is ReminderWindow.WEEK_BEFORE

    def test_trial_three_days(self):
        """Trials do get the three-day reminder"""
        s = sub(NOW + timedelta(days=3), created_at=NOW - timedelta(days=4))
        result = classify(s, NOW, MOSCOW)
        assert result.is_trial
        assert result.window is ReminderWindow.THREE_DAYS_BEFORE

    def test_expired_before_today_has_no_class(self):
        """Boundary before today's local midnight"""
        boundary = datetime(2025, 7, 23, 20, 59, tzinfo=timezone.utc)
        assert classify(sub(boundary), NOW, MOSCOW) == NO_CLASS

    def test_expired_earlier_today_is_expired_today(self):
        """Boundary between local midnight and now"""
        boundary = datetime(2025, 7, 23, 21, 0, tzinfo=timezone.utc)
        assert classify(sub(boundary), NOW, MOSCOW).window is ReminderWindow.EXPIRED_TODAY

    def test_no_boundary_has_no_class(self):
        """Never subscribed"""
        assert classify(sub(None), NOW, MOSCOW) == NO_CLASS
        assert not NO_CLASS.has_class

    @pytest.mark.parametrize("subscriber", [
        None,
        {},
        {"subscription_end": "2025-07-25"},
        {"subscription_end": 12345},
        {"subscription_end": NOW, "created_at": "yesterday"},
        {"subscription_end": datetime.max},
        object(),
    ])
    def test_totality_never_raises(self, subscriber):
        """Malformed input yields at most one class and never an exception"""
        result = classify(subscriber, NOW, MOSCOW)
        assert result.window in set(ReminderWindow)

    def test_exactly_one_window_per_boundary(self):
        """Each hour over ten days maps to at most one window"""
        windows = [w for w in ReminderWindow if w is not ReminderWindow.NONE]
        for hours in range(-30, 24 * 10):
            boundary = NOW + timedelta(hours=hours)
            matches = [w for w in windows if is_in_window(boundary, w, NOW, MOSCOW)]
            assert len(matches) <= 1
            result = classify(sub(boundary, promo=1), NOW, MOSCOW)
            if matches:
                assert result.window is matches[0]
            else:
                assert result.window is ReminderWindow.NONE


class TestAccessDecisions:
    """Tests for is_active and access_action"""

    def test_boundary_inclusivity(self):
        """Boundary of today 23:59:59.999 is active at noon and expired-today after midnight"""
        boundary = datetime(2025, 7, 24, 23, 59, 59, 999000, tzinfo=timezone.utc)
        s = sub(boundary)
        noon = datetime(2025, 7, 24, 12, 0, tzinfo=timezone.utc)
        next_midnight = datetime(2025, 7, 25, 0, 0, tzinfo=timezone.utc)

        assert is_active(s, noon) is True
        assert access_action(s, noon) is AccessAction.ENABLE
        assert classify(s, next_midnight, MOSCOW).window is ReminderWindow.EXPIRED_TODAY
        assert access_action(s, next_midnight) is AccessAction.DISABLE

    def test_boundary_equal_now_is_active(self):
        """boundary == now stays enabled"""
        assert access_action(sub(NOW), NOW) is AccessAction.ENABLE

    def test_partition(self):
        """Every subscriber with a boundary is exactly one of disable/enable"""
        subscribers = [sub(NOW + timedelta(minutes=m)) for m in range(-3000, 3000, 17)]
        subscribers.append(sub(None))

        disable = [s for s in subscribers if access_action(s, NOW) is AccessAction.DISABLE]
        enable = [s for s in subscribers if access_action(s, NOW) is AccessAction.ENABLE]
        with_boundary = [s for s in subscribers if s["subscription_end"] is not None]

        assert not {id(s) for s in disable} & {id(s) for s in enable}
        assert len(disable) + len(enable) == len(with_boundary)
        assert access_action(sub(None), NOW) is AccessAction.NONE


class TestScenario:
    """Created 2025-07-17T14:30Z, boundary 2025-07-24T23:59:59.999Z, no promo"""

    SUBSCRIBER = sub(
        datetime(2025, 7, 24, 23, 59, 59, 999000, tzinfo=timezone.utc),
        created_at=datetime(2025, 7, 17, 14, 30, tzinfo=timezone.utc),
    )

    def test_one_day_before_on_the_24th(self):
        """At 2025-07-24T10:00Z: one-day window, trial"""
        result = classify(self.SUBSCRIBER, NOW, MOSCOW)
        assert result.is_trial
        assert result.window is ReminderWindow.ONE_DAY_BEFORE

    def test_expired_today_on_the_25th(self):
        """At 2025-07-25T00:00Z: expired-today, trial, disable not enable"""
        at = datetime(2025, 7, 25, 0, 0, tzinfo=timezone.utc)
        result = classify(self.SUBSCRIBER, at, MOSCOW)
        assert result.is_trial
        assert result.window is ReminderWindow.EXPIRED_TODAY
        assert access_action(self.SUBSCRIBER, at) is AccessAction.DISABLE
