"""
Notification templates and inline keyboards.

Eight reminder texts keyed by (window, trial flag); week-before has no trial
variant. Dates are rendered as DD.MM.YYYY in the operating timezone.
"""

from datetime import datetime, tzinfo
from typing import Optional

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from app.i18n import get_text
from app.services.lifecycle.service import ReminderWindow, ensure_utc
from app.services.notifications.exceptions import TemplateNotApplicableError

_WINDOW_KEYS = {
    ReminderWindow.WEEK_BEFORE: "week",
    ReminderWindow.THREE_DAYS_BEFORE: "three_days",
    ReminderWindow.ONE_DAY_BEFORE: "one_day",
    ReminderWindow.EXPIRED_TODAY: "expired",
}


def format_boundary_date(boundary: Optional[datetime], tz: tzinfo) -> str:
    if boundary is None:
        return "-"
    return ensure_utc(boundary).astimezone(tz).strftime("%d.%m.%Y")


def _variant(is_trial: bool) -> str:
    return "trial" if is_trial else "paid"


def compose_reminder(
    window: ReminderWindow,
    is_trial: bool,
    boundary: Optional[datetime],
    tz: tzinfo,
    language: str = "ru",
) -> str:
    """
    Reminder text for a window.

    Raises:
        TemplateNotApplicableError: window NONE, or week-before for a trial
    """
    if window not in _WINDOW_KEYS:
        raise TemplateNotApplicableError(f"No reminder for window {window!r}")
    if window is ReminderWindow.WEEK_BEFORE and is_trial:
        raise TemplateNotApplicableError("Trial subscribers get no week-before reminder")

    key = f"reminder.{_WINDOW_KEYS[window]}.{_variant(is_trial)}"
    return get_text(language, key, date=format_boundary_date(boundary, tz))


def compose_access_suspended(
    is_trial: bool,
    boundary: Optional[datetime],
    tz: tzinfo,
    language: str = "ru",
) -> str:
    return get_text(
        language,
        f"access.suspended.{_variant(is_trial)}",
        date=format_boundary_date(boundary, tz),
    )


def reminder_keyboard(window: ReminderWindow, language: str = "ru") -> InlineKeyboardMarkup:
    """Renew + promo on the first row; check subscription, or main menu once expired."""
    if window is ReminderWindow.EXPIRED_TODAY:
        return InlineKeyboardMarkup(inline_keyboard=[
            [
                InlineKeyboardButton(text=get_text(language, "kb.buy"), callback_data="buy_subscription"),
                InlineKeyboardButton(text=get_text(language, "kb.promo"), callback_data="enter_promo"),
            ],
            [InlineKeyboardButton(text=get_text(language, "kb.main_menu"), callback_data="back_to_menu")],
        ])
    return InlineKeyboardMarkup(inline_keyboard=[
        [
            InlineKeyboardButton(text=get_text(language, "kb.renew"), callback_data="buy_subscription"),
            InlineKeyboardButton(text=get_text(language, "kb.promo"), callback_data="enter_promo"),
        ],
        [InlineKeyboardButton(text=get_text(language, "kb.check_subscription"), callback_data="subscription")],
    ])


def access_suspended_keyboard(language: str = "ru") -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [
            InlineKeyboardButton(text=get_text(language, "kb.buy"), callback_data="buy_subscription"),
            InlineKeyboardButton(text=get_text(language, "kb.promo_short"), callback_data="enter_promo"),
        ],
        [InlineKeyboardButton(text=get_text(language, "kb.main_menu"), callback_data="back_to_menu")],
    ])
