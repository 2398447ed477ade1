"""
Notification Service Layer

Reminder dispatch, operator broadcasts, templates and the Telegram channel.
"""

from app.services.notifications.dispatcher import NotificationDispatcher
from app.services.notifications.channel import TelegramChannel
from app.services.notifications.templates import (
    compose_reminder,
    compose_access_suspended,
    reminder_keyboard,
    access_suspended_keyboard,
    format_boundary_date,
)

from app.services.notifications.exceptions import (
    NotificationServiceError,
    DeliveryError,
    RecipientUnreachableError,
    TemplateNotApplicableError,
)

__all__ = [
    "NotificationDispatcher",
    "TelegramChannel",
    "compose_reminder",
    "compose_access_suspended",
    "reminder_keyboard",
    "access_suspended_keyboard",
    "format_boundary_date",
    "NotificationServiceError",
    "DeliveryError",
    "RecipientUnreachableError",
    "TemplateNotApplicableError",
]
