"""Модуль для отправки напоминаний об окончании подписки"""
import asyncio
import logging
from datetime import datetime
from typing import Dict, Optional

from app.services.lifecycle.service import ReminderWindow
from app.services.notifications.dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)


async def send_window_reminders(
    dispatcher: NotificationDispatcher,
    window: ReminderWindow,
    now: Optional[datetime] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> Dict[str, int]:
    """Отправить напоминания одного окна. SubscriberStoreError пробрасывается в планировщик."""
    logger.info(f"REMINDER_JOB_START [window={window.value}]")
    result = await dispatcher.dispatch_window(window, now=now, cancel_event=cancel_event)
    logger.info(
        f"REMINDER_JOB_DONE [window={window.value}, sent={result['sent']}, errors={result['errors']}]"
    )
    return result


async def send_week_reminders(dispatcher: NotificationDispatcher, **kwargs) -> Dict[str, int]:
    """За неделю до окончания (только платные подписки)"""
    return await send_window_reminders(dispatcher, ReminderWindow.WEEK_BEFORE, **kwargs)


async def send_three_day_reminders(dispatcher: NotificationDispatcher, **kwargs) -> Dict[str, int]:
    return await send_window_reminders(dispatcher, ReminderWindow.THREE_DAYS_BEFORE, **kwargs)


async def send_one_day_reminders(dispatcher: NotificationDispatcher, **kwargs) -> Dict[str, int]:
    return await send_window_reminders(dispatcher, ReminderWindow.ONE_DAY_BEFORE, **kwargs)


async def send_expired_notices(dispatcher: NotificationDispatcher, **kwargs) -> Dict[str, int]:
    """Подписка истекает сегодня"""
    return await send_window_reminders(dispatcher, ReminderWindow.EXPIRED_TODAY, **kwargs)
