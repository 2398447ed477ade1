"""Еженедельная статистика для администраторов"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, Optional

from app.i18n import get_text
from app.services.ledger.exceptions import LedgerWriteError
from app.services.ledger.service import ActionTag, SYSTEM_SUBSCRIBER_ID
from app.services.notifications.dispatcher import NotificationDispatcher
from app.services.notifications.templates import format_boundary_date

logger = logging.getLogger(__name__)

STATS_PERIOD = timedelta(days=7)
PROMO_ACTIVATED_ACTION = "PROMO_CODE_ACTIVATED"


async def collect_weekly_stats(store, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Счетчики за последние 7 дней. Ошибки БД пробрасываются."""
    if now is None:
        now = datetime.now(timezone.utc)
    week_ago = now - STATS_PERIOD

    new_users, active, expired, payments, promo_used = await asyncio.gather(
        store.count_new_users(week_ago),
        store.count_active_subscriptions(now),
        store.count_expired_subscriptions(week_ago, now),
        store.get_completed_payments_summary(week_ago),
        store.count_events_since(PROMO_ACTIVATED_ACTION, week_ago),
    )

    return {
        "new_users": new_users,
        "active_subscriptions": active,
        "expired_subscriptions": expired,
        "payments_count": payments["count"],
        "revenue_kopecks": payments["total"],
        "promo_codes_used": promo_used,
        "week_start": week_ago,
        "week_end": now,
    }


def format_weekly_stats(stats: Dict[str, Any], tz: tzinfo, language: str = "ru") -> str:
    revenue = f"{stats['revenue_kopecks'] / 100:.2f}"
    return get_text(
        language,
        "admin.weekly_stats",
        week_start=format_boundary_date(stats["week_start"], tz),
        week_end=format_boundary_date(stats["week_end"], tz),
        new_users=stats["new_users"],
        active_subscriptions=stats["active_subscriptions"],
        expired_subscriptions=stats["expired_subscriptions"],
        payments_count=stats["payments_count"],
        revenue=revenue,
        promo_codes_used=stats["promo_codes_used"],
    )


async def send_weekly_stats(
    dispatcher: NotificationDispatcher,
    store,
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """
    Отправить статистику всем администраторам.

    Ошибка доставки одному админу не останавливает остальных.
    """
    stats = await collect_weekly_stats(store, now)
    text = format_weekly_stats(stats, dispatcher.tz, dispatcher.language)

    delivered = await dispatcher.notify_admins(text)
    errors = len(dispatcher.admin_ids) - delivered
    logger.info(f"WEEKLY_STATS_SENT [delivered={delivered}, errors={errors}]")

    try:
        await dispatcher.ledger.record(
            SYSTEM_SUBSCRIBER_ID,
            ActionTag.WEEKLY_STATS_SENT,
            {
                "admins": len(dispatcher.admin_ids),
                "delivered": delivered,
                "new_users": stats["new_users"],
                "payments_count": stats["payments_count"],
            },
        )
    except LedgerWriteError as e:
        logger.error(f"WEEKLY_STATS_LEDGER_WRITE_FAILED: {e}")

    return {"sent": delivered, "errors": errors}
