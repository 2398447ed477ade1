"""
Ежедневная синхронизация доступа WireGuard с датами окончания подписок.

Отключает клиентов с истекшей подпиской (и один раз уведомляет пользователя),
включает клиентов с активной подпиской.
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional

from app.services.access.synchronizer import AccessSynchronizer

logger = logging.getLogger(__name__)


async def run_access_sync(
    synchronizer: AccessSynchronizer,
    now: Optional[datetime] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> dict:
    logger.info("ACCESS_SYNC_JOB_START")
    result = await synchronizer.reconcile(now=now, cancel_event=cancel_event)
    summary = result.as_dict()
    logger.info(
        f"ACCESS_SYNC_JOB_DONE [disabled={summary['disabled']}, enabled={summary['enabled']}, "
        f"disabled_errors={summary['disabled_errors']}, enabled_errors={summary['enabled_errors']}]"
    )
    return summary
