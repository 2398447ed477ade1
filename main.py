import asyncio
import logging
from datetime import timedelta
from zoneinfo import ZoneInfo

from aiogram import Bot

from app.core.logging_config import setup_logging
import config

setup_logging(config.LOG_LEVEL)
logger = logging.getLogger(__name__)

import database
import reminders
import access_sync
import weekly_stats
from scheduler import run_daily
from app.core.structured_logger import log_event
from app.services.access.synchronizer import AccessSynchronizer
from app.services.ledger.service import EventLedger
from app.services.notifications.channel import TelegramChannel
from app.services.notifications.dispatcher import NotificationDispatcher
from app.services.subscribers.service import SubscriberSnapshotReader
from app.services.wireguard.client import WireGuardClient


async def main():
    config.validate_required()

    tz = ZoneInfo(config.OPERATING_TIMEZONE)
    trial_period = timedelta(days=config.TRIAL_PERIOD_DAYS)
    logger.info(
        f"SCHEDULER_STARTING [env={config.APP_ENV}, tz={config.OPERATING_TIMEZONE}, "
        f"trial_days={config.TRIAL_PERIOD_DAYS}, admins={len(config.ADMIN_IDS)}]"
    )

    bot = Bot(token=config.BOT_TOKEN)

    # ====================================================================================
    # SAFE STARTUP GUARD: процесс стартует даже если БД недоступна.
    # Каждый запуск задачи получит SubscriberStoreError и дождется следующего.
    # ====================================================================================
    if await database.init_db():
        logger.info("✅ База данных инициализирована успешно")
    else:
        logger.error("❌ DB INIT FAILED: jobs will fail until the database is reachable")

    wireguard = None
    if config.WIREGUARD_ENABLED:
        wireguard = WireGuardClient(
            config.WIREGUARD_API,
            config.WIREGUARD_PASSWORD,
            timeout=config.WIREGUARD_TIMEOUT,
            qr_size=config.WIREGUARD_QR_SIZE,
        )
        healthy = await wireguard.health_check()
        log_event(
            logger,
            component="wireguard",
            operation="health_check",
            outcome="success" if healthy else "degraded",
            level="info" if healthy else "warning",
        )
    else:
        logger.warning("WIREGUARD_DISABLED: access sync job will not be scheduled")

    reader = SubscriberSnapshotReader(database, tz)
    ledger = EventLedger(database, tz)
    channel = TelegramChannel(bot, timeout=config.TELEGRAM_SEND_TIMEOUT)
    dispatcher = NotificationDispatcher(
        channel,
        reader,
        ledger,
        tz,
        send_delay=config.SEND_DELAY_SECONDS,
        language=config.NOTIFICATION_LANGUAGE,
        trial_period=trial_period,
        admin_ids=config.ADMIN_IDS,
    )

    background_tasks = []

    def schedule(name, job, hour, weekday=None):
        task = asyncio.create_task(
            run_daily(
                name,
                job,
                hour=hour,
                tz=tz,
                timeout=config.JOB_TIMEOUT_SECONDS,
                weekday=weekday,
            ),
            name=name,
        )
        background_tasks.append(task)

    if wireguard is not None:
        synchronizer = AccessSynchronizer(
            wireguard,
            channel,
            reader,
            ledger,
            tz,
            delay=config.ACCESS_SYNC_DELAY_SECONDS,
            language=config.NOTIFICATION_LANGUAGE,
            trial_period=trial_period,
        )
        schedule("access_sync", lambda: access_sync.run_access_sync(synchronizer), config.ACCESS_SYNC_HOUR)

    schedule("week_reminder", lambda: reminders.send_week_reminders(dispatcher), config.WEEK_REMINDER_HOUR)
    schedule("one_day_reminder", lambda: reminders.send_one_day_reminders(dispatcher), config.ONE_DAY_REMINDER_HOUR)
    schedule("expired_notice", lambda: reminders.send_expired_notices(dispatcher), config.EXPIRED_NOTICE_HOUR)
    schedule("three_day_reminder", lambda: reminders.send_three_day_reminders(dispatcher), config.THREE_DAY_REMINDER_HOUR)
    schedule(
        "weekly_stats",
        lambda: weekly_stats.send_weekly_stats(dispatcher, database),
        config.WEEKLY_STATS_HOUR,
        weekday=config.WEEKLY_STATS_WEEKDAY,
    )
    logger.info(f"SCHEDULER_STARTED [jobs={len(background_tasks)}]")

    try:
        await asyncio.gather(*background_tasks)
    finally:
        log_event(logger, component="shutdown", operation="shutdown_start", outcome="success")

        for task in background_tasks:
            if not task.done():
                task.cancel()
        for task in background_tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Error during shutdown of task {task.get_name()}: {e}")

        if wireguard is not None:
            await wireguard.close()

        try:
            await database.close_pool()
        except Exception as e:
            logger.error(f"Error closing database pool: {e}")

        await bot.session.close()
        log_event(logger, component="shutdown", operation="shutdown_completed", outcome="success")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Планировщик остановлен")
