"""
Notification Dispatcher

Sends reminder messages for one window and operator broadcasts.

Per-subscriber contract (reminder windows):
1. skip if the window's action already fired today (ledger presence check)
2. compose (window, trial) template
3. send
4. on success record ledger entry, count sent
5. on failure count error, log, continue

One subscriber's failure never aborts the batch.
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, Iterable, Optional

from app.core.structured_logger import log_event
from app.i18n import get_text
from app.services.ledger.exceptions import LedgerReadError, LedgerWriteError
from app.services.ledger.service import ActionTag, EventLedger, action_for_window
from app.services.lifecycle.service import (
    DEFAULT_TRIAL_PERIOD,
    ReminderWindow,
    classify,
)
from app.services.notifications.exceptions import DeliveryError
from app.services.notifications.templates import compose_reminder, reminder_keyboard
from app.services.subscribers.service import (
    BroadcastTarget,
    SubscriberSnapshotReader,
    parse_broadcast_target,
)

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(
        self,
        channel,
        reader: SubscriberSnapshotReader,
        ledger: EventLedger,
        tz: tzinfo,
        send_delay: float = 0.05,
        language: str = "ru",
        trial_period: timedelta = DEFAULT_TRIAL_PERIOD,
        admin_ids: Iterable[int] = (),
    ):
        self.channel = channel
        self.reader = reader
        self.ledger = ledger
        self.tz = tz
        self.send_delay = send_delay
        self.language = language
        self.trial_period = trial_period
        self.admin_ids = list(admin_ids)

    async def dispatch_window(
        self,
        window: ReminderWindow,
        now: Optional[datetime] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Dict[str, int]:
        """
        Send the reminder of one window to every eligible subscriber.

        Raises:
            SubscriberStoreError: candidate list unavailable (whole run fails)
            ValueError: window is ReminderWindow.NONE
        """
        if now is None:
            now = datetime.now(timezone.utc)
        action = action_for_window(window)
        start = time.monotonic()

        candidates = await self.reader.in_window(window, now)
        logger.info(f"REMINDER_CANDIDATES_FOUND [window={window.value}, count={len(candidates)}]")

        sent = 0
        errors = 0
        skipped = 0

        for subscriber in candidates:
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(f"REMINDER_DISPATCH_CANCELLED [window={window.value}, sent={sent}]")
                break

            subscriber_id = subscriber.get("id")
            telegram_id = subscriber.get("telegram_id")

            lifecycle = classify(subscriber, now, self.tz, self.trial_period)
            if lifecycle.window is not window:
                # Trial in the week window, or boundary moved since the query
                skipped += 1
                continue

            try:
                if await self.ledger.has_fired_today(subscriber_id, action, now):
                    skipped += 1
                    continue
            except LedgerReadError as e:
                errors += 1
                logger.error(f"REMINDER_LEDGER_CHECK_FAILED [user={subscriber_id}, window={window.value}]: {e}")
                continue

            try:
                text = compose_reminder(
                    window,
                    lifecycle.is_trial,
                    subscriber.get("subscription_end"),
                    self.tz,
                    self.language,
                )
                await self.channel.send(
                    telegram_id,
                    text,
                    reply_markup=reminder_keyboard(window, self.language),
                )
            except DeliveryError as e:
                errors += 1
                logger.warning(f"REMINDER_SEND_FAILED [user={telegram_id}, window={window.value}]: {e}")
                await asyncio.sleep(self.send_delay)
                continue
            except asyncio.CancelledError:
                raise
            except Exception as e:
                errors += 1
                logger.exception(f"REMINDER_SEND_ERROR [user={telegram_id}, window={window.value}]: {type(e).__name__}")
                await asyncio.sleep(self.send_delay)
                continue

            sent += 1
            logger.info(
                f"REMINDER_SENT [user={telegram_id}, window={window.value}, "
                f"trial={lifecycle.is_trial}]"
            )

            boundary = subscriber.get("subscription_end")
            try:
                await self.ledger.record(
                    subscriber_id,
                    action,
                    {
                        "boundary_timestamp": boundary.isoformat() if boundary else None,
                        "trial_flag": lifecycle.is_trial,
                        "window_tag": window.value,
                    },
                )
            except LedgerWriteError as e:
                # Message is delivered; next run may repeat it
                logger.error(f"REMINDER_LEDGER_WRITE_FAILED [user={subscriber_id}, window={window.value}]: {e}")

            await asyncio.sleep(self.send_delay)

        duration_ms = int((time.monotonic() - start) * 1000)
        log_event(
            logger,
            component="notifications",
            operation=f"dispatch_{window.value}",
            outcome="success" if errors == 0 else "degraded",
            duration_ms=duration_ms,
            reason=f"sent={sent} errors={errors} skipped={skipped}",
        )
        return {"sent": sent, "errors": errors}

    async def dispatch_broadcast(
        self,
        text: str,
        target=BroadcastTarget.ALL,
        now: Optional[datetime] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Dict[str, int]:
        """
        Send an operator message to every subscriber of a target group.

        No daily-once check: every call sends again.

        Raises:
            InvalidBroadcastTargetError: unknown target
            SubscriberStoreError: recipient list unavailable
        """
        target = parse_broadcast_target(target)
        if now is None:
            now = datetime.now(timezone.utc)

        logger.info(f"BROADCAST_START [target={target.value}]")
        recipients = await self.reader.broadcast_recipients(target, now)
        logger.info(f"BROADCAST_RECIPIENTS_FOUND [target={target.value}, count={len(recipients)}]")

        sent = 0
        errors = 0

        for subscriber in recipients:
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(f"BROADCAST_CANCELLED [target={target.value}, sent={sent}]")
                break

            subscriber_id = subscriber.get("id")
            telegram_id = subscriber.get("telegram_id")
            try:
                await self.channel.send(telegram_id, text)
            except DeliveryError as e:
                errors += 1
                logger.warning(f"BROADCAST_SEND_FAILED [user={telegram_id}]: {e}")
                await asyncio.sleep(self.send_delay)
                continue
            except asyncio.CancelledError:
                raise
            except Exception as e:
                errors += 1
                logger.exception(f"BROADCAST_SEND_ERROR [user={telegram_id}]: {type(e).__name__}")
                await asyncio.sleep(self.send_delay)
                continue

            sent += 1
            try:
                await self.ledger.record(
                    subscriber_id,
                    ActionTag.BROADCAST_SENT,
                    {
                        "target_type": target.value,
                        "message_length": len(text),
                        "sent_at": datetime.now(timezone.utc).isoformat(),
                    },
                )
            except LedgerWriteError as e:
                logger.error(f"BROADCAST_LEDGER_WRITE_FAILED [user={subscriber_id}]: {e}")

            await asyncio.sleep(self.send_delay)

        logger.info(f"BROADCAST_COMPLETED [target={target.value}, sent={sent}, errors={errors}]")
        return {"sent": sent, "errors": errors}

    async def notify_admins(self, text: str) -> int:
        """
        Send a report to every configured admin id.

        Returns:
            Number of admins that received the message
        """
        if not self.admin_ids:
            logger.warning("ADMIN_NOTIFY_SKIPPED: ADMIN_IDS not configured")
            return 0

        delivered = 0
        for admin_id in self.admin_ids:
            try:
                await self.channel.send(admin_id, text)
                delivered += 1
            except DeliveryError as e:
                logger.error(f"ADMIN_NOTIFY_FAILED [admin={admin_id}]: {e}")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.exception(f"ADMIN_NOTIFY_ERROR [admin={admin_id}]: {type(e).__name__}")
        return delivered

    async def notify_broadcast_completed(self, target, result: Dict[str, int]) -> int:
        target = parse_broadcast_target(target)
        text = get_text(
            self.language,
            "admin.broadcast_completed",
            target=target.value,
            sent=result.get("sent", 0),
            errors=result.get("errors", 0),
        )
        return await self.notify_admins(text)
