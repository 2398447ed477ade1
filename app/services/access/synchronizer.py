"""
Access Synchronizer

Daily reconciliation of gateway client state with subscription boundaries.

Disable pass: boundary < now, config issued, gate id present.
    disable is called every run so out-of-band re-enables are healed;
    the "access suspended" message is sent once per lapse (ledger entry
    at or after the boundary).
Enable pass: boundary >= now, gate id present.
    enable is called unconditionally; no per-subscriber ledger entry.

One summary entry under the system subscriber id closes the run.
"""

import asyncio
import logging
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

from app.core.structured_logger import log_event
from app.services.ledger.exceptions import LedgerReadError, LedgerWriteError
from app.services.ledger.service import ActionTag, EventLedger, SYSTEM_SUBSCRIBER_ID
from app.services.lifecycle.service import (
    DEFAULT_TRIAL_PERIOD,
    LifecycleStatus,
    ensure_utc,
    entitlement_status,
)
from app.services.notifications.exceptions import DeliveryError
from app.services.notifications.templates import (
    access_suspended_keyboard,
    compose_access_suspended,
)
from app.services.subscribers.service import SubscriberSnapshotReader
from app.services.wireguard.exceptions import GatewayError

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    disabled: int = 0
    enabled: int = 0
    disabled_errors: int = 0
    enabled_errors: int = 0
    notices_sent: int = 0
    notice_errors: int = 0
    total_expired: int = 0
    total_active: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


class AccessSynchronizer:
    def __init__(
        self,
        gateway,
        channel,
        reader: SubscriberSnapshotReader,
        ledger: EventLedger,
        tz: tzinfo,
        delay: float = 0.05,
        language: str = "ru",
        trial_period: timedelta = DEFAULT_TRIAL_PERIOD,
    ):
        self.gateway = gateway
        self.channel = channel
        self.reader = reader
        self.ledger = ledger
        self.tz = tz
        self.delay = delay
        self.language = language
        self.trial_period = trial_period

    async def reconcile(
        self,
        now: Optional[datetime] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ReconcileResult:
        """
        Run both passes.

        Raises:
            SubscriberStoreError: a candidate list is unavailable
        """
        if now is None:
            now = datetime.now(timezone.utc)
        start = time.monotonic()

        expired = await self.reader.disable_candidates(now)
        active = await self.reader.enable_candidates(now)
        result = ReconcileResult(total_expired=len(expired), total_active=len(active))
        logger.info(f"ACCESS_SYNC_CANDIDATES [expired={len(expired)}, active={len(active)}]")

        for subscriber in expired:
            if cancel_event is not None and cancel_event.is_set():
                logger.warning("ACCESS_SYNC_CANCELLED [pass=disable]")
                break
            await self._disable_one(subscriber, now, result)
            await asyncio.sleep(self.delay)

        for subscriber in active:
            if cancel_event is not None and cancel_event.is_set():
                logger.warning("ACCESS_SYNC_CANCELLED [pass=enable]")
                break
            await self._enable_one(subscriber, result)
            await asyncio.sleep(self.delay)

        logger.info(
            f"ACCESS_SYNC_RESULT [disabled={result.disabled}/{result.total_expired}, "
            f"disable_errors={result.disabled_errors}, enabled={result.enabled}/{result.total_active}, "
            f"enable_errors={result.enabled_errors}, notices={result.notices_sent}]"
        )

        try:
            await self.ledger.record(
                SYSTEM_SUBSCRIBER_ID,
                ActionTag.ACCESS_SYNC_COMPLETED,
                {**result.as_dict(), "processed_at": datetime.now(timezone.utc).isoformat()},
            )
        except LedgerWriteError as e:
            logger.error(f"ACCESS_SYNC_SUMMARY_WRITE_FAILED: {e}")

        errors = result.disabled_errors + result.enabled_errors + result.notice_errors
        log_event(
            logger,
            component="access_sync",
            operation="reconcile",
            outcome="success" if errors == 0 else "degraded",
            duration_ms=int((time.monotonic() - start) * 1000),
            reason=f"disabled={result.disabled} enabled={result.enabled} errors={errors}",
        )
        return result

    async def _disable_one(self, subscriber: dict, now: datetime, result: ReconcileResult) -> None:
        subscriber_id = subscriber.get("id")
        gate_id = subscriber.get("wg_id")
        try:
            if await self.gateway.disable(gate_id):
                result.disabled += 1
                logger.info(f"ACCESS_SYNC_DISABLED [user={subscriber_id}, wg_id={gate_id}]")
        except GatewayError as e:
            result.disabled_errors += 1
            logger.error(f"ACCESS_SYNC_DISABLE_FAILED [user={subscriber_id}, wg_id={gate_id}]: {e}")
            return
        except asyncio.CancelledError:
            raise
        except Exception as e:
            result.disabled_errors += 1
            logger.exception(f"ACCESS_SYNC_DISABLE_ERROR [user={subscriber_id}]: {type(e).__name__}")
            return

        await self._send_suspended_notice(subscriber, now, result)

    async def _send_suspended_notice(self, subscriber: dict, now: datetime, result: ReconcileResult) -> None:
        subscriber_id = subscriber.get("id")
        boundary = ensure_utc(subscriber.get("subscription_end"))

        try:
            if await self.ledger.has_fired(subscriber_id, ActionTag.ACCESS_DISABLED, since=boundary):
                return
        except LedgerReadError as e:
            result.notice_errors += 1
            logger.error(f"ACCESS_SYNC_LEDGER_CHECK_FAILED [user={subscriber_id}]: {e}")
            return

        is_trial = entitlement_status(subscriber, now, self.trial_period) is LifecycleStatus.TRIAL
        try:
            await self.channel.send(
                subscriber.get("telegram_id"),
                compose_access_suspended(is_trial, boundary, self.tz, self.language),
                reply_markup=access_suspended_keyboard(self.language),
            )
        except DeliveryError as e:
            result.notice_errors += 1
            logger.warning(f"ACCESS_SYNC_NOTICE_FAILED [user={subscriber_id}]: {e}")
            return
        except asyncio.CancelledError:
            raise
        except Exception as e:
            result.notice_errors += 1
            logger.exception(f"ACCESS_SYNC_NOTICE_ERROR [user={subscriber_id}]: {type(e).__name__}")
            return

        result.notices_sent += 1
        try:
            await self.ledger.record(
                subscriber_id,
                ActionTag.ACCESS_DISABLED,
                {
                    "subscription_end": boundary.isoformat() if boundary else None,
                    "wg_id": subscriber.get("wg_id"),
                    "is_trial_user": is_trial,
                    "disabled_at": datetime.now(timezone.utc).isoformat(),
                },
            )
        except LedgerWriteError as e:
            logger.error(f"ACCESS_SYNC_LEDGER_WRITE_FAILED [user={subscriber_id}]: {e}")

    async def _enable_one(self, subscriber: dict, result: ReconcileResult) -> None:
        subscriber_id = subscriber.get("id")
        gate_id = subscriber.get("wg_id")
        try:
            if await self.gateway.enable(gate_id):
                result.enabled += 1
                logger.debug(f"ACCESS_SYNC_ENABLED [user={subscriber_id}, wg_id={gate_id}]")
        except GatewayError as e:
            result.enabled_errors += 1
            logger.error(f"ACCESS_SYNC_ENABLE_FAILED [user={subscriber_id}, wg_id={gate_id}]: {e}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            result.enabled_errors += 1
            logger.exception(f"ACCESS_SYNC_ENABLE_ERROR [user={subscriber_id}]: {type(e).__name__}")
