"""
Operator broadcast to a target group of subscribers (all / active / expired).

No daily-once constraint: every call sends again. Admins receive a
completion summary.
"""
import logging
from typing import Dict

from app.services.notifications.dispatcher import NotificationDispatcher
from app.utils.logging_helpers import generate_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)


async def run_broadcast(
    dispatcher: NotificationDispatcher,
    text: str,
    target: str = "all",
    notify_admins_on_complete: bool = True,
) -> Dict[str, int]:
    """
    Send text to every recipient of target.

    Raises:
        InvalidBroadcastTargetError: unknown target
        SubscriberStoreError: recipient list unavailable
        ValueError: empty text
    """
    if not text or not text.strip():
        raise ValueError("Broadcast text is empty")

    correlation_id = generate_correlation_id()
    set_correlation_id(correlation_id)
    logger.info(f"ADMIN_BROADCAST_START [correlation_id={correlation_id}, target={target}, length={len(text)}]")

    result = await dispatcher.dispatch_broadcast(text, target)

    if notify_admins_on_complete:
        await dispatcher.notify_broadcast_completed(target, result)

    logger.info(
        f"ADMIN_BROADCAST_DONE [correlation_id={correlation_id}, sent={result['sent']}, errors={result['errors']}]"
    )
    return result
