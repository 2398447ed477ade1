"""
Structured summary events.

Every job and service run ends with one record carrying:
- component, operation, outcome
- correlation_id (the current job run unless given)
- duration_ms and reason when known

Fields travel in ``extra`` so a JSON formatter can pick them up; the
message stays human-readable. Never pass secrets or message texts.
"""
import logging
from logging import Logger
from typing import Optional

from app.utils.logging_helpers import get_correlation_id

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def log_event(
    logger: Logger,
    *,
    component: str,
    operation: str,
    outcome: str,
    correlation_id: Optional[str] = None,
    duration_ms: Optional[int] = None,
    reason: Optional[str] = None,
    level: str = "info",
    message: Optional[str] = None,
) -> None:
    """
    Emit one summary event.

    Args:
        component: "notifications", "access_sync", "scheduler", "wireguard", ...
        operation: e.g. "dispatch_one_day_before", "reconcile", "health_check"
        outcome: "success" | "degraded" | "failed" | "cancelled"
        reason: short non-PII explanation, appended to the default message
        level: log level name; unknown names log at INFO
    """
    extra = {
        "component": component,
        "operation": operation,
        "outcome": outcome,
    }
    correlation_id = correlation_id or get_correlation_id()
    if correlation_id:
        extra["correlation_id"] = correlation_id
    if duration_ms is not None:
        extra["duration_ms"] = duration_ms
    if reason is not None:
        extra["reason"] = reason

    if message is None:
        message = f"{component.upper()}_{operation.upper()} [outcome={outcome}"
        if duration_ms is not None:
            message += f", duration_ms={duration_ms}"
        message += "]"
        if reason:
            message += f" {reason}"

    logger.log(_LEVELS.get(level.lower(), logging.INFO), message, extra=extra)
