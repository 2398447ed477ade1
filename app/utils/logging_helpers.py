"""
Structured logging helpers for scheduled jobs.

Logging contract:
- correlation_id: Unique identifier of one job run
- component: "job"
- operation: "<job_name>_run"
- outcome: success | degraded | failed | skipped

Failure taxonomy:
- infra_error: Infrastructure errors (DB, network, timeouts)
- dependency_error: External dependency errors (WireGuard gateway, Telegram)
- domain_error: Business logic errors (templates, ledger contract)
- unexpected_error: Unexpected errors (bugs, unhandled exceptions)
"""

import asyncio
import json
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

import asyncpg
import httpx

# Context variable for correlation ID (per job run)
_correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

logger = logging.getLogger(__name__)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def log_job_run_start(job_name: str, run_number: Optional[int] = None, **kwargs) -> str:
    """
    Log the start of one scheduled job run.

    Args:
        job_name: Name of the job (e.g., "week_reminder")
        run_number: Sequential run number since process start (optional)
        **kwargs: Additional context to log

    Returns:
        Correlation ID for this run
    """
    correlation_id = generate_correlation_id()
    set_correlation_id(correlation_id)

    log_data = {
        "event": "ITERATION_START",
        "worker": job_name,
        "correlation_id": correlation_id,
        "component": "job",
        "operation": f"{job_name}_run",
        "timestamp": _utc_timestamp(),
    }

    if run_number is not None:
        log_data["iteration_number"] = run_number

    if kwargs:
        log_data.update(kwargs)

    log_data["level"] = "INFO"
    logger.info(json.dumps(log_data, default=str))
    return correlation_id


def log_job_run_end(
    job_name: str,
    outcome: str,  # "success" | "degraded" | "failed" | "skipped"
    items_processed: Optional[int] = None,
    error_type: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> None:
    """
    Log the end of one scheduled job run.

    Level follows the outcome: failed → ERROR, degraded → WARNING, else INFO.
    """
    log_data = {
        "event": "ITERATION_END",
        "worker": job_name,
        "correlation_id": get_correlation_id(),
        "component": "job",
        "operation": f"{job_name}_run",
        "outcome": outcome,
        "timestamp": _utc_timestamp(),
    }

    if items_processed is not None:
        log_data["items_processed"] = items_processed

    if error_type:
        log_data["error_type"] = error_type

    if duration_ms is not None:
        log_data["duration_ms"] = duration_ms

    if kwargs:
        log_data.update(kwargs)

    if outcome == "failed":
        log_data["level"] = "ERROR"
        logger.error(json.dumps(log_data, default=str))
    elif outcome == "degraded":
        log_data["level"] = "WARNING"
        logger.warning(json.dumps(log_data, default=str))
    else:
        log_data["level"] = "INFO"
        logger.info(json.dumps(log_data, default=str))


def classify_error(exception: BaseException) -> str:
    """
    Classify error type for failure taxonomy.

    Returns:
        "infra_error" | "dependency_error" | "domain_error" | "unexpected_error"
    """
    from aiogram.exceptions import TelegramAPIError

    from app.services.ledger.exceptions import LedgerError
    from app.services.notifications.exceptions import (
        DeliveryError,
        NotificationServiceError,
    )
    from app.services.subscribers.exceptions import (
        InvalidBroadcastTargetError,
        SubscriberStoreError,
    )
    from app.services.wireguard.exceptions import WireGuardClientError

    # Dependency errors (external APIs)
    if isinstance(exception, (WireGuardClientError, DeliveryError, TelegramAPIError, httpx.HTTPError)):
        return "dependency_error"

    # Infrastructure errors (DB, network, timeouts)
    if isinstance(exception, (
        SubscriberStoreError,
        LedgerError,
        asyncpg.PostgresError,
        asyncio.TimeoutError,
        ConnectionError,
        OSError,
    )):
        return "infra_error"

    # Domain errors (business logic)
    if isinstance(exception, (NotificationServiceError, InvalidBroadcastTargetError)):
        return "domain_error"

    return "unexpected_error"
