import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import asyncpg

import config

logger = logging.getLogger(__name__)

# ====================================================================================
# SAFE STARTUP GUARD: глобальный флаг готовности базы данных
# ====================================================================================
# Таблицы users / event_logs / payments принадлежат основному боту. Этот процесс
# только читает users/payments и дописывает строки в event_logs.
# ====================================================================================
DB_READY: bool = False

_pool: Optional[asyncpg.Pool] = None
_pool_lock = asyncio.Lock()

_SUBSCRIBER_COLUMNS = """id, telegram_id, username, subscription_end, created_at,
                         promo_code_used_id, wg_id, config_issued, is_deleted"""


# ====================================================================================
# UTC HELPERS: TIMESTAMP WITHOUT TIME ZONE requires naive UTC
# ====================================================================================
# STRICT RULE: all datetime passed TO asyncpg → _to_db_utc.
# All datetime read FROM DB → _from_db_utc.
# ====================================================================================

def _to_db_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert aware datetime to naive UTC for DB storage. Naive input is assumed UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert naive DB datetime to aware UTC."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc)
    return dt.replace(tzinfo=timezone.utc)


def _normalize_subscriber_row(row) -> Dict[str, Any]:
    d = dict(row)
    for k in ("subscription_end", "created_at"):
        if isinstance(d.get(k), datetime):
            d[k] = _from_db_utc(d[k])
    return d


# ====================================================================================
# POOL
# ====================================================================================

async def get_pool() -> asyncpg.Pool:
    """
    Получить (или лениво создать) пул соединений.

    Raises:
        RuntimeError: если DATABASE_URL не задан
        asyncpg.PostgresError / OSError: если БД недоступна
    """
    global _pool
    if _pool is not None:
        return _pool
    async with _pool_lock:
        if _pool is None:
            if not config.DATABASE_URL:
                raise RuntimeError("DATABASE_URL is not configured")
            _pool = await asyncpg.create_pool(
                config.DATABASE_URL,
                min_size=1,
                max_size=5,
                command_timeout=config.DATABASE_COMMAND_TIMEOUT,
            )
    return _pool


async def init_db() -> bool:
    """
    Проверить соединение с БД и выставить DB_READY.

    Returns:
        True если БД готова, False в деградированном режиме
    """
    global DB_READY
    try:
        pool = await get_pool()
        async with pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
        DB_READY = True
        logger.info("DB_INIT: database ready")
    except (asyncpg.PostgresError, OSError, asyncio.TimeoutError, RuntimeError) as e:
        DB_READY = False
        logger.error(f"DB_INIT_FAILED: {type(e).__name__}: {str(e)[:200]}")
    return DB_READY


async def close_pool() -> None:
    global _pool, DB_READY
    if _pool is not None:
        await _pool.close()
        _pool = None
    DB_READY = False


# ====================================================================================
# SUBSCRIBER SNAPSHOTS (read-only)
# ====================================================================================

async def find_by_boundary_window(
    start: datetime,
    end: datetime,
    exclude_deleted: bool = True,
) -> List[Dict[str, Any]]:
    """Подписчики с subscription_end в [start, end)."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            f"""SELECT {_SUBSCRIBER_COLUMNS}
                FROM users
                WHERE subscription_end >= $1
                  AND subscription_end < $2
                  AND ($3 = FALSE OR is_deleted = FALSE)
                ORDER BY id ASC""",
            _to_db_utc(start), _to_db_utc(end), exclude_deleted
        )
    return [_normalize_subscriber_row(r) for r in rows]


async def find_boundary_before(now: datetime) -> List[Dict[str, Any]]:
    """Истёкшие подписчики с выданным конфигом: кандидаты на отключение."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            f"""SELECT {_SUBSCRIBER_COLUMNS}
                FROM users
                WHERE subscription_end < $1
                  AND config_issued = TRUE
                  AND is_deleted = FALSE
                  AND wg_id IS NOT NULL
                ORDER BY id ASC""",
            _to_db_utc(now)
        )
    return [_normalize_subscriber_row(r) for r in rows]


async def find_boundary_after_or_equal(now: datetime) -> List[Dict[str, Any]]:
    """Активные подписчики с WireGuard клиентом: кандидаты на включение."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            f"""SELECT {_SUBSCRIBER_COLUMNS}
                FROM users
                WHERE subscription_end >= $1
                  AND is_deleted = FALSE
                  AND wg_id IS NOT NULL
                ORDER BY id ASC""",
            _to_db_utc(now)
        )
    return [_normalize_subscriber_row(r) for r in rows]


async def find_broadcast_recipients(target: str, now: datetime) -> List[Dict[str, Any]]:
    """
    Получатели рассылки: all | active (subscription_end > now) | expired (subscription_end < now).
    """
    if target == "active":
        condition = "AND subscription_end > $1"
    elif target == "expired":
        condition = "AND subscription_end < $1"
    elif target == "all":
        condition = "AND $1::timestamp IS NOT NULL"
    else:
        raise ValueError(f"Unknown broadcast target: {target}")

    pool = await get_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            f"""SELECT {_SUBSCRIBER_COLUMNS}
                FROM users
                WHERE is_deleted = FALSE
                {condition}
                ORDER BY id ASC""",
            _to_db_utc(now)
        )
    return [_normalize_subscriber_row(r) for r in rows]


# ====================================================================================
# EVENT LOG (append-only ledger)
# ====================================================================================

async def append_event(subscriber_id: int, action: str, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Дописать строку в event_logs. Строки никогда не изменяются и не удаляются."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        await conn.execute(
            """INSERT INTO event_logs (user_id, action, metadata, timestamp)
               VALUES ($1, $2, $3::jsonb, $4)""",
            subscriber_id,
            action,
            json.dumps(metadata or {}, ensure_ascii=False, default=str),
            _to_db_utc(datetime.now(timezone.utc)),
        )


async def event_exists_since(subscriber_id: int, action: str, since: datetime) -> bool:
    pool = await get_pool()
    async with pool.acquire() as conn:
        found = await conn.fetchval(
            """SELECT EXISTS(
                   SELECT 1 FROM event_logs
                   WHERE user_id = $1 AND action = $2 AND timestamp >= $3
               )""",
            subscriber_id, action, _to_db_utc(since)
        )
    return bool(found)


# ====================================================================================
# STATISTICS (read-only)
# ====================================================================================

async def count_new_users(since: datetime) -> int:
    pool = await get_pool()
    async with pool.acquire() as conn:
        value = await conn.fetchval(
            "SELECT COUNT(*) FROM users WHERE created_at >= $1 AND is_deleted = FALSE",
            _to_db_utc(since)
        )
    return int(value or 0)


async def count_active_subscriptions(now: datetime) -> int:
    pool = await get_pool()
    async with pool.acquire() as conn:
        value = await conn.fetchval(
            "SELECT COUNT(*) FROM users WHERE subscription_end > $1 AND is_deleted = FALSE",
            _to_db_utc(now)
        )
    return int(value or 0)


async def count_expired_subscriptions(since: datetime, now: datetime) -> int:
    pool = await get_pool()
    async with pool.acquire() as conn:
        value = await conn.fetchval(
            """SELECT COUNT(*) FROM users
               WHERE subscription_end >= $1 AND subscription_end < $2 AND is_deleted = FALSE""",
            _to_db_utc(since), _to_db_utc(now)
        )
    return int(value or 0)


async def get_completed_payments_summary(since: datetime) -> Dict[str, int]:
    """Количество и сумма (в копейках) завершённых платежей с момента since."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            """SELECT COUNT(*) AS count, COALESCE(SUM(amount), 0) AS total
               FROM payments
               WHERE created_at >= $1 AND status = 'completed'""",
            _to_db_utc(since)
        )
    return {"count": int(row["count"] or 0), "total": int(row["total"] or 0)}


async def count_events_since(action: str, since: datetime) -> int:
    pool = await get_pool()
    async with pool.acquire() as conn:
        value = await conn.fetchval(
            "SELECT COUNT(*) FROM event_logs WHERE action = $1 AND timestamp >= $2",
            action, _to_db_utc(since)
        )
    return int(value or 0)
