import os
import sys
from typing import List

# ====================================================================================
# ENVIRONMENT CONFIGURATION: изоляция PROD / STAGE / LOCAL через префиксы
# ====================================================================================
# Все переменные окружения читаются с префиксом окружения:
#   - PROD: PROD_BOT_TOKEN, PROD_DATABASE_URL, PROD_ADMIN_IDS
#   - STAGE: STAGE_BOT_TOKEN, STAGE_DATABASE_URL, STAGE_ADMIN_IDS
#   - LOCAL: LOCAL_BOT_TOKEN, LOCAL_DATABASE_URL, LOCAL_ADMIN_IDS
#
# Импорт модуля не завершает процесс: обязательные секреты проверяются
# в validate_required() при старте main.py.
# ====================================================================================

APP_ENV = os.getenv("APP_ENV", "prod").lower()
if APP_ENV not in ("prod", "stage", "local"):
    print(f"WARNING: Invalid APP_ENV={APP_ENV}, falling back to local", file=sys.stderr)
    APP_ENV = "local"

IS_LOCAL = APP_ENV == "local"
IS_STAGE = APP_ENV == "stage"
IS_PROD = APP_ENV == "prod"


def env(key: str, default: str = "") -> str:
    """
    Получить переменную окружения с префиксом окружения

    Example:
        env("BOT_TOKEN") -> значение STAGE_BOT_TOKEN (если APP_ENV=stage)
        env("WIREGUARD_TIMEOUT", default="10") -> "10" если не задано
    """
    env_key = f"{APP_ENV.upper()}_{key}"
    return os.getenv(env_key, default)


def _float(key: str, default: str) -> float:
    raw = env(key, default=default)
    try:
        return float(raw)
    except ValueError:
        print(f"WARNING: {APP_ENV.upper()}_{key}={raw!r} is not a number, using {default}", file=sys.stderr)
        return float(default)


def _int(key: str, default: str) -> int:
    raw = env(key, default=default)
    try:
        return int(raw)
    except ValueError:
        print(f"WARNING: {APP_ENV.upper()}_{key}={raw!r} is not an integer, using {default}", file=sys.stderr)
        return int(default)


def parse_admin_ids(raw: str) -> List[int]:
    """Разобрать список ID администраторов вида "123, 456"; мусорные элементы пропускаются."""
    result = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            result.append(int(part))
        except ValueError:
            print(f"WARNING: ADMIN_IDS entry {part!r} is not a number, skipped", file=sys.stderr)
    return result


# ====================================================================================
# SECRETS (проверяются в validate_required, никогда не логируются)
# ====================================================================================

# Telegram Bot Token (получить у @BotFather)
BOT_TOKEN = env("BOT_TOKEN")

# PostgreSQL (таблицы users / event_logs / payments принадлежат основному боту)
DATABASE_URL = env("DATABASE_URL")

# Администраторы, получающие статистику и отчёты о рассылках.
# Передаются в сервисы явно через конструктор, не читаются из окружения по месту.
ADMIN_IDS: List[int] = parse_admin_ids(env("ADMIN_IDS"))

# WireGuard admin API (wg-easy): базовый URL и общий пароль сессии
WIREGUARD_API = env("WIREGUARD_API").rstrip("/")
WIREGUARD_PASSWORD = env("WIREGUARD_PASSWORD")
# Таймаут для каждого HTTP запроса к WireGuard API (секунды)
WIREGUARD_TIMEOUT = _float("WIREGUARD_TIMEOUT", "10.0")
# Размер PNG QR-кода после растеризации SVG
WIREGUARD_QR_SIZE = _int("WIREGUARD_QR_SIZE", "512")

WIREGUARD_ENABLED = bool(WIREGUARD_API and WIREGUARD_PASSWORD)

# ====================================================================================
# LIFECYCLE POLICY
# ====================================================================================

# Часовой пояс, в котором считаются "сегодня" и время запуска задач
OPERATING_TIMEZONE = env("OPERATING_TIMEZONE", default="Europe/Moscow")

# Подписчик без промокода считается пробным, пока аккаунту меньше N дней
TRIAL_PERIOD_DAYS = _int("TRIAL_PERIOD_DAYS", "8")

# Язык шаблонов уведомлений
NOTIFICATION_LANGUAGE = env("NOTIFICATION_LANGUAGE", default="ru")

# ====================================================================================
# THROTTLING & TIMEOUTS
# ====================================================================================

# Пауза между отправками сообщений (Telegram: не более ~20 msg/sec)
SEND_DELAY_SECONDS = _float("SEND_DELAY_SECONDS", "0.05")
# Пауза между вызовами WireGuard API в ежедневной синхронизации доступа
ACCESS_SYNC_DELAY_SECONDS = _float("ACCESS_SYNC_DELAY_SECONDS", "0.05")
# Таймаут одной отправки сообщения
TELEGRAM_SEND_TIMEOUT = _float("TELEGRAM_SEND_TIMEOUT", "10.0")
# Максимальная длительность одного запуска задачи
JOB_TIMEOUT_SECONDS = _float("JOB_TIMEOUT_SECONDS", "1800")
# Таймаут запросов к БД
DATABASE_COMMAND_TIMEOUT = _float("DATABASE_COMMAND_TIMEOUT", "15.0")
# Уровень логирования (DEBUG, INFO, WARNING, ERROR)
LOG_LEVEL = env("LOG_LEVEL", default="INFO").upper()

# ====================================================================================
# SCHEDULE (локальное время OPERATING_TIMEZONE)
# ====================================================================================

ACCESS_SYNC_HOUR = _int("ACCESS_SYNC_HOUR", "0")
WEEK_REMINDER_HOUR = _int("WEEK_REMINDER_HOUR", "9")
ONE_DAY_REMINDER_HOUR = _int("ONE_DAY_REMINDER_HOUR", "10")
EXPIRED_NOTICE_HOUR = _int("EXPIRED_NOTICE_HOUR", "10")
THREE_DAY_REMINDER_HOUR = _int("THREE_DAY_REMINDER_HOUR", "11")
WEEKLY_STATS_HOUR = _int("WEEKLY_STATS_HOUR", "8")
# 0 = понедельник
WEEKLY_STATS_WEEKDAY = _int("WEEKLY_STATS_WEEKDAY", "0")

print(f"INFO: Config loaded for environment: {APP_ENV.upper()}", flush=True)


def validate_required() -> None:
    """
    Проверить обязательные секреты при старте процесса.

    Завершает процесс с кодом 1, если чего-то не хватает. WireGuard API
    опционален: без него задачи синхронизации доступа пропускаются.
    """
    prefix = APP_ENV.upper()
    missing = False

    if not BOT_TOKEN:
        print(f"ERROR: {prefix}_BOT_TOKEN environment variable is not set!", file=sys.stderr)
        missing = True
    if not DATABASE_URL:
        print(f"ERROR: {prefix}_DATABASE_URL environment variable is not set!", file=sys.stderr)
        missing = True
    if missing:
        sys.exit(1)

    if not ADMIN_IDS:
        print(f"WARNING: {prefix}_ADMIN_IDS is empty - weekly stats will not be delivered", file=sys.stderr)

    if not WIREGUARD_ENABLED:
        print("WARNING: WIREGUARD_API or WIREGUARD_PASSWORD is not set!", file=sys.stderr)
        print("WARNING: Access synchronization will be SKIPPED until both are configured", file=sys.stderr)
    else:
        print(f"INFO: Using WIREGUARD_API from {prefix}_WIREGUARD_API", flush=True)
        print(f"INFO: WIREGUARD_TIMEOUT={WIREGUARD_TIMEOUT}s", flush=True)

    print(f"INFO: OPERATING_TIMEZONE={OPERATING_TIMEZONE}", flush=True)
