# coding: utf-8
"""
Loguru setup for FitAI Pro API

Sinks:
- stdout (colored, LOG_LEVEL)
- logs/fitai_<date>.log: everything, 7 days
- logs/error_<date>.log: ERROR+, 30 days
- logs/payments_<date>.log: Asaas client, billing and webhook records, 90 days
- Sentry for ERROR+ when SENTRY_DSN is set

Standard-library loggers (SQLAlchemy engine module, uvicorn, apscheduler)
are routed into loguru so every record reaches the same sinks.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

from loguru import logger
import sentry_sdk

from config.config import LOG_LEVEL, ENVIRONMENT, SENTRY_DSN

LOGS_DIR = Path(__file__).parent.parent / 'logs'

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"

PAYMENT_MODULES = (
    "fitai.services.asaas_service",
    "fitai.services.billing_service",
    "fitai.api.payment",
    "fitai.api.webhooks_asaas",
)

# stdlib loggers that are too chatty at INFO
QUIET_LOGGERS = {
    "aiohttp": logging.WARNING,
    "httpx": logging.WARNING,
    "sqlalchemy.engine": logging.ERROR,
    "asyncio": logging.WARNING,
    "apscheduler": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records to loguru"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip logging internals so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def is_payment_record(record) -> bool:
    return record["name"].startswith(PAYMENT_MODULES)


def setup_logging(logs_dir: Optional[Path] = None, level: str = LOG_LEVEL) -> None:
    logs_dir = logs_dir or LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)

    logger.remove()

    logger.add(
        sys.stdout,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        level=level,
        colorize=True,
    )

    logger.add(
        logs_dir / "fitai_{time:YYYY-MM-DD}.log",
        format=FILE_FORMAT,
        level="DEBUG",
        rotation="00:00",
        retention="7 days",
        compression="zip",
        encoding="utf-8",
    )

    logger.add(
        logs_dir / "error_{time:YYYY-MM-DD}.log",
        format=FILE_FORMAT,
        level="ERROR",
        rotation="00:00",
        retention="30 days",
        compression="zip",
        encoding="utf-8",
    )

    # Payment trail is kept for reconciliation with Asaas
    logger.add(
        logs_dir / "payments_{time:YYYY-MM-DD}.log",
        format=FILE_FORMAT,
        level="INFO",
        filter=is_payment_record,
        rotation="00:00",
        retention="90 days",
        compression="zip",
        encoding="utf-8",
    )

    if SENTRY_DSN:
        logger.add(sentry_sink, level="ERROR", format="{message}")

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name, stdlib_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(stdlib_level)

    logger.info(f"FitAI Pro API initialized | Environment: {ENVIRONMENT} | Log level: {level}")


def sentry_sink(message):
    """
    Send ERROR and CRITICAL records to Sentry

    Values bound with logger.bind(user_id=..., payment_id=...) become tags.
    """
    record = message.record

    with sentry_sdk.new_scope() as scope:
        for key in ("user_id", "payment_id"):
            if key in record["extra"]:
                scope.set_tag(key, str(record["extra"][key]))
        scope.set_extra("location", f"{record['name']}:{record['function']}:{record['line']}")

        if record["exception"]:
            sentry_sdk.capture_exception(record["exception"].value)
        else:
            level = "fatal" if record["level"].name == "CRITICAL" else "error"
            sentry_sdk.capture_message(record["message"], level=level)
