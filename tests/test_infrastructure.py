"""
Tests for the engine factory, loguru setup and Sentry scrubbing
"""

import asyncio
import logging
import sys
from types import SimpleNamespace

import pytest
from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.pool import StaticPool

from config import logging as logging_config
from config.sentry import FILTERED, before_send_hook
from fitai.database import engine as engine_module
from fitai.database.models import User


# ============================================================================
# ENGINE
# ============================================================================


def test_sqlite_engine_shares_one_connection():
    eng = engine_module.build_engine("sqlite+aiosqlite:///:memory:")

    assert isinstance(eng.pool, StaticPool)
    assert engine_module.is_sqlite_url("sqlite+aiosqlite:///./fitai.db")
    assert not engine_module.is_sqlite_url("postgresql+asyncpg://fitai:secret@db/fitai")


@pytest.mark.asyncio
async def test_init_db_and_session_dependency(monkeypatch):
    monkeypatch.setattr(engine_module, "DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setattr(engine_module, "engine", None)
    monkeypatch.setattr(engine_module, "AsyncSessionLocal", None)

    await engine_module.init_db()
    sessions = engine_module.get_session()
    session = await anext(sessions)
    users = (await session.execute(select(func.count(User.id)))).scalar()
    await sessions.aclose()
    await engine_module.dispose_engine()

    assert users == 0
    assert engine_module.engine is None
    assert engine_module.AsyncSessionLocal is None


# ============================================================================
# LOGGING
# ============================================================================


def test_payment_records_are_selected_by_module():
    assert logging_config.is_payment_record({"name": "fitai.services.billing_service"})
    assert logging_config.is_payment_record({"name": "fitai.api.webhooks_asaas"})
    assert not logging_config.is_payment_record({"name": "fitai.services.forum_service"})


def test_setup_logging_writes_app_and_payment_logs(tmp_path, monkeypatch):
    monkeypatch.setattr(logging_config, "SENTRY_DSN", "")
    root_handlers = logging.root.handlers[:]
    root_level = logging.root.level

    try:
        logging_config.setup_logging(logs_dir=tmp_path, level="WARNING")

        logging.getLogger("fitai.database.engine").warning("engine from stdlib")
        logger.patch(lambda record: record.update(name="fitai.services.billing_service")).info(
            "PIX charge created"
        )
        logger.info("forum post created")
    finally:
        logger.remove()
        logger.add(sys.stderr)
        logging.root.handlers = root_handlers
        logging.root.setLevel(root_level)

    app_log = next(tmp_path.glob("fitai_*.log")).read_text(encoding="utf-8")
    payments_log = next(tmp_path.glob("payments_*.log")).read_text(encoding="utf-8")

    assert "engine from stdlib" in app_log
    assert "forum post created" in app_log
    assert "PIX charge created" in payments_log
    assert "forum post created" not in payments_log


def test_sentry_sink_reports_critical_as_fatal(monkeypatch):
    captured = []
    monkeypatch.setattr(
        logging_config.sentry_sdk,
        "capture_message",
        lambda message, level: captured.append((message, level)),
    )
    record = {
        "extra": {"payment_id": "pay_1"},
        "name": "fitai.services.billing_service",
        "function": "process_webhook",
        "line": 10,
        "exception": None,
        "level": SimpleNamespace(name="CRITICAL"),
        "message": "webhook storage down",
    }

    logging_config.sentry_sink(SimpleNamespace(record=record))

    assert captured == [("webhook storage down", "fatal")]


# ============================================================================
# SENTRY
# ============================================================================


def test_before_send_scrubs_credentials_and_personal_data():
    event = {
        "request": {
            "headers": {"Authorization": "Bearer abc", "asaas-access-token": "tok", "User-Agent": "ua"},
            "data": {
                "email": "ana@example.com",
                "cpf": "12345678909",
                "password": "secret123",
                "accounts": [{"pix_key": "ana@pix"}],
            },
        },
        "extra": {"payment_id": "pay_1", "token": "reset-token"},
    }

    result = before_send_hook(event, {})

    assert result["request"]["headers"] == {
        "Authorization": FILTERED,
        "asaas-access-token": FILTERED,
        "User-Agent": "ua",
    }
    assert result["request"]["data"] == {
        "email": "ana@example.com",
        "cpf": FILTERED,
        "password": FILTERED,
        "accounts": [{"pix_key": FILTERED}],
    }
    assert result["extra"] == {"payment_id": "pay_1", "token": FILTERED}


def test_before_send_drops_cancelled_requests():
    error = asyncio.CancelledError()

    assert before_send_hook({}, {"exc_info": (type(error), error, None)}) is None
    assert before_send_hook({"message": "ok"}, {}) == {"message": "ok"}
