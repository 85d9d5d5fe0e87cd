# coding: utf-8
"""
Sentry error monitoring for FitAI Pro API

Events never carry credentials or Brazilian personal data: auth headers and
CPF / password / PIX key fields in request bodies are replaced before sending.
"""
import asyncio

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.aiohttp import AioHttpIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from loguru import logger

from config.config import SENTRY_DSN, ENVIRONMENT

FILTERED = "[Filtered]"

SENSITIVE_HEADERS = {"authorization", "access_token", "asaas-access-token", "cookie"}

SENSITIVE_FIELDS = {
    "password",
    "current_password",
    "new_password",
    "cpf",
    "cpfCnpj",
    "pix_key",
    "token",
}

# Client disconnects and shutdown, not bugs
IGNORED_EXCEPTIONS = (KeyboardInterrupt, asyncio.CancelledError)


def init_sentry() -> None:
    """No-op when SENTRY_DSN is not configured"""
    if not SENTRY_DSN:
        logger.warning("SENTRY_DSN not configured - error monitoring disabled")
        return

    try:
        sentry_sdk.init(
            dsn=SENTRY_DSN,
            environment=ENVIRONMENT,
            integrations=[
                AsyncioIntegration(),
                SqlalchemyIntegration(),
                AioHttpIntegration(),
                FastApiIntegration(),
            ],
            traces_sample_rate=0.1 if ENVIRONMENT == "production" else 1.0,
            attach_stacktrace=True,
            send_default_pii=False,
            before_send=before_send_hook,
        )

        logger.info(f"Sentry initialized (Environment: {ENVIRONMENT})")

    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")


def _scrub(data):
    if isinstance(data, dict):
        return {
            key: FILTERED if key in SENSITIVE_FIELDS else _scrub(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [_scrub(item) for item in data]
    return data


def before_send_hook(event, hint):
    if 'exc_info' in hint:
        exc_value = hint['exc_info'][1]
        if isinstance(exc_value, IGNORED_EXCEPTIONS):
            return None

    request = event.get('request')
    if request:
        headers = request.get('headers') or {}
        for header in list(headers):
            if header.lower() in SENSITIVE_HEADERS:
                headers[header] = FILTERED

        if isinstance(request.get('data'), (dict, list)):
            request['data'] = _scrub(request['data'])

    if event.get('extra'):
        event['extra'] = _scrub(event['extra'])

    return event


def set_user_context(user_id: int) -> None:
    """Attach the authenticated user id (no email, no PII) to later events"""
    sentry_sdk.set_user({"id": str(user_id)})


def capture_exception(error: Exception, **extra_context):
    """
    Capture an exception with extra context

    Args:
        error: Exception to capture
        extra_context: Additional context data (sensitive keys are scrubbed)
    """
    with sentry_sdk.new_scope() as scope:
        for key, value in extra_context.items():
            scope.set_extra(key, value)

        sentry_sdk.capture_exception(error)
