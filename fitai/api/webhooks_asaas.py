# coding: utf-8
"""
Asaas Webhook Handler

Activates subscriptions when a PIX charge is paid.

Security:
- When ASAAS_WEBHOOK_TOKEN is set, the asaas-access-token header must match

Handled events:
- PAYMENT_RECEIVED / PAYMENT_CONFIRMED -> subscription active for 30 days
- anything else is acknowledged and ignored
"""

import hmac

from fastapi import APIRouter, Request, HTTPException, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from config.config import ASAAS_WEBHOOK_TOKEN
from config.sentry import capture_exception
from fitai.database.engine import get_session
from fitai.services.billing_service import BillingService


router = APIRouter(prefix="/webhooks", tags=["webhooks"])

ERROR_STATUS = {
    "invalid_payload": 400,
    "not_found": 404,
}


@router.post("/asaas")
async def asaas_webhook(
    request: Request,
    session: AsyncSession = Depends(get_session),
    asaas_access_token: str | None = Header(None),
):
    """
    Payment callback from Asaas

    Returns:
        {"message": "..."} (200) for processed, duplicated and ignored events

    Errors:
        401: Wrong access token
        400: Missing payment id
        404: No subscription for the payment
    """
    try:
        if ASAAS_WEBHOOK_TOKEN and not hmac.compare_digest(
            asaas_access_token or "", ASAAS_WEBHOOK_TOKEN
        ):
            logger.error("Asaas webhook with invalid access token")
            raise HTTPException(status_code=401, detail="Invalid webhook token")

        payload = await request.json()
        logger.info(
            f"Asaas webhook: event={payload.get('event')}, "
            f"payment_id={(payload.get('payment') or {}).get('id')}"
        )

        code, body = await BillingService.process_webhook(session, payload)

        if code in ERROR_STATUS:
            raise HTTPException(status_code=ERROR_STATUS[code], detail=body["error"])

        return body

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error processing Asaas webhook: {e}")
        capture_exception(e, source="asaas_webhook")
        raise HTTPException(status_code=500, detail="Internal server error")
