# coding: utf-8
"""
Payment API endpoints

Handles:
- PIX charge creation through Asaas (with static BR Code fallback)
- Payment verification requested by the user
- Subscription status
"""

from typing import Dict, Any, Tuple

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fitai.api.auth import get_current_user_with_session
from fitai.database.models import User
from fitai.services.billing_service import BillingService, get_billing_service

from loguru import logger

# Create router
router = APIRouter(prefix="/payments", tags=["payments"])


# ===========================
# REQUEST MODELS
# ===========================


class CreatePixRequest(BaseModel):
    """Request to create a PIX charge"""

    cpf: str = Field(..., min_length=11, max_length=14)  # digits, punctuation allowed


class VerifyPaymentRequest(BaseModel):
    payment_id: str = Field(..., min_length=1)


PIX_ERRORS = {
    "invalid_cpf": (400, "CPF inválido"),
    "gateway_unavailable": (503, "Pagamentos temporariamente indisponíveis"),
    "customer_error": (502, "Erro ao criar cliente no gateway de pagamento"),
    "payment_error": (502, "Erro ao criar cobrança PIX"),
    "not_found": (404, "Pagamento não encontrado"),
    "gateway_error": (502, "Erro ao consultar pagamento"),
}


def _raise_for(code: str) -> None:
    status_code, detail = PIX_ERRORS.get(code, (400, code))
    raise HTTPException(status_code=status_code, detail=detail)


def get_billing() -> BillingService:
    return get_billing_service()


# ===========================
# ENDPOINTS
# ===========================


@router.post("/pix")
async def create_pix_payment(
    data: CreatePixRequest,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
    billing: BillingService = Depends(get_billing),
) -> Dict[str, Any]:
    """
    Create PIX charge for the monthly subscription

    Returns:
        {
            "payment_id": "pay_123",
            "pix_code": "000201...",
            "qr_code_image": "<base64 png>" | null,
            "expiration_date": "...",
            "subscription_id": 1,
            "amount": 69.9,
            "fallback": false
        }
    """
    user, session = user_session

    charge, code = await billing.create_pix_charge(session, user, data.cpf)
    if not charge:
        logger.warning(f"PIX charge failed for user {user.id}: {code}")
        _raise_for(code)

    return charge


@router.post("/verify")
async def verify_payment(
    data: VerifyPaymentRequest,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
    billing: BillingService = Depends(get_billing),
) -> Dict[str, Any]:
    """
    Returns:
        {"paid": bool, "status": "RECEIVED", "payment_id": "...", "message": "..."}
    """
    user, session = user_session

    result, code = await billing.verify_payment(session, user, data.payment_id)
    if not result:
        _raise_for(code)

    return result


@router.get("/subscription")
async def get_subscription(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    """Latest subscription plus derived permissions"""
    user, session = user_session
    return await BillingService.get_subscription_status(session, user)
