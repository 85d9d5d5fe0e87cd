"""
Affiliate Program API

Affiliates earn a commission when a referred user pays a subscription.
Referral codes arrive from ?ref= links and are staged server-side on the
user until they can be linked to an active affiliate.
"""

from decimal import Decimal
from typing import Dict, Any, Tuple, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fitai.api.auth import get_current_user_with_session, require_admin
from fitai.database.models import User, WithdrawalStatus
from fitai.services.affiliate_service import (
    AffiliateService,
    serialize_affiliate,
    serialize_withdrawal,
)
from fitai.utils.time_utils import isoformat


router = APIRouter(prefix="/affiliate", tags=["affiliate"])


# ===========================
# REQUEST MODELS
# ===========================


class PixKeyRequest(BaseModel):
    pix_key: str = Field(..., min_length=3, max_length=140)


class TrackReferralRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=16)


class WithdrawalRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)


class ProcessWithdrawalRequest(BaseModel):
    approve: bool


WITHDRAWAL_ERRORS = {
    "not_affiliate": (404, "Você ainda não é afiliado"),
    "missing_pix_key": (400, "Cadastre uma chave PIX antes de solicitar saque"),
    "below_minimum": (400, "Valor abaixo do mínimo para saque"),
    "insufficient_balance": (400, "Saldo insuficiente"),
    "not_found": (404, "Saque não encontrado"),
    "already_processed": (409, "Saque já processado"),
}


def _raise_for(code: str) -> None:
    status_code, detail = WITHDRAWAL_ERRORS.get(code, (400, code))
    raise HTTPException(status_code=status_code, detail=detail)


# ===========================
# AFFILIATE ENDPOINTS
# ===========================


@router.post("")
async def become_affiliate(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    """Join the program (idempotent)"""
    user, session = user_session
    affiliate = await AffiliateService.create_affiliate(session, user)
    return serialize_affiliate(affiliate)


@router.get("/dashboard")
async def get_dashboard(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    """
    Returns:
        {"affiliate", "referrals", "commissions", "withdrawals", "totals"}
    """
    user, session = user_session
    dashboard = await AffiliateService.get_dashboard(session, user.id)
    if not dashboard:
        _raise_for("not_affiliate")
    return dashboard


@router.put("/pix-key")
async def update_pix_key(
    data: PixKeyRequest,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    affiliate = await AffiliateService.update_pix_key(session, user.id, data.pix_key)
    if not affiliate:
        _raise_for("not_affiliate")
    return serialize_affiliate(affiliate)


@router.post("/referrals/track")
async def track_referral(
    data: TrackReferralRequest,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    """
    Stage a referral code for the current user

    Returns:
        {"linked": bool, "pending_code": str | None, "referral": {...} | None}
    """
    user, session = user_session
    referral = await AffiliateService.stage_referral_code(session, user, data.code)

    return {
        "linked": referral is not None,
        "pending_code": user.pending_referral_code,
        "referral": {
            "id": referral.id,
            "status": referral.status,
            "referral_code": referral.referral_code,
            "created_at": isoformat(referral.created_at),
        } if referral else None,
    }


@router.post("/withdrawals")
async def request_withdrawal(
    data: WithdrawalRequest,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    withdrawal, code = await AffiliateService.request_withdrawal(session, user.id, data.amount)
    if not withdrawal:
        _raise_for(code)
    return serialize_withdrawal(withdrawal)


# ===========================
# ADMIN ENDPOINTS
# ===========================


@router.get("/admin/withdrawals")
async def list_withdrawals(
    status: Optional[WithdrawalStatus] = None,
    admin_session: Tuple[User, AsyncSession] = Depends(require_admin),
) -> Dict[str, Any]:
    _, session = admin_session
    withdrawals = await AffiliateService.list_withdrawals(
        session, status=status.value if status else None
    )
    return {"withdrawals": [serialize_withdrawal(w) for w in withdrawals]}


@router.post("/admin/withdrawals/{withdrawal_id}")
async def process_withdrawal(
    withdrawal_id: int,
    data: ProcessWithdrawalRequest,
    admin_session: Tuple[User, AsyncSession] = Depends(require_admin),
) -> Dict[str, Any]:
    _, session = admin_session
    withdrawal, code = await AffiliateService.process_withdrawal(session, withdrawal_id, data.approve)
    if not withdrawal:
        _raise_for(code)
    return serialize_withdrawal(withdrawal)
