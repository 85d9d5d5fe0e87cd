"""
Admin API Endpoints
Promoter management and platform statistics (ADMIN_EMAILS only)
"""

from typing import Dict, Any, Tuple

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from fitai.api.auth import require_admin
from fitai.database.models import User, PromoterStatus
from fitai.services.promoter_service import PromoterService, serialize_promoter


router = APIRouter(prefix="/admin", tags=["admin"])


class CreatePromoterRequest(BaseModel):
    email: EmailStr


class PromoterStatusRequest(BaseModel):
    status: PromoterStatus


@router.get("/stats")
async def get_stats(
    admin_session: Tuple[User, AsyncSession] = Depends(require_admin),
) -> Dict[str, Any]:
    """
    Returns:
        {"total_users", "active_subscribers", "active_promoters", "total_affiliates"}
    """
    _, session = admin_session
    return await PromoterService.get_admin_stats(session)


@router.get("/promoters")
async def list_promoters(
    admin_session: Tuple[User, AsyncSession] = Depends(require_admin),
) -> Dict[str, Any]:
    _, session = admin_session
    return {"promoters": await PromoterService.list_promoters(session)}


@router.post("/promoters")
async def create_promoter(
    data: CreatePromoterRequest,
    admin_session: Tuple[User, AsyncSession] = Depends(require_admin),
) -> Dict[str, Any]:
    """
    Errors:
        404: No user with this email
        409: User is already a promoter
    """
    _, session = admin_session
    promoter, code = await PromoterService.create_promoter(session, data.email)
    if code == "user_not_found":
        raise HTTPException(status_code=404, detail="Usuário não encontrado")
    if code == "already_promoter":
        raise HTTPException(status_code=409, detail="Usuário já é promoter")

    return serialize_promoter(promoter, data.email.lower())


@router.put("/promoters/{promoter_id}/status")
async def set_promoter_status(
    promoter_id: int,
    data: PromoterStatusRequest,
    admin_session: Tuple[User, AsyncSession] = Depends(require_admin),
) -> Dict[str, Any]:
    _, session = admin_session
    if data.status == PromoterStatus.PENDING:
        raise HTTPException(status_code=400, detail="Status must be active or inactive")

    promoter = await PromoterService.set_status(session, promoter_id, data.status)
    if not promoter:
        raise HTTPException(status_code=404, detail="Promoter não encontrado")
    return serialize_promoter(promoter)


@router.delete("/promoters/{promoter_id}")
async def delete_promoter(
    promoter_id: int,
    admin_session: Tuple[User, AsyncSession] = Depends(require_admin),
) -> Dict[str, Any]:
    _, session = admin_session
    if not await PromoterService.delete_promoter(session, promoter_id):
        raise HTTPException(status_code=404, detail="Promoter não encontrado")
    return {"success": True}
