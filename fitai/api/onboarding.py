"""
Onboarding API Endpoints
Checklist, product tour and contextual tips
"""

from typing import Dict, Any, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fitai.api.auth import get_current_user_with_session
from fitai.database.models import User
from fitai.services.onboarding_service import OnboardingService


router = APIRouter(prefix="/onboarding", tags=["onboarding"])


@router.get("/status")
async def get_status(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    """
    Checklist state; newly completed steps are awarded here

    Returns:
        {"steps": [{id, title, description, points, completed}], "completed_count",
         "total_steps", "total_points", "earned_points", "progress_pct",
         "has_seen_tour", "hide_checklist", "dismissed_tips"}
    """
    user, session = user_session
    return await OnboardingService.get_status(session, user)


@router.post("/tour-seen")
async def mark_tour_seen(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    await OnboardingService.mark_tour_seen(session, user.id)
    return {"success": True}


@router.post("/tips/{tip_id}/dismiss")
async def dismiss_tip(
    tip_id: str,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    status = await OnboardingService.dismiss_tip(session, user.id, tip_id)
    if not status:
        raise HTTPException(status_code=404, detail="Dica não encontrada")
    return {"success": True, "dismissed_tips": list(status.dismissed_contextual_tips or [])}


@router.post("/checklist/hide")
async def hide_checklist(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    await OnboardingService.hide_checklist(session, user.id)
    return {"success": True}


@router.get("/tips")
async def get_tips(
    page: str = Query(..., min_length=1, max_length=50),
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    return {"tips": await OnboardingService.get_contextual_tips(session, user.id, page)}
