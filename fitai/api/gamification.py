"""
Gamification API Endpoints
XP, levels, streaks, achievements and the leaderboard
"""

from typing import Dict, Any, Tuple, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from config.gamification_config import DEFAULT_WORKOUT_XP, MAX_WORKOUT_XP, LEADERBOARD_SIZE
from fitai.api.auth import get_current_user_with_session
from fitai.database.models import User
from fitai.services.gamification_service import GamificationService, serialize_gamification


router = APIRouter(prefix="/gamification", tags=["gamification"])


class WorkoutRequest(BaseModel):
    xp_gained: Optional[int] = Field(None, gt=0, le=MAX_WORKOUT_XP)


@router.get("/profile")
async def get_gamification_profile(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    profile = await GamificationService.get_or_create_profile(session, user.id)
    return serialize_gamification(profile)


@router.post("/workouts")
async def record_workout(
    data: Optional[WorkoutRequest] = None,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    """
    Record a completed workout

    Returns:
        {"xp_gained", "total_xp", "level", "leveled_up", "current_streak",
         "best_streak", "total_workouts", "new_achievements": [...]}
    """
    user, session = user_session
    xp_gained = data.xp_gained if data and data.xp_gained else DEFAULT_WORKOUT_XP

    result = await GamificationService.record_workout(session, user.id, xp_gained=xp_gained)
    if result is None:
        raise HTTPException(status_code=500, detail="Erro ao registrar treino")

    return result.to_dict()


@router.get("/achievements")
async def get_achievements(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    profile = await GamificationService.get_or_create_profile(session, user.id)
    return {"achievements": GamificationService.achievements_catalogue(profile)}


@router.get("/leaderboard")
async def get_leaderboard(
    limit: int = Query(LEADERBOARD_SIZE, ge=1, le=100),
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    _, session = user_session
    return {"leaderboard": await GamificationService.get_leaderboard(session, limit=limit)}
