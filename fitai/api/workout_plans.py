"""
Workout Plan API Endpoints

Plans are generated asynchronously: a request joins the queue and the
scheduler processes it. Status changes are pushed as workout_queue.updated
realtime events.
"""

from typing import Dict, Any, Tuple, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fitai.api.auth import get_current_user_with_session, require_premium
from fitai.database.models import User
from fitai.services.workout_plan_service import (
    LOCATION_EQUIPMENT,
    WorkoutPlanService,
    serialize_queue_item,
)
from fitai.utils.time_utils import isoformat


router = APIRouter(prefix="/workout-plans", tags=["workout-plans"])


class WorkoutPlanRequest(BaseModel):
    age: int = Field(..., ge=10, le=120)
    height: float = Field(..., gt=50, lt=300, description="cm")
    weight: float = Field(..., gt=20, lt=500, description="kg")
    fitness_level: str = Field(..., min_length=1, max_length=50)
    fitness_goals: str = Field(..., min_length=1, max_length=500)
    workout_location: str
    workout_days: int = Field(..., ge=1, le=7)
    available_time: str = Field(..., min_length=1, max_length=50)  # "45 minutos"
    health_conditions: Optional[str] = Field(None, max_length=1000)


@router.post("/request")
async def request_workout_plan(
    data: WorkoutPlanRequest,
    user_session: Tuple[User, AsyncSession] = Depends(require_premium),
) -> Dict[str, Any]:
    """
    Queue plan generation (premium)

    A user with a pending/processing request gets that request back.

    Returns:
        {"id", "status", "position_in_queue", ...}
    """
    user, session = user_session
    if data.workout_location not in LOCATION_EQUIPMENT:
        raise HTTPException(
            status_code=400,
            detail=f"workout_location must be one of {', '.join(LOCATION_EQUIPMENT)}",
        )

    item = await WorkoutPlanService.enqueue(session, user, data.model_dump())
    return serialize_queue_item(item)


@router.get("/queue")
async def get_queue_status(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    """Latest request of the user (null when none)"""
    user, session = user_session
    return {"request": await WorkoutPlanService.get_queue_status(session, user)}


@router.get("/current")
async def get_current_plan(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    plan = await WorkoutPlanService.get_current_plan(session, user.id)
    if not plan:
        raise HTTPException(status_code=404, detail="Nenhum plano de treino encontrado")

    return {
        "id": plan.id,
        "plan": plan.plan_data,
        "created_at": isoformat(plan.created_at),
        "updated_at": isoformat(plan.updated_at),
    }
