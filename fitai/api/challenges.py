"""
Challenges API Endpoints
"""

from typing import Dict, Any, Tuple

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fitai.api.auth import get_current_user_with_session
from fitai.database.models import User
from fitai.services.challenge_service import ChallengeService


router = APIRouter(prefix="/challenges", tags=["challenges"])


class ProgressRequest(BaseModel):
    increment: int = Field(1, gt=0, le=1000)


CHALLENGE_ERRORS = {
    "not_found": (404, "Desafio não encontrado"),
    "inactive": (400, "Desafio encerrado"),
    "invalid_increment": (400, "Incremento inválido"),
}


@router.get("")
async def list_challenges(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    """Active daily/weekly challenges with the user's progress"""
    user, session = user_session
    return {"challenges": await ChallengeService.list_active(session, user)}


@router.post("/{challenge_id}/progress")
async def update_progress(
    challenge_id: int,
    data: ProgressRequest,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    challenge, code = await ChallengeService.update_progress(
        session, user, challenge_id, data.increment
    )
    if not challenge:
        status_code, detail = CHALLENGE_ERRORS[code]
        raise HTTPException(status_code=status_code, detail=detail)
    return challenge
