"""
Profile API Endpoints
Account data, fitness profile, progress log and avatar upload
"""

from decimal import Decimal
from typing import Dict, Any, Tuple, Optional

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fitai.api.auth import get_current_user_with_session
from fitai.database.crud import (
    add_progress_entry,
    get_profile,
    list_progress_entries,
    serialize_user,
    upsert_profile,
)
from fitai.database.models import User, UserProfile, UserProgress
from fitai.services.auth_service import AuthService
from fitai.services.gamification_service import GamificationService
from fitai.services.storage_service import get_storage_service
from fitai.utils.time_utils import isoformat

# Create router
router = APIRouter(prefix="/profile", tags=["profile"])


# ===========================
# REQUEST MODELS
# ===========================


class UpdateProfileRequest(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    age: Optional[int] = Field(None, ge=10, le=120)
    height_cm: Optional[Decimal] = Field(None, gt=50, lt=300)
    weight_kg: Optional[Decimal] = Field(None, gt=20, lt=500)
    fitness_level: Optional[str] = Field(None, max_length=50)
    fitness_goals: Optional[str] = None
    workout_location: Optional[str] = Field(None, max_length=50)


class ProgressEntryRequest(BaseModel):
    weight_kg: Optional[Decimal] = Field(None, gt=20, lt=500)
    body_fat_pct: Optional[Decimal] = Field(None, ge=0, le=100)
    notes: Optional[str] = Field(None, max_length=2000)


AVATAR_ERRORS = {
    "invalid_type": (400, "Formato de imagem não suportado (use JPEG, PNG ou WebP)"),
    "empty": (400, "Arquivo vazio"),
    "too_large": (413, "Imagem muito grande"),
}


def _serialize_profile(profile: Optional[UserProfile]) -> Optional[Dict[str, Any]]:
    if not profile:
        return None
    return {
        "age": profile.age,
        "height_cm": float(profile.height_cm) if profile.height_cm is not None else None,
        "weight_kg": float(profile.weight_kg) if profile.weight_kg is not None else None,
        "fitness_level": profile.fitness_level,
        "fitness_goals": profile.fitness_goals,
        "workout_location": profile.workout_location,
        "updated_at": isoformat(profile.updated_at),
    }


def _serialize_progress(entry: UserProgress) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "weight_kg": float(entry.weight_kg) if entry.weight_kg is not None else None,
        "body_fat_pct": float(entry.body_fat_pct) if entry.body_fat_pct is not None else None,
        "notes": entry.notes,
        "recorded_at": isoformat(entry.recorded_at),
    }


# ===========================
# PROFILE
# ===========================


@router.get("")
async def get_user_profile(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    """
    Returns:
        {"user": {...}, "profile": {...} | null, "permissions": {...}}
    """
    user, session = user_session
    profile = await get_profile(session, user.id)
    permissions = await AuthService.get_permissions(session, user)

    return {
        "user": serialize_user(user),
        "profile": _serialize_profile(profile),
        "permissions": permissions.to_dict(),
    }


@router.put("")
async def update_user_profile(
    data: UpdateProfileRequest,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session

    if data.full_name is not None:
        user.full_name = data.full_name.strip()

    fields = data.model_dump(exclude={"full_name"}, exclude_none=True)
    profile = await upsert_profile(session, user.id, **fields)

    if data.fitness_level:
        await GamificationService.set_fitness_category(session, user.id, data.fitness_level)

    return {
        "user": serialize_user(user),
        "profile": _serialize_profile(profile),
    }


# ===========================
# PROGRESS
# ===========================


@router.post("/progress")
async def create_progress_entry(
    data: ProgressEntryRequest,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    entry = await add_progress_entry(
        session,
        user.id,
        weight_kg=data.weight_kg,
        body_fat_pct=data.body_fat_pct,
        notes=data.notes,
    )
    return _serialize_progress(entry)


@router.get("/progress")
async def get_progress_entries(
    limit: int = Query(100, ge=1, le=500),
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    entries = await list_progress_entries(session, user.id, limit=limit)
    return {"entries": [_serialize_progress(e) for e in entries]}


# ===========================
# AVATAR
# ===========================


@router.post("/avatar")
async def upload_avatar(
    file: UploadFile = File(...),
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    """
    Upload avatar image (JPEG/PNG/WebP, up to AVATAR_MAX_BYTES)

    Returns:
        {"avatar_url": "/media/avatars/1/avatar-1700000000000.png"}
    """
    user, session = user_session
    storage = get_storage_service()

    content = await file.read(storage.max_bytes + 1)
    url, code = storage.save_avatar(user.id, content, file.content_type, previous_url=user.avatar_url)
    if not url:
        status_code, detail = AVATAR_ERRORS[code]
        raise HTTPException(status_code=status_code, detail=detail)

    user.avatar_url = url
    await session.commit()
    return {"avatar_url": url}


@router.delete("/avatar")
async def delete_avatar(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session

    get_storage_service().delete_avatar(user.avatar_url)
    user.avatar_url = None
    await session.commit()
    return {"success": True}
