"""
Notifications API Endpoints
"""

from typing import Dict, Any, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fitai.api.auth import get_current_user_with_session
from fitai.database.models import User
from fitai.services.notification_service import NotificationService, serialize_notification


router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    """Newest first"""
    user, session = user_session
    notifications = await NotificationService.list_notifications(session, user.id, limit=limit)
    return {"notifications": [serialize_notification(n) for n in notifications]}


@router.get("/unread-count")
async def unread_count(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    return {"count": await NotificationService.unread_count(session, user.id)}


@router.post("/{notification_id}/read")
async def mark_as_read(
    notification_id: int,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    if not await NotificationService.mark_as_read(session, user.id, notification_id):
        raise HTTPException(status_code=404, detail="Notificação não encontrada")
    return {"success": True}


@router.post("/read-all")
async def mark_all_as_read(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    updated = await NotificationService.mark_all_as_read(session, user.id)
    return {"success": True, "updated": updated}


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    if not await NotificationService.delete_notification(session, user.id, notification_id):
        raise HTTPException(status_code=404, detail="Notificação não encontrada")
    return {"success": True}
