"""
AI Assistant Chat API

Two assistants (general fitness, nutrition), one transcript each per user.
"""

from typing import Dict, Any, Tuple

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from fitai.api.auth import get_current_user_with_session, require_premium
from fitai.core.enums import ConversationType
from fitai.database.models import User
from fitai.services.assistant_service import AssistantService, serialize_conversation


router = APIRouter(prefix="/chat", tags=["chat"])

_assistant_service: AssistantService | None = None


def get_assistant_service() -> AssistantService:
    global _assistant_service
    if _assistant_service is None:
        _assistant_service = AssistantService()
    return _assistant_service


class ChatMessageRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)


def _conversation_type(value: str) -> ConversationType:
    if value not in ConversationType.values():
        raise HTTPException(status_code=404, detail="Assistente não encontrado")
    return ConversationType(value)


@router.get("")
async def list_conversations(
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    conversations = await AssistantService.list_conversations(session, user.id)
    return {"conversations": [serialize_conversation(c) for c in conversations]}


@router.post("/{conversation_type}")
async def send_message(
    conversation_type: str,
    data: ChatMessageRequest,
    user_session: Tuple[User, AsyncSession] = Depends(require_premium),
) -> Dict[str, Any]:
    """
    Send message to an assistant (premium)

    Returns:
        {"message": "...", "conversation_id": 1, "fallback": false}

    Errors:
        403: No premium access
        404: Unknown assistant
    """
    user, session = user_session
    assistant_type = _conversation_type(conversation_type)

    return await get_assistant_service().send_message(
        session, user, assistant_type, data.message.strip()
    )


@router.get("/{conversation_type}/history")
async def get_history(
    conversation_type: str,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    """Transcript, created with the greeting on first access"""
    user, session = user_session
    assistant_type = _conversation_type(conversation_type)

    conversation = await AssistantService.get_or_create_conversation(session, user.id, assistant_type)
    return serialize_conversation(conversation)


@router.delete("/{conversation_type}")
async def clear_history(
    conversation_type: str,
    user_session: Tuple[User, AsyncSession] = Depends(get_current_user_with_session),
) -> Dict[str, Any]:
    user, session = user_session
    assistant_type = _conversation_type(conversation_type)

    conversation = await AssistantService.clear_conversation(session, user.id, assistant_type)
    return {"success": True, "conversation": serialize_conversation(conversation)}
