"""
Assistant Service - general and nutrition chat assistants

One transcript per (user, conversation type). New transcripts start
with the assistant greeting; the LLM sees the trailing history window.
"""

from datetime import datetime, UTC
from typing import Optional, List, Dict, Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.prompts import ASSISTANTS
from fitai.core.enums import ConversationType
from fitai.database.models import AIConversation, User
from fitai.services.llm_service import LLMService, get_llm_service
from fitai.utils.time_utils import isoformat


def _turn(role: str, content: str) -> Dict[str, Any]:
    return {
        "role": role,
        "content": content,
        "timestamp": datetime.now(UTC).isoformat(),
    }


def serialize_conversation(conversation: AIConversation) -> Dict[str, Any]:
    return {
        "id": conversation.id,
        "conversation_type": conversation.conversation_type,
        "messages": conversation.messages or [],
        "created_at": isoformat(conversation.created_at),
        "updated_at": isoformat(conversation.updated_at),
    }


class AssistantService:
    """Persisted conversations with the AI assistants"""

    def __init__(self, llm: Optional[LLMService] = None):
        self.llm = llm or get_llm_service()

    @staticmethod
    def greeting_for(conversation_type: ConversationType) -> str:
        return ASSISTANTS[ConversationType(conversation_type).value]["greeting"]

    @staticmethod
    async def get_conversation(
        session: AsyncSession, user_id: int, conversation_type: ConversationType
    ) -> Optional[AIConversation]:
        stmt = (
            select(AIConversation)
            .where(AIConversation.user_id == user_id)
            .where(AIConversation.conversation_type == ConversationType(conversation_type).value)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_or_create_conversation(
        session: AsyncSession, user_id: int, conversation_type: ConversationType
    ) -> AIConversation:
        """
        Load transcript, creating it (seeded with the greeting) on first use
        """
        conversation = await AssistantService.get_conversation(session, user_id, conversation_type)
        if conversation:
            return conversation

        conversation = AIConversation(
            user_id=user_id,
            conversation_type=ConversationType(conversation_type).value,
            messages=[_turn("assistant", AssistantService.greeting_for(conversation_type))],
        )
        session.add(conversation)
        await session.commit()
        await session.refresh(conversation)

        logger.info(f"Created {conversation.conversation_type} conversation for user {user_id}")
        return conversation

    async def send_message(
        self,
        session: AsyncSession,
        user: User,
        conversation_type: ConversationType,
        message: str,
    ) -> Dict[str, Any]:
        """
        Send user message to an assistant and persist both turns

        Args:
            session: Database session
            user: Author
            conversation_type: general or nutrition
            message: User text

        Returns:
            {"message": answer, "conversation_id": id, "fallback": bool}
        """
        assistant = ASSISTANTS[ConversationType(conversation_type).value]
        conversation = await self.get_or_create_conversation(session, user.id, conversation_type)

        history = list(conversation.messages or [])

        answer = await self.llm.generate(assistant["system_prompt"], history, message)
        used_fallback = answer is None
        if used_fallback:
            answer = assistant["fallback"]

        # JSON columns only detect reassignment
        conversation.messages = history + [_turn("user", message), _turn("assistant", answer)]
        conversation.updated_at = datetime.now(UTC)
        await session.commit()

        logger.info(
            f"Assistant {conversation.conversation_type} replied to user {user.id} "
            f"(fallback={used_fallback}, turns={len(conversation.messages)})"
        )

        return {
            "message": answer,
            "conversation_id": conversation.id,
            "fallback": used_fallback,
        }

    @staticmethod
    async def clear_conversation(
        session: AsyncSession, user_id: int, conversation_type: ConversationType
    ) -> AIConversation:
        """Reset transcript to the greeting only"""
        conversation = await AssistantService.get_or_create_conversation(
            session, user_id, conversation_type
        )
        conversation.messages = [_turn("assistant", AssistantService.greeting_for(conversation_type))]
        conversation.updated_at = datetime.now(UTC)
        await session.commit()
        return conversation

    @staticmethod
    async def list_conversations(session: AsyncSession, user_id: int) -> List[AIConversation]:
        stmt = (
            select(AIConversation)
            .where(AIConversation.user_id == user_id)
            .order_by(AIConversation.updated_at.desc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def has_user_turn(conversation: Optional[AIConversation]) -> bool:
        if not conversation:
            return False
        return any(turn.get("role") == "user" for turn in conversation.messages or [])
