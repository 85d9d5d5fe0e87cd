"""
Notification Service - in-app notifications

Every inserted row is pushed to the owner's realtime channel
as a notification.created event.
"""

from datetime import datetime, timedelta, UTC
from typing import Optional, List, Dict, Any

from loguru import logger
from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from fitai.core.enums import NotificationType, RealtimeEvent
from fitai.database.models import Notification
from fitai.services.realtime import get_realtime_broker
from fitai.utils.time_utils import isoformat


def serialize_notification(notification: Notification) -> Dict[str, Any]:
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.type,
        "is_read": notification.is_read,
        "action_url": notification.action_url,
        "metadata": notification.extra_data,
        "created_at": isoformat(notification.created_at),
    }


class NotificationService:
    """Create, list and clean up in-app notifications"""

    @staticmethod
    async def create_notification(
        session: AsyncSession,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType | str = NotificationType.INFO,
        action_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[Notification]:
        """
        Insert notification and push it to the user's realtime channel

        Args:
            session: Database session
            user_id: Recipient
            title: Short title
            message: Body text
            type: NotificationType
            action_url: Client route to open on click
            metadata: Free-form payload

        Returns:
            Created Notification or None on error
        """
        try:
            notification = Notification(
                user_id=user_id,
                title=title,
                message=message,
                type=NotificationType(type).value,
                action_url=action_url,
                extra_data=metadata,
            )
            session.add(notification)
            await session.commit()
            await session.refresh(notification)

        except Exception as e:
            logger.error(f"Error creating notification for user {user_id}: {e}")
            await session.rollback()
            return None

        await get_realtime_broker().publish(
            user_id,
            RealtimeEvent.NOTIFICATION_CREATED.value,
            serialize_notification(notification),
        )
        logger.info(f"Notification {notification.id} ({notification.type}) -> user {user_id}")
        return notification

    @staticmethod
    async def notify_forum_reply(
        session: AsyncSession, user_id: int, post_id: int, post_title: str, replier_name: str
    ) -> Optional[Notification]:
        return await NotificationService.create_notification(
            session,
            user_id=user_id,
            title="Nova resposta no fórum",
            message=f'{replier_name} respondeu ao seu post "{post_title}"',
            type=NotificationType.FORUM_REPLY,
            action_url=f"/forum/posts/{post_id}",
            metadata={"post_id": post_id},
        )

    @staticmethod
    async def notify_workout_reminder(
        session: AsyncSession, user_id: int
    ) -> Optional[Notification]:
        return await NotificationService.create_notification(
            session,
            user_id=user_id,
            title="Hora do treino!",
            message="Não esqueça do seu treino de hoje. Mantenha sua sequência!",
            type=NotificationType.WORKOUT_REMINDER,
            action_url="/workout",
        )

    @staticmethod
    async def notify_achievement(
        session: AsyncSession, user_id: int, achievement_title: str, achievement_id: str
    ) -> Optional[Notification]:
        return await NotificationService.create_notification(
            session,
            user_id=user_id,
            title="Conquista desbloqueada!",
            message=f"Você desbloqueou: {achievement_title}",
            type=NotificationType.ACHIEVEMENT,
            metadata={"achievement_id": achievement_id},
        )

    @staticmethod
    async def list_notifications(
        session: AsyncSession, user_id: int, limit: int = 50
    ) -> List[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def unread_count(session: AsyncSession, user_id: int) -> int:
        stmt = (
            select(func.count(Notification.id))
            .where(Notification.user_id == user_id)
            .where(Notification.is_read.is_(False))
        )
        result = await session.execute(stmt)
        return result.scalar() or 0

    @staticmethod
    async def mark_as_read(session: AsyncSession, user_id: int, notification_id: int) -> bool:
        """Mark one of the user's notifications as read. False if not found."""
        stmt = (
            update(Notification)
            .where(Notification.id == notification_id)
            .where(Notification.user_id == user_id)
            .values(is_read=True)
        )
        result = await session.execute(stmt)
        await session.commit()
        return (result.rowcount or 0) > 0

    @staticmethod
    async def mark_all_as_read(session: AsyncSession, user_id: int) -> int:
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id)
            .where(Notification.is_read.is_(False))
            .values(is_read=True)
        )
        result = await session.execute(stmt)
        await session.commit()
        return result.rowcount or 0

    @staticmethod
    async def delete_notification(session: AsyncSession, user_id: int, notification_id: int) -> bool:
        stmt = (
            delete(Notification)
            .where(Notification.id == notification_id)
            .where(Notification.user_id == user_id)
        )
        result = await session.execute(stmt)
        await session.commit()
        return (result.rowcount or 0) > 0

    @staticmethod
    async def cleanup_old_notifications(session: AsyncSession, days: int = 30) -> int:
        """
        Delete notifications older than N days

        Returns:
            Number of deleted rows
        """
        cutoff = datetime.now(UTC) - timedelta(days=days)
        stmt = delete(Notification).where(Notification.created_at < cutoff)
        result = await session.execute(stmt)
        await session.commit()

        deleted = result.rowcount or 0
        if deleted:
            logger.info(f"Deleted {deleted} notifications older than {days} days")
        return deleted
