"""
Core Enums - types shared by models, services and realtime events.

Defines:
- NotificationType: kind of in-app notification
- ConversationType: which AI assistant a transcript belongs to
- RealtimeEvent: event names pushed over the per-user channel
"""

from enum import Enum


class NotificationType(str, Enum):
    """In-app notification kinds (drive icon/color on the client)."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    FORUM_REPLY = "forum_reply"
    WORKOUT_REMINDER = "workout_reminder"
    ACHIEVEMENT = "achievement"


class ConversationType(str, Enum):
    """AI assistant kinds."""

    GENERAL = "general"
    NUTRITION = "nutrition"

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]


class RealtimeEvent(str, Enum):
    """Events published on a user's realtime channel."""

    NOTIFICATION_CREATED = "notification.created"
    WORKOUT_QUEUE_UPDATED = "workout_queue.updated"
    SUBSCRIPTION_UPDATED = "subscription.updated"
