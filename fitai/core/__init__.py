"""
Core module - shared types and enums.
"""

from fitai.core.enums import (
    NotificationType,
    ConversationType,
    RealtimeEvent,
)

__all__ = [
    "NotificationType",
    "ConversationType",
    "RealtimeEvent",
]
