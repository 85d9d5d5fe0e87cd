"""
Realtime Broker - per-user in-process pub/sub

Every WebSocket connection subscribes a bounded queue for its user id.
Publishers (notifications, workout queue, billing) push events filtered
by user id; only that user's subscribers receive them.
"""

import asyncio
from typing import Dict, Set, Any, Optional

from loguru import logger


QUEUE_SIZE = 32


class RealtimeBroker:
    """
    In-process per-user event fan-out

    A full queue drops its oldest event so slow consumers always
    end up with the latest row state.
    """

    def __init__(self, queue_size: int = QUEUE_SIZE):
        self.queue_size = queue_size
        self._subscribers: Dict[int, Set[asyncio.Queue]] = {}

    def subscribe(self, user_id: int) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers.setdefault(user_id, set()).add(queue)
        logger.debug(f"Realtime subscribe: user {user_id} ({len(self._subscribers[user_id])} connections)")
        return queue

    def unsubscribe(self, user_id: int, queue: asyncio.Queue) -> None:
        queues = self._subscribers.get(user_id)
        if not queues:
            return

        queues.discard(queue)
        if not queues:
            del self._subscribers[user_id]
        logger.debug(f"Realtime unsubscribe: user {user_id}")

    def subscriber_count(self, user_id: Optional[int] = None) -> int:
        if user_id is not None:
            return len(self._subscribers.get(user_id, ()))
        return sum(len(queues) for queues in self._subscribers.values())

    async def publish(self, user_id: int, event: str, data: Dict[str, Any]) -> int:
        """
        Publish event to every connection of a user

        Args:
            user_id: Recipient user ID
            event: Event name (see RealtimeEvent)
            data: JSON-serializable payload

        Returns:
            Number of queues the event was delivered to
        """
        message = {"event": event, "data": data}
        delivered = 0

        for queue in list(self._subscribers.get(user_id, ())):
            if queue.full():
                try:
                    queue.get_nowait()
                except asyncio.QueueEmpty:
                    pass
            queue.put_nowait(message)
            delivered += 1

        if delivered:
            logger.debug(f"Realtime {event} -> user {user_id} ({delivered} connections)")
        return delivered


_broker: Optional[RealtimeBroker] = None


def get_realtime_broker() -> RealtimeBroker:
    """Get process-wide broker instance"""
    global _broker
    if _broker is None:
        _broker = RealtimeBroker()
    return _broker
