"""
Tests for notifications and the realtime broker
"""

import asyncio
from datetime import datetime, timedelta, UTC

import pytest

from fitai.core.enums import NotificationType, RealtimeEvent
from fitai.database.models import Notification
from fitai.services.notification_service import NotificationService
from fitai.services.realtime import RealtimeBroker, get_realtime_broker

from tests.conftest import auth_headers


# ============================================================================
# BROKER
# ============================================================================


@pytest.mark.asyncio
async def test_publish_only_reaches_target_user():
    broker = RealtimeBroker()
    ana_queue = broker.subscribe(1)
    bia_queue = broker.subscribe(2)

    delivered = await broker.publish(1, "notification.created", {"id": 10})

    assert delivered == 1
    assert ana_queue.get_nowait() == {"event": "notification.created", "data": {"id": 10}}
    assert bia_queue.empty()


@pytest.mark.asyncio
async def test_full_queue_drops_oldest_event():
    broker = RealtimeBroker(queue_size=2)
    queue = broker.subscribe(1)

    for i in range(3):
        await broker.publish(1, "tick", {"i": i})

    assert [queue.get_nowait()["data"]["i"] for _ in range(2)] == [1, 2]


def test_unsubscribe_removes_empty_user():
    broker = RealtimeBroker()
    first = broker.subscribe(1)
    second = broker.subscribe(1)

    broker.unsubscribe(1, first)
    assert broker.subscriber_count(1) == 1

    broker.unsubscribe(1, second)
    assert broker.subscriber_count() == 0
    broker.unsubscribe(1, second)


# ============================================================================
# SERVICE
# ============================================================================


@pytest.mark.asyncio
async def test_create_notification_is_pushed(db_session, make_user):
    user = await make_user()
    broker = get_realtime_broker()
    queue = broker.subscribe(user.id)

    try:
        notification = await NotificationService.notify_workout_reminder(db_session, user.id)
        message = await asyncio.wait_for(queue.get(), timeout=1)
    finally:
        broker.unsubscribe(user.id, queue)

    assert message["event"] == RealtimeEvent.NOTIFICATION_CREATED.value
    assert message["data"]["id"] == notification.id
    assert message["data"]["type"] == NotificationType.WORKOUT_REMINDER.value


@pytest.mark.asyncio
async def test_read_state_is_scoped_to_owner(db_session, make_user):
    owner = await make_user(email="owner@example.com")
    other = await make_user(email="other@example.com")
    notification = await NotificationService.create_notification(
        db_session, owner.id, "Olá", "Bem-vindo"
    )

    assert not await NotificationService.mark_as_read(db_session, other.id, notification.id)
    assert await NotificationService.unread_count(db_session, owner.id) == 1

    assert await NotificationService.mark_as_read(db_session, owner.id, notification.id)
    assert await NotificationService.unread_count(db_session, owner.id) == 0


@pytest.mark.asyncio
async def test_cleanup_old_notifications(db_session, make_user):
    user = await make_user()
    db_session.add(Notification(
        user_id=user.id,
        title="Antiga",
        message="...",
        type="info",
        created_at=datetime.now(UTC) - timedelta(days=45),
    ))
    await db_session.commit()
    await NotificationService.create_notification(db_session, user.id, "Nova", "...")

    deleted = await NotificationService.cleanup_old_notifications(db_session, days=30)

    assert deleted == 1
    remaining = await NotificationService.list_notifications(db_session, user.id)
    assert [n.title for n in remaining] == ["Nova"]


# ============================================================================
# API
# ============================================================================


@pytest.mark.asyncio
async def test_notifications_endpoints(client, db_session, make_user):
    user = await make_user()
    headers = auth_headers(user)
    first = await NotificationService.create_notification(db_session, user.id, "Um", "1")
    await NotificationService.create_notification(db_session, user.id, "Dois", "2")

    listing = await client.get("/api/notifications", headers=headers)
    assert [n["title"] for n in listing.json()["notifications"]] == ["Dois", "Um"]

    assert (await client.get("/api/notifications/unread-count", headers=headers)).json() == {"count": 2}

    assert (await client.post(f"/api/notifications/{first.id}/read", headers=headers)).status_code == 200
    read_all = await client.post("/api/notifications/read-all", headers=headers)
    assert read_all.json()["updated"] == 1

    assert (await client.delete(f"/api/notifications/{first.id}", headers=headers)).status_code == 200
    assert (await client.delete(f"/api/notifications/{first.id}", headers=headers)).status_code == 404
