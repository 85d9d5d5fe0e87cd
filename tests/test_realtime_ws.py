"""
Tests for the realtime WebSocket endpoint
JWT check on connect, event forwarding and ping/pong
"""

from contextlib import asynccontextmanager
from types import SimpleNamespace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from fitai.api import realtime as realtime_api
from fitai.services.auth_service import AuthService
from fitai.services.realtime import RealtimeBroker


ACTIVE_USER_ID = 7
BANNED_USER_ID = 8

USERS = {
    ACTIVE_USER_ID: SimpleNamespace(id=ACTIVE_USER_ID, is_banned=False),
    BANNED_USER_ID: SimpleNamespace(id=BANNED_USER_ID, is_banned=True),
}


def token_for(user_id: int) -> str:
    return AuthService.create_access_token(user_id, f"user{user_id}@example.com")


@asynccontextmanager
async def _no_database():
    yield None


@pytest.fixture
def broker(monkeypatch):
    """
    Fresh broker; user lookup served from USERS instead of the database
    """
    fresh_broker = RealtimeBroker()

    async def _get_user_by_id(session, user_id):
        return USERS.get(user_id)

    monkeypatch.setattr(realtime_api, "get_realtime_broker", lambda: fresh_broker)
    monkeypatch.setattr(realtime_api, "get_session_maker", lambda: _no_database)
    monkeypatch.setattr(realtime_api, "get_user_by_id", _get_user_by_id)
    return fresh_broker


@pytest.fixture
def ws_client(broker):
    application = FastAPI()
    application.include_router(realtime_api.router, prefix="/api")

    with TestClient(application) as client:
        yield client


@pytest.mark.parametrize("case", ["empty", "garbage", "banned", "unknown_user"])
def test_connection_rejected_with_policy_violation(ws_client, case):
    token = {
        "empty": "",
        "garbage": "not-a-jwt",
        "banned": token_for(BANNED_USER_ID),
        "unknown_user": token_for(99),
    }[case]

    with pytest.raises(WebSocketDisconnect) as exc_info:
        with ws_client.websocket_connect(f"/api/realtime/ws?token={token}"):
            pass

    assert exc_info.value.code == 1008


def test_events_are_forwarded_to_connected_user(ws_client, broker):
    with ws_client.websocket_connect(f"/api/realtime/ws?token={token_for(ACTIVE_USER_ID)}") as websocket:
        websocket.send_text("ping")
        assert websocket.receive_json() == {"event": "pong"}

        delivered = ws_client.portal.call(
            broker.publish, ACTIVE_USER_ID, "workout_plan.updated", {"status": "completed"}
        )

        assert delivered == 1
        assert websocket.receive_json() == {
            "event": "workout_plan.updated",
            "data": {"status": "completed"},
        }

    assert broker.subscriber_count() == 0
