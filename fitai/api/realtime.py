"""
Realtime WebSocket

    WS /api/realtime/ws?token=<JWT>

Forwards the user's events as JSON ({"event": ..., "data": ...}).
The client may send "ping" and gets {"event": "pong"} back.
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query, status
from loguru import logger

from fitai.database.crud import get_user_by_id
from fitai.database.engine import get_session_maker
from fitai.services.auth_service import AuthService
from fitai.services.realtime import get_realtime_broker


router = APIRouter(prefix="/realtime", tags=["realtime"])


async def _authenticate(token: str) -> Optional[int]:
    payload = AuthService.decode_access_token(token)
    if not payload or not payload.get("user_id"):
        return None

    async with get_session_maker()() as session:
        user = await get_user_by_id(session, int(payload["user_id"]))
        if not user or user.is_banned:
            return None
        return user.id


@router.websocket("/ws")
async def realtime_ws(websocket: WebSocket, token: str = Query("")):
    user_id = await _authenticate(token)
    if user_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    broker = get_realtime_broker()
    queue = broker.subscribe(user_id)

    async def forward_events() -> None:
        while True:
            message = await queue.get()
            await websocket.send_json(message)

    async def read_client() -> None:
        while True:
            text = await websocket.receive_text()
            if text.strip().lower() == "ping":
                await websocket.send_json({"event": "pong"})

    tasks = [
        asyncio.create_task(forward_events()),
        asyncio.create_task(read_client()),
    ]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            error = task.exception()
            if error and not isinstance(error, WebSocketDisconnect):
                logger.warning(f"Realtime connection for user {user_id} closed with error: {error}")
    finally:
        for task in tasks:
            task.cancel()
        broker.unsubscribe(user_id, queue)
