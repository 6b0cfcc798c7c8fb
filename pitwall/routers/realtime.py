# pitwall/routers/realtime.py
"""
Realtime race feed (WebSocket).
"""
import json

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from pitwall.config import Settings
from pitwall.core.deps import get_app_settings, get_registry
from pitwall.core.exceptions import SessionNotFoundException
from pitwall.core.logging import get_logger
from pitwall.services.session_registry import SessionRegistry

router = APIRouter(tags=["Realtime"])

logger = get_logger(__name__)


@router.websocket("/ws")
async def race_feed(
    websocket: WebSocket,
    session_id: str | None = None,
    registry: SessionRegistry = Depends(get_registry),
    settings: Settings = Depends(get_app_settings),
):
    """
    Live race feed.

    Usage:
        ws = new WebSocket("ws://localhost:8000/ws")
        ws.onmessage = (event) => {
            const msg = JSON.parse(event.data)
            // msg.type === "session": race, weather, drivers, player
            // msg.type === "tick": raceTime, leaderboard, playerTelemetry
        }

    Clients may also send {"type": "start" | "stop" | "reset"}.
    """
    session_id = session_id or settings.default_session_id
    try:
        session = registry.get(session_id)
    except SessionNotFoundException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    await session.attach(websocket)

    try:
        while True:
            data = await websocket.receive_text()
            try:
                command = json.loads(data).get("type")
            except (json.JSONDecodeError, AttributeError):
                logger.debug(f"Ignoring malformed viewer message: {data[:100]}")
                continue

            if command == "start":
                await session.start()
            elif command == "stop":
                await session.stop()
            elif command == "reset":
                await session.reset()

    except WebSocketDisconnect:
        logger.info(f"Viewer disconnected from session {session_id}")
    finally:
        await session.detach(websocket)
