# app/routers/websocket.py
"""
Shared WebSocket endpoint for the sensor device and browser dashboards.

Clients identify themselves with a register message (or a role hint on their
first message); everything after that goes through the message router.
"""
import logging

from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketDisconnect

router = APIRouter(tags=["websocket"])

logger = logging.getLogger(__name__)


@router.websocket("/")
@router.websocket("/ws")
async def relay_websocket(websocket: WebSocket):
    hub = websocket.app.state.hub
    await websocket.accept()

    address = websocket.client.host if websocket.client else None
    connection = hub.registry.add(websocket, address=address)

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))
            raw = frame.get("text")
            if raw is None:
                raw = frame.get("bytes")
            await hub.router.handle(connection, raw)
    except WebSocketDisconnect:
        logger.info("[WS] Client %s disconnected", connection.id)
    except Exception as e:
        logger.error("[WS] Connection error for %s: %s", connection.id, e)
    finally:
        hub.registry.unregister(connection.id)
