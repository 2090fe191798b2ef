import json
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Relay"])

RELAYED_TYPES = {
    "destination-update",
    "position-update",
    "client-position",
    "client-register",
    "client-hello",
    "client-stop",
}
CLIENT_ID_TYPES = {"client-position", "client-register", "client-hello"}


class ConnectionManager:
    """
    Fan-out of JSON messages to every connected dashboard.

    Remembers the last ``clientId`` each socket announced so that a
    ``client-stop`` can be broadcast when the socket goes away.
    """

    def __init__(self):
        self.active: List[WebSocket] = []
        self.client_ids: Dict[WebSocket, str] = {}

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active.append(websocket)

    def disconnect(self, websocket: WebSocket) -> Optional[str]:
        if websocket in self.active:
            self.active.remove(websocket)
        return self.client_ids.pop(websocket, None)

    async def broadcast(self, message: dict):
        for connection in list(self.active):
            try:
                await connection.send_json(message)
            except (RuntimeError, WebSocketDisconnect) as exc:
                logger.debug("Dropping relay connection: %s", exc)
                self.disconnect(connection)

    def remember(self, websocket: WebSocket, message: dict) -> None:
        client_id = message.get("clientId")
        if message.get("type") in CLIENT_ID_TYPES and client_id:
            self.client_ids[websocket] = str(client_id)


def relay_message(raw: str) -> dict:
    """Known message types pass through; anything else is wrapped"""
    try:
        message = json.loads(raw)
    except ValueError:
        return {"type": "message", "payload": raw}
    if isinstance(message, dict) and message.get("type") in RELAYED_TYPES:
        return message
    return {"type": "message", "payload": message}


manager = ConnectionManager()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await manager.connect(websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            message = relay_message(raw)
            manager.remember(websocket, message)
            await manager.broadcast(message)
    except WebSocketDisconnect:
        client_id = manager.disconnect(websocket)
        if client_id:
            await manager.broadcast({"type": "client-stop", "clientId": client_id})
