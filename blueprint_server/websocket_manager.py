"""
WebSocket Manager - Pushes blueprint change events to connected canvases.

Events are sequenced so a client that sees a gap knows it missed an update
and should refetch GET /api/blueprint. A newly connected client is sent the
latest event straight away instead of waiting for the next mutation.
"""

import asyncio
import json
from typing import Any, Optional

from fastapi import WebSocket

from blueprint_core.logging_config import get_logger

logger = get_logger(__name__)

BLUEPRINT_UPDATED = "blueprint_updated"
BLUEPRINT_CLOSED = "blueprint_closed"


class WebSocketManager:
    """Tracks subscribed clients and fans blueprint events out to them."""

    def __init__(self):
        self._clients: set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._sequence = 0
        self._last_event: Optional[dict[str, Any]] = None

    @property
    def connection_count(self) -> int:
        return len(self._clients)

    @property
    def last_event(self) -> Optional[dict[str, Any]]:
        return self._last_event

    async def connect(self, websocket: WebSocket):
        """Accept a client and replay the latest event to it."""
        await websocket.accept()
        async with self._lock:
            self._clients.add(websocket)
            replay = self._last_event
        logger.info("websocket_connected", connections=self.connection_count)
        if replay is not None and not await self._send(websocket, json.dumps(replay)):
            await self.disconnect(websocket)

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            self._clients.discard(websocket)
        logger.info("websocket_disconnected", connections=self.connection_count)

    async def _send(self, websocket: WebSocket, text: str) -> bool:
        try:
            await websocket.send_text(text)
        except Exception as e:
            logger.debug("websocket_send_failed", error=str(e))
            return False
        return True

    async def broadcast(self, message: dict[str, Any]) -> int:
        """
        Send a message to every client at once.

        Clients whose send fails are dropped. Returns how many clients
        received the message.
        """
        async with self._lock:
            clients = list(self._clients)
        if not clients:
            return 0

        text = json.dumps(message)
        results = await asyncio.gather(*(self._send(ws, text) for ws in clients))
        dropped = {ws for ws, ok in zip(clients, results) if not ok}
        if dropped:
            async with self._lock:
                self._clients -= dropped
            logger.info("websocket_clients_dropped", dropped=len(dropped),
                        connections=self.connection_count)
        return len(clients) - len(dropped)

    async def publish(
        self,
        blueprint_id: Optional[str],
        version: Optional[int],
        is_dirty: bool = False,
    ) -> Optional[dict[str, Any]]:
        """
        Announce the session's current blueprint.

        A missing blueprint id means the session was closed. Publishing the
        same state twice in a row is skipped, since change notifications
        are coalesced and may repeat. Returns the event sent, or None.
        """
        if blueprint_id is None:
            state = {"type": BLUEPRINT_CLOSED}
        else:
            state = {
                "type": BLUEPRINT_UPDATED,
                "blueprint_id": blueprint_id,
                "version": version,
                "is_dirty": is_dirty,
            }
        if self._last_event is not None:
            previous = {k: v for k, v in self._last_event.items() if k != "sequence"}
            if previous == state:
                return None

        self._sequence += 1
        event = {**state, "sequence": self._sequence}
        self._last_event = event
        await self.broadcast(event)
        return event


# Global instance
ws_manager = WebSocketManager()
