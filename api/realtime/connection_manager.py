"""
WebSocket Connection Manager for the live action stream.

Tracks active WebSocket connections per client and pushes newly
recorded actions to them.
"""

import asyncio
import logging
from typing import Callable, Dict, List

from fastapi import WebSocket

from behavior.models import Action

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages active WebSocket connections by client_id."""

    def __init__(self):
        self._connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, client_id: str):
        """Accept and register a WebSocket connection."""
        await websocket.accept()
        self._connections.setdefault(client_id, []).append(websocket)
        logger.info(f"WS connected: {client_id} (total: {self.active_count})")

    def disconnect(self, websocket: WebSocket, client_id: str):
        """Remove a WebSocket connection."""
        if client_id in self._connections:
            self._connections[client_id] = [
                ws for ws in self._connections[client_id] if ws != websocket
            ]
            if not self._connections[client_id]:
                del self._connections[client_id]
        logger.info(f"WS disconnected: {client_id}")

    async def send_message(self, client_id: str, message: dict):
        """Send a message to all connections for a client."""
        connections = self._connections.get(client_id, [])
        dead = []
        for ws in connections:
            try:
                await ws.send_json(message)
            except Exception as e:
                logger.debug(f"WS send failed for {client_id}: {e}")
                dead.append(ws)
        for ws in dead:
            self.disconnect(ws, client_id)

    def action_publisher(self, client_id: str) -> Callable[[Action], None]:
        """
        Build a session-manager subscriber that forwards actions to this client's sockets.

        Delivery is scheduled on the running loop; without a loop (or without
        listeners) the action is skipped.
        """
        def publish(action: Action):
            if not self.is_connected(client_id):
                return
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                return
            loop.create_task(self.send_message(client_id, {"type": "action", "data": action.to_dict()}))

        return publish

    @property
    def active_count(self) -> int:
        return sum(len(conns) for conns in self._connections.values())

    def is_connected(self, client_id: str) -> bool:
        return bool(self._connections.get(client_id))
