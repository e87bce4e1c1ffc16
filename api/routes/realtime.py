"""
Real-time action stream (WebSocket).
"""

import json
import logging
import re

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from behavior.models import ActionType
from ..services import get_services
from .tracking import CLIENT_ID_PATTERN

logger = logging.getLogger(__name__)
router = APIRouter(tags=["realtime"])


@router.websocket("/ws/clients/{client_id}/actions")
async def websocket_actions(websocket: WebSocket, client_id: str):
    """
    WebSocket endpoint for live actions.

    Receives: {"type": "page_view", "details": {...}, "page": "/services"}
    Sends: {"type": "action"|"error", "data": ...}
    """
    if not re.fullmatch(CLIENT_ID_PATTERN, client_id):
        await websocket.close(code=1008)
        return

    services = get_services()
    manager = services.connection_manager
    context = services.get_context(client_id)
    await manager.connect(websocket, client_id)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
                if not isinstance(data, dict):
                    raise ValueError(f"Expected an object, got {raw!r}")
                try:
                    action_type = ActionType(data.get("type"))
                except ValueError:
                    raise ValueError(f"Unknown action: {data!r}") from None
                context.session_manager.record_action(
                    action_type,
                    details=data.get("details") or {},
                    page=data.get("page"),
                )
            except Exception as e:
                logger.error(f"WS processing error for {client_id}: {e}")
                await websocket.send_json({"type": "error", "data": str(e)})
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(websocket, client_id)
