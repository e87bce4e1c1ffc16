"""
Behavior tracking API routes.

Inbound interaction events from the presentation layer and read access
to the client's sessions.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Path
from pydantic import BaseModel, Field

from behavior.models import ActionType
from ..services import get_services

logger = logging.getLogger(__name__)

router = APIRouter()

# Client ids double as storage namespaces, so keep them filename-safe
CLIENT_ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"


# Models
class ActionRequest(BaseModel):
    """Action recording request."""
    type: ActionType
    details: Dict[str, Any] = Field(default_factory=dict)
    page: Optional[str] = Field(default=None, max_length=2048)


class ActionResponse(BaseModel):
    action: Dict[str, Any]
    session_id: str
    engagement_score: float


class VisibilityRequest(BaseModel):
    hidden: bool


@router.post("/clients/{client_id}/actions", response_model=ActionResponse)
async def record_action(
    request: ActionRequest,
    client_id: str = Path(..., pattern=CLIENT_ID_PATTERN),
):
    """Record a user interaction in the client's current session."""
    context = get_services().get_context(client_id)
    action = context.session_manager.record_action(request.type, request.details, request.page)
    session = context.session_manager.get_current_session()
    return ActionResponse(
        action=action.to_dict(),
        session_id=session.id,
        engagement_score=round(session.engagement_score, 2),
    )


@router.get("/clients/{client_id}/session")
async def get_current_session(client_id: str = Path(..., pattern=CLIENT_ID_PATTERN)):
    """Current session, or null between sessions."""
    session = get_services().get_context(client_id).session_manager.get_current_session()
    return {"session": session.to_dict() if session else None}


@router.get("/clients/{client_id}/sessions")
async def list_sessions(client_id: str = Path(..., pattern=CLIENT_ID_PATTERN)):
    """Archived sessions, oldest first."""
    sessions = get_services().get_context(client_id).session_manager.get_all_sessions()
    return {"sessions": [s.to_dict() for s in sessions], "total": len(sessions)}


@router.post("/clients/{client_id}/visibility")
async def visibility_change(
    request: VisibilityRequest,
    client_id: str = Path(..., pattern=CLIENT_ID_PATTERN),
):
    """Hidden ends the current session; visible starts a new one if needed."""
    manager = get_services().get_context(client_id).session_manager
    manager.handle_visibility_change(request.hidden)
    session = manager.get_current_session()
    return {"hidden": request.hidden, "session_id": session.id if session else None}


@router.delete("/clients/{client_id}/data")
async def clear_data(client_id: str = Path(..., pattern=CLIENT_ID_PATTERN)):
    """Delete all tracked sessions for a client."""
    context = get_services().get_context(client_id)
    context.session_manager.clear_all()
    context.activity_feed.clear()
    logger.info(f"Tracking data cleared for client {client_id}")
    return {"cleared": True}


@router.get("/clients/{client_id}/activity")
async def recent_activity(client_id: str = Path(..., pattern=CLIENT_ID_PATTERN)):
    """Most recent actions, newest first."""
    actions = get_services().get_context(client_id).activity_feed.recent()
    return {"actions": [a.to_dict() for a in actions]}
