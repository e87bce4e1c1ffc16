"""
Data structures for behavior tracking.

Sessions and actions serialize to plain dicts with ISO-8601 timestamps so
they can be written to the local event log and read back.
"""

from enum import Enum
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from datetime import datetime, timezone


class ActionType(Enum):
    """Kinds of user interaction the tracker records."""
    PAGE_VIEW = "page_view"
    BUTTON_CLICK = "button_click"
    SERVICE_VIEW = "service_view"
    CHAT_OPEN = "chat_open"
    CHAT_MESSAGE = "chat_message"
    FORM_START = "form_start"
    FORM_SUBMIT = "form_submit"
    SCROLL_DEPTH = "scroll_depth"
    TIME_ON_PAGE = "time_on_page"
    DOWNLOAD = "download"
    EXIT_INTENT = "exit_intent"


class PredictionType(Enum):
    NEXT_SERVICE = "next_service"
    CONVERSION_LIKELIHOOD = "conversion_likelihood"
    EXIT_INTENT = "exit_intent"
    PEAK_ACTIVITY = "peak_activity"
    CONTENT_INTEREST = "content_interest"


class RecommendedActionType(Enum):
    SHOW_POPUP = "show_popup"
    OFFER_DISCOUNT = "offer_discount"
    SUGGEST_SERVICE = "suggest_service"
    START_CHAT = "start_chat"
    SHOW_GUIDE = "show_guide"


class ActionPriority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO string or datetime into an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class Action:
    """A single recorded interaction. Never mutated after creation."""
    id: str
    type: ActionType
    timestamp: datetime
    page: str
    session_id: str
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def pattern_key(self) -> str:
        return f"{self.type.value}:{self.page}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            "page": self.page,
            "details": dict(self.details),
            "session_id": self.session_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Action":
        return cls(
            id=data["id"],
            type=ActionType(data["type"]),
            timestamp=parse_timestamp(data["timestamp"]),
            page=data.get("page") or "/",
            session_id=data["session_id"],
            details=dict(data.get("details") or {}),
        )


@dataclass
class Session:
    """A time-bounded run of actions for one client."""
    id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    actions: List[Action] = field(default_factory=list)
    engagement_score: float = 0.0
    predicted_interests: List[str] = field(default_factory=list)

    @property
    def is_ended(self) -> bool:
        return self.end_time is not None

    def duration_seconds(self, now: datetime) -> float:
        end = self.end_time or now
        return max(0.0, (end - self.start_time).total_seconds())

    def close(self, at: datetime):
        """Stamp the end time. A session can only be closed once."""
        if self.end_time is not None:
            raise ValueError(f"Session {self.id} already ended at {self.end_time.isoformat()}")
        self.end_time = at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "actions": [action.to_dict() for action in self.actions],
            "engagement_score": self.engagement_score,
            "predicted_interests": list(self.predicted_interests),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        end_time = data.get("end_time")
        return cls(
            id=data["id"],
            start_time=parse_timestamp(data["start_time"]),
            end_time=parse_timestamp(end_time) if end_time else None,
            actions=[Action.from_dict(a) for a in data.get("actions", [])],
            engagement_score=float(data.get("engagement_score", 0.0)),
            predicted_interests=list(data.get("predicted_interests", [])),
        )


@dataclass
class BehaviorPattern:
    """Observed transitions out of one `type:page` state."""
    pattern: str
    frequency: int
    last_occurrence: datetime
    predicted_next: List[str] = field(default_factory=list)
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pattern": self.pattern,
            "frequency": self.frequency,
            "last_occurrence": self.last_occurrence.isoformat(),
            "predicted_next": list(self.predicted_next),
            "confidence": round(self.confidence, 2),
        }


@dataclass
class RecommendedAction:
    type: RecommendedActionType
    priority: ActionPriority
    content: str
    cta: Optional[str] = None
    cta_link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "priority": self.priority.value,
            "content": self.content,
            "cta": self.cta,
            "cta_link": self.cta_link,
        }


@dataclass
class Prediction:
    """A confidence-scored prediction. Recomputed on every request."""
    type: PredictionType
    confidence: float
    suggestion: str
    action: Optional[RecommendedAction] = None
    data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "confidence": round(self.confidence, 2),
            "suggestion": self.suggestion,
            "action": self.action.to_dict() if self.action else None,
            "data": self.data,
        }


@dataclass
class EngagementMetrics:
    """Roll-up of historical sessions."""
    total_sessions: int = 0
    avg_session_duration: float = 0.0  # seconds
    avg_actions_per_session: float = 0.0
    top_pages: List[Dict[str, Any]] = field(default_factory=list)
    top_services: List[Dict[str, Any]] = field(default_factory=list)
    peak_hours: List[Dict[str, int]] = field(default_factory=list)
    conversion_rate: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_sessions": self.total_sessions,
            "avg_session_duration": round(self.avg_session_duration, 2),
            "avg_actions_per_session": round(self.avg_actions_per_session, 2),
            "top_pages": self.top_pages,
            "top_services": self.top_services,
            "peak_hours": self.peak_hours,
            "conversion_rate": round(self.conversion_rate, 2),
        }
