"""
Data structures for predictive lead scoring.

Leads and touchpoints are supplied by an external lead source and are
treated as read-only input.
"""

from enum import Enum
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from behavior.models import parse_timestamp


def round_half_up(value: float) -> int:
    """Round to the nearest integer with ties going up (22.5 -> 23)."""
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class TouchpointType(Enum):
    """Known touchpoint kinds. Unknown kinds are accepted as plain strings."""
    WEBSITE_VISIT = "website_visit"
    EMAIL_OPEN = "email_open"
    EMAIL_CLICK = "email_click"
    FORM_SUBMIT = "form_submit"
    DEMO_REQUEST = "demo_request"
    CONTENT_DOWNLOAD = "content_download"
    SOCIAL_ENGAGEMENT = "social_engagement"
    WHATSAPP_CONTACT = "whatsapp_contact"
    BLOG_READ = "blog_read"


class LeadQuality(Enum):
    HOT = "Hot"      # Score >= 70
    WARM = "Warm"    # Score 45-69
    COLD = "Cold"    # Score < 45


class Urgency(Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


@dataclass(frozen=True)
class Touchpoint:
    """A single marketing interaction with a lead."""
    id: str
    type: str
    timestamp: datetime
    value: float = 0.0
    page: Optional[str] = None
    campaign: Optional[str] = None
    duration: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "timestamp", parse_timestamp(self.timestamp))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Touchpoint":
        touchpoint_type = data["type"]
        if isinstance(touchpoint_type, TouchpointType):
            touchpoint_type = touchpoint_type.value
        return cls(
            id=str(data["id"]),
            type=str(touchpoint_type),
            timestamp=data["timestamp"],
            value=float(data.get("value") or 0),
            page=data.get("page"),
            campaign=data.get("campaign"),
            duration=data.get("duration"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "timestamp": self.timestamp.isoformat(),
            "value": self.value,
            "page": self.page,
            "campaign": self.campaign,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class Lead:
    """Lead record as supplied by the lead source."""
    id: str
    name: str = ""
    email: str = ""
    company: str = ""
    industry: str = ""
    company_size: str = ""
    budget: str = ""
    engagement_score: float = 0.0
    source: str = ""
    created_at: Optional[datetime] = None
    touchpoints: List[Touchpoint] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Lead":
        created_at = data.get("created_at")
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            email=data.get("email") or "",
            company=data.get("company") or "",
            industry=data.get("industry") or "",
            company_size=data.get("company_size") or "",
            budget=data.get("budget") or "",
            engagement_score=float(data.get("engagement_score") or 0),
            source=data.get("source") or "",
            created_at=parse_timestamp(created_at) if created_at else None,
            touchpoints=[Touchpoint.from_dict(tp) for tp in data.get("touchpoints") or []],
        )


@dataclass
class ScoreFactors:
    """Per-factor scores, each normalized to 0-100."""
    engagement: float
    company_fit: float
    budget: float
    timing: float
    touchpoint_quality: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "engagement": round(self.engagement, 2),
            "company_fit": round(self.company_fit, 2),
            "budget": round(self.budget, 2),
            "timing": round(self.timing, 2),
            "touchpoint_quality": round(self.touchpoint_quality, 2),
        }


@dataclass
class PredictiveScore:
    """Lead score result."""
    lead_id: str
    conversion_probability: float  # 0-100
    predicted_clv: int
    lead_quality: LeadQuality
    urgency: Urgency
    recommended_action: str
    factors: ScoreFactors
    cac_reduction: int  # percent

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "lead_id": self.lead_id,
            "conversion_probability": round(self.conversion_probability, 2),
            "predicted_clv": self.predicted_clv,
            "lead_quality": self.lead_quality.value,
            "urgency": self.urgency.value,
            "recommended_action": self.recommended_action,
            "factors": self.factors.to_dict(),
            "cac_reduction": self.cac_reduction,
        }


@dataclass
class AttributionModel:
    """Revenue credit assigned to one touchpoint."""
    touchpoint_id: str
    touchpoint_type: str
    timestamp: datetime
    attribution_value: float  # percent of the lead's total
    contribution: str
    roi: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "touchpoint_id": self.touchpoint_id,
            "touchpoint_type": self.touchpoint_type,
            "timestamp": self.timestamp.isoformat(),
            "attribution_value": self.attribution_value,
            "contribution": self.contribution,
            "roi": self.roi,
        }


@dataclass
class LeadInsights:
    """Portfolio summary over a batch of scores."""
    hot_leads: int = 0
    warm_leads: int = 0
    cold_leads: int = 0
    avg_conversion_prob: int = 0
    avg_clv: int = 0
    avg_cac_reduction: int = 0
    total_potential_revenue: int = 0
    high_urgency_count: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "hot_leads": self.hot_leads,
            "warm_leads": self.warm_leads,
            "cold_leads": self.cold_leads,
            "avg_conversion_prob": self.avg_conversion_prob,
            "avg_clv": self.avg_clv,
            "avg_cac_reduction": self.avg_cac_reduction,
            "total_potential_revenue": self.total_potential_revenue,
            "high_urgency_count": self.high_urgency_count,
        }
