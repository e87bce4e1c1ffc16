"""
Lead Scoring API Routes.

Scores externally supplied lead batches and computes multi-touch
attribution. Nothing is stored.
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from behavior.models import parse_timestamp
from lead_scoring.attribution import calculate_attribution
from lead_scoring.models import Lead, Touchpoint
from ..services import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


# Models
class TouchpointIn(BaseModel):
    """Touchpoint as sent by the lead source."""
    id: str
    type: str = Field(..., description="website_visit, email_open, demo_request, ...")
    timestamp: datetime
    page: Optional[str] = None
    campaign: Optional[str] = None
    duration: Optional[float] = None
    value: float = 0


class LeadIn(BaseModel):
    """Lead as sent by the lead source."""
    id: str
    name: str = ""
    email: str = ""
    company: str = ""
    industry: str = ""
    company_size: str = ""
    budget: str = ""
    engagement_score: float = 0
    source: str = ""
    created_at: Optional[datetime] = None
    touchpoints: List[TouchpointIn] = Field(default_factory=list)


class BatchScoreRequest(BaseModel):
    leads: List[LeadIn]
    now: Optional[datetime] = None


class AttributionRequest(BaseModel):
    touchpoints: List[TouchpointIn]


def _to_lead(lead: LeadIn) -> Lead:
    return Lead.from_dict(lead.model_dump())


@router.post("/leads/score")
async def score_lead(
    request: LeadIn,
    now: Optional[datetime] = Query(None, description="Reference time for urgency"),
):
    """Score a single lead."""
    scorer = get_services().lead_scorer
    reference = parse_timestamp(now) if now else None
    return scorer.score_lead(_to_lead(request), now=reference).to_dict()


@router.post("/leads/score/batch")
async def score_leads(request: BatchScoreRequest):
    """Score a batch of leads and summarize the portfolio."""
    scorer = get_services().lead_scorer
    reference = parse_timestamp(request.now) if request.now else None
    scores = scorer.batch_score([_to_lead(lead) for lead in request.leads], now=reference)
    return {
        "scores": [score.to_dict() for score in scores],
        "insights": scorer.summarize(scores).to_dict(),
    }


@router.post("/leads/attribution")
async def attribution(request: AttributionRequest):
    """Distribute conversion credit across touchpoints."""
    touchpoints = [Touchpoint.from_dict(tp.model_dump()) for tp in request.touchpoints]
    models = calculate_attribution(touchpoints)
    return {"attribution": [model.to_dict() for model in models]}
