"""
Lead Scoring Module.

This module provides predictive lead scoring and attribution:
- Weighted multi-factor lead score (0-100 scale)
- Hot / Warm / Cold quality and urgency classification
- Customer lifetime value estimation
- Position-based multi-touch attribution with time decay
"""

from .models import (
    Lead,
    Touchpoint,
    TouchpointType,
    LeadQuality,
    Urgency,
    PredictiveScore,
    AttributionModel,
    LeadInsights,
)
from .scoring_model import PredictiveLeadScorer
from .attribution import calculate_attribution, position_weights

__all__ = [
    "Lead",
    "Touchpoint",
    "TouchpointType",
    "LeadQuality",
    "Urgency",
    "PredictiveScore",
    "AttributionModel",
    "LeadInsights",
    "PredictiveLeadScorer",
    "calculate_attribution",
    "position_weights",
]
