"""
Predictive Lead Scoring Model.

Implements a weighted multi-factor score with customer lifetime value
estimation and urgency classification. Pure and deterministic: the same
lead and reference time always produce the same score.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from behavior.models import parse_timestamp, utc_now
from .models import (
    Lead,
    LeadInsights,
    LeadQuality,
    PredictiveScore,
    ScoreFactors,
    Touchpoint,
    TouchpointType,
    Urgency,
    round_half_up,
)

logger = logging.getLogger(__name__)

HIGH_INTENT_TOUCHPOINTS = {
    TouchpointType.DEMO_REQUEST.value,
    TouchpointType.FORM_SUBMIT.value,
    TouchpointType.WHATSAPP_CONTACT.value,
}


class PredictiveLeadScorer:
    """
    Scores leads on five weighted factors (0-100 total).

    Scoring Rules:
    - Engagement: engagement_score * 3, max 30
    - Company size: Enterprise 20, Large 18, Medium 15, Small 12, Startup 8, other 5
    - Budget: $50k+ 20, $20k-$50k 18, $10k-$20k 15, $5k-$10k 12, <$5k 8, other 5
    - Industry: 15 for high-value industries, else 10
    - Touchpoints: min(count * 2, 10) + min(high_intent * 3, 5)

    Thresholds:
    - Score >= 70: Hot
    - Score 45-69: Warm
    - Score < 45: Cold
    """

    ENGAGEMENT_MULTIPLIER = 3
    MAX_ENGAGEMENT_POINTS = 30
    MAX_COMPANY_SIZE_POINTS = 20
    MAX_BUDGET_POINTS = 20
    MAX_TOUCHPOINT_POINTS = 15

    COMPANY_SIZE_POINTS = {
        "Enterprise (500+)": 20,
        "Large (100-500)": 18,
        "Medium (50-100)": 15,
        "Small (10-50)": 12,
        "Startup (1-10)": 8,
    }
    DEFAULT_COMPANY_SIZE_POINTS = 5

    BUDGET_POINTS = {
        "$50k+": 20,
        "$20k-$50k": 18,
        "$10k-$20k": 15,
        "$5k-$10k": 12,
        "<$5k": 8,
    }
    DEFAULT_BUDGET_POINTS = 5

    HIGH_VALUE_INDUSTRIES = {"Fintech", "Technology", "E-commerce", "Healthcare"}
    HIGH_VALUE_INDUSTRY_POINTS = 15
    INDUSTRY_POINTS = 10

    TOUCHPOINT_FREQUENCY_POINTS = 2
    MAX_TOUCHPOINT_FREQUENCY_POINTS = 10
    HIGH_INTENT_POINTS = 3
    MAX_HIGH_INTENT_POINTS = 5

    # CLV estimation
    BASE_CLV = {
        "$50k+": 250000,
        "$20k-$50k": 150000,
        "$10k-$20k": 75000,
        "$5k-$10k": 35000,
    }
    DEFAULT_BASE_CLV = 15000
    COMPANY_SIZE_MULTIPLIER = {
        "Enterprise (500+)": 2.5,
        "Large (100-500)": 2.0,
        "Medium (50-100)": 1.5,
        "Small (10-50)": 1.2,
    }
    INDUSTRY_MULTIPLIER = {
        "Fintech": 1.8,
        "Technology": 1.6,
        "E-commerce": 1.4,
        "Healthcare": 1.3,
    }

    CAC_REDUCTION = {
        LeadQuality.HOT: 45,
        LeadQuality.WARM: 30,
        LeadQuality.COLD: 15,
    }
    TIMING_FACTOR = {
        Urgency.HIGH: 90,
        Urgency.MEDIUM: 60,
        Urgency.LOW: 30,
    }

    RECOMMENDED_ACTIONS: Dict[Tuple[LeadQuality, Optional[Urgency]], str] = {
        (LeadQuality.HOT, Urgency.HIGH): "Call now - high conversion probability (85%+)",
        (LeadQuality.HOT, None): "Schedule demo within 24 hours - strong fit detected",
        (LeadQuality.WARM, Urgency.HIGH): "Follow up today - recent high-intent activity",
        (LeadQuality.WARM, None): "Send personalized email with case study",
        (LeadQuality.COLD, Urgency.HIGH): "Send WhatsApp message - they're actively researching",
        (LeadQuality.COLD, None): "Add to nurture campaign - build engagement",
    }

    # Urgency (touchpoints inside the recency window)
    HIGH_URGENCY_INTENT = 2
    HIGH_URGENCY_TOUCHES = 5
    MEDIUM_URGENCY_INTENT = 1
    MEDIUM_URGENCY_TOUCHES = 3

    HOT_THRESHOLD = 70
    WARM_THRESHOLD = 45

    def __init__(
        self,
        hot_threshold: int = HOT_THRESHOLD,
        warm_threshold: int = WARM_THRESHOLD,
        urgency_window_hours: int = 48,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the lead scorer.

        Args:
            hot_threshold: Minimum score for a Hot lead
            warm_threshold: Minimum score for a Warm lead
            urgency_window_hours: Recency window for urgency signals
            clock: Optional source of aware UTC datetimes
        """
        self.hot_threshold = hot_threshold
        self.warm_threshold = warm_threshold
        self.urgency_window = timedelta(hours=urgency_window_hours)
        self._clock = clock or utc_now

    def score_lead(self, lead: Lead, now: Optional[datetime] = None) -> PredictiveScore:
        """
        Score a single lead.

        Args:
            lead: Lead to score
            now: Reference time for urgency (defaults to the scorer's clock)

        Returns:
            PredictiveScore with probability, CLV, quality and factors
        """
        now = parse_timestamp(now) if now else self._clock()

        engagement_points = self._score_engagement(lead.engagement_score)
        company_size_points = self.COMPANY_SIZE_POINTS.get(lead.company_size, self.DEFAULT_COMPANY_SIZE_POINTS)
        budget_points = self.BUDGET_POINTS.get(lead.budget, self.DEFAULT_BUDGET_POINTS)
        industry_points = self._score_industry(lead.industry)
        touchpoint_points = self._score_touchpoints(lead.touchpoints)

        total = engagement_points + company_size_points + budget_points + industry_points + touchpoint_points

        quality = self.classify_quality(total)
        urgency = self.calculate_urgency(lead.touchpoints, now)

        score = PredictiveScore(
            lead_id=lead.id,
            conversion_probability=total,
            predicted_clv=self.predict_clv(lead, total),
            lead_quality=quality,
            urgency=urgency,
            recommended_action=self.recommend_action(quality, urgency),
            factors=ScoreFactors(
                engagement=engagement_points / self.MAX_ENGAGEMENT_POINTS * 100,
                company_fit=company_size_points / self.MAX_COMPANY_SIZE_POINTS * 100,
                budget=budget_points / self.MAX_BUDGET_POINTS * 100,
                timing=self.TIMING_FACTOR[urgency],
                touchpoint_quality=touchpoint_points / self.MAX_TOUCHPOINT_POINTS * 100,
            ),
            cac_reduction=self.CAC_REDUCTION[quality],
        )
        logger.debug(
            f"Scored lead {lead.id}: {total:.1f} ({quality.value}, urgency {urgency.value})"
        )
        return score

    def batch_score(self, leads: Iterable[Lead], now: Optional[datetime] = None) -> List[PredictiveScore]:
        """Score many leads against the same reference time."""
        now = parse_timestamp(now) if now else self._clock()
        scores = [self.score_lead(lead, now) for lead in leads]
        logger.info(f"Batch scored {len(scores)} leads")
        return scores

    def summarize(self, scores: Iterable[PredictiveScore]) -> LeadInsights:
        """Aggregate a batch of scores. An empty batch gives all zeros."""
        scores = list(scores)
        if not scores:
            return LeadInsights()

        count = len(scores)
        total_clv = sum(s.predicted_clv for s in scores)
        return LeadInsights(
            hot_leads=sum(1 for s in scores if s.lead_quality == LeadQuality.HOT),
            warm_leads=sum(1 for s in scores if s.lead_quality == LeadQuality.WARM),
            cold_leads=sum(1 for s in scores if s.lead_quality == LeadQuality.COLD),
            avg_conversion_prob=round_half_up(sum(s.conversion_probability for s in scores) / count),
            avg_clv=round_half_up(total_clv / count),
            avg_cac_reduction=round_half_up(sum(s.cac_reduction for s in scores) / count),
            total_potential_revenue=round_half_up(total_clv),
            high_urgency_count=sum(1 for s in scores if s.urgency == Urgency.HIGH),
        )

    def classify_quality(self, score: float) -> LeadQuality:
        if score >= self.hot_threshold:
            return LeadQuality.HOT
        if score >= self.warm_threshold:
            return LeadQuality.WARM
        return LeadQuality.COLD

    def calculate_urgency(self, touchpoints: Iterable[Touchpoint], now: datetime) -> Urgency:
        """Classify urgency from touchpoints inside the recency window before `now`."""
        window_start = now - self.urgency_window
        recent = [tp for tp in touchpoints if window_start <= tp.timestamp <= now]
        high_intent = sum(1 for tp in recent if tp.type in HIGH_INTENT_TOUCHPOINTS)

        if high_intent >= self.HIGH_URGENCY_INTENT or len(recent) >= self.HIGH_URGENCY_TOUCHES:
            return Urgency.HIGH
        if high_intent >= self.MEDIUM_URGENCY_INTENT or len(recent) >= self.MEDIUM_URGENCY_TOUCHES:
            return Urgency.MEDIUM
        return Urgency.LOW

    def predict_clv(self, lead: Lead, score: float) -> int:
        """Estimate customer lifetime value in whole currency units."""
        base = self.BASE_CLV.get(lead.budget, self.DEFAULT_BASE_CLV)
        size_multiplier = self.COMPANY_SIZE_MULTIPLIER.get(lead.company_size, 1.0)
        score_multiplier = 0.5 + (score / 100) * 1.5
        industry_multiplier = self.INDUSTRY_MULTIPLIER.get(lead.industry, 1.0)
        return round_half_up(base * size_multiplier * score_multiplier * industry_multiplier)

    def recommend_action(self, quality: LeadQuality, urgency: Urgency) -> str:
        action = self.RECOMMENDED_ACTIONS.get((quality, urgency))
        if action is None:
            action = self.RECOMMENDED_ACTIONS[(quality, None)]
        return action

    def adjust_thresholds(self, hot: int = 70, warm: int = 45):
        """
        Adjust quality thresholds.

        Args:
            hot: Threshold for Hot leads (default 70)
            warm: Threshold for Warm leads (default 45)
        """
        self.hot_threshold = hot
        self.warm_threshold = warm

    def _score_engagement(self, engagement_score: float) -> float:
        points = engagement_score * self.ENGAGEMENT_MULTIPLIER
        return max(0.0, min(points, self.MAX_ENGAGEMENT_POINTS))

    def _score_industry(self, industry: str) -> int:
        if industry in self.HIGH_VALUE_INDUSTRIES:
            return self.HIGH_VALUE_INDUSTRY_POINTS
        return self.INDUSTRY_POINTS

    def _score_touchpoints(self, touchpoints: List[Touchpoint]) -> int:
        if not touchpoints:
            return 0
        high_intent = sum(1 for tp in touchpoints if tp.type in HIGH_INTENT_TOUCHPOINTS)
        frequency_points = min(len(touchpoints) * self.TOUCHPOINT_FREQUENCY_POINTS, self.MAX_TOUCHPOINT_FREQUENCY_POINTS)
        intent_points = min(high_intent * self.HIGH_INTENT_POINTS, self.MAX_HIGH_INTENT_POINTS)
        return frequency_points + intent_points
