"""
Prediction Engine for the behavior tracker.

Turns the current session and the mined pattern table into a fixed set
of confidence-scored predictions. Everything here is a deterministic
heuristic; nothing is persisted.
"""

import logging
import re
from collections import Counter
from typing import Callable, Dict, List, Optional, Union

from .interests import count_categories
from .metrics import compute_engagement_metrics
from .models import (
    ActionPriority,
    ActionType,
    EngagementMetrics,
    Prediction,
    PredictionType,
    RecommendedAction,
    RecommendedActionType,
)
from .pattern_miner import PatternMiner
from .session_manager import SessionManager

logger = logging.getLogger(__name__)


class PredictionEngine:
    """
    Generates predictions for one client.

    get_all_predictions() always returns one prediction per type, in this
    order: next_service, conversion_likelihood, exit_intent, peak_activity,
    content_interest. Callers filter by confidence.
    """

    # Hand-authored service adjacency, most relevant first
    SERVICE_AFFINITY = {
        "Digital Marketing": ["SEO Services", "Social Media Management", "Content Marketing"],
        "SEO Services": ["Content Marketing", "Social Media Management"],
        "Social Media Management": ["Digital Marketing", "Content Marketing"],
        "Software Development": ["AI Integration", "Custom Solutions"],
        "AI Integration": ["Software Development", "Data Analytics"],
        "Content Marketing": ["Digital Marketing", "SEO Services"],
    }

    # Conversion boosts
    FORM_SUBMIT_BOOST = 40
    CHAT_MESSAGE_BOOST = 20
    FORM_START_BOOST = 15
    LONG_SESSION_BOOST = 10
    LONG_SESSION_SECONDS = 5 * 60

    # Exit risk signals
    RECENT_WINDOW = 5
    EXIT_SIGNAL_RISK = 50
    LOW_ACTIVITY_RISK = 20
    NEW_SESSION_RISK = 15
    NO_CLICK_RISK = 15
    EXIT_RISK_THRESHOLD = 60

    PEAK_MULTIPLIER = 1.5
    PEAK_CONFIDENCE = 85
    INSUFFICIENT_PEAK_CONFIDENCE = 30

    def __init__(self, session_manager: SessionManager, pattern_miner: Optional[PatternMiner] = None):
        self.session_manager = session_manager
        self.pattern_miner = pattern_miner

    def _predictors(self) -> Dict[PredictionType, Callable[[], Prediction]]:
        return {
            PredictionType.NEXT_SERVICE: self.predict_next_service,
            PredictionType.CONVERSION_LIKELIHOOD: self.predict_conversion,
            PredictionType.EXIT_INTENT: self.detect_exit_intent,
            PredictionType.PEAK_ACTIVITY: self.predict_peak_activity,
            PredictionType.CONTENT_INTEREST: self.predict_content_interest,
        }

    def get_all_predictions(self) -> List[Prediction]:
        """Compute every prediction type for the current state."""
        return [predict() for predict in self._predictors().values()]

    def get_prediction(self, prediction_type: Union[PredictionType, str]) -> Prediction:
        """Compute one prediction type. Unknown types raise ValueError."""
        return self._predictors()[PredictionType(prediction_type)]()

    def get_actionable_predictions(self, min_confidence: float = 50) -> List[Prediction]:
        """Predictions at or above `min_confidence`, most confident first."""
        predictions = [p for p in self.get_all_predictions() if p.confidence >= min_confidence]
        return sorted(predictions, key=lambda p: p.confidence, reverse=True)

    def get_engagement_metrics(self) -> EngagementMetrics:
        sessions = self.session_manager.get_all_sessions()
        current = self.session_manager.get_current_session()
        if current is not None:
            sessions.append(current)
        return compute_engagement_metrics(sessions, now=self.session_manager.now())

    # ── Predictors ────────────────────────────────────────────────

    def predict_next_service(self) -> Prediction:
        session = self.session_manager.get_current_session()
        likely_next: List[str] = []
        if session is not None and session.actions and self.pattern_miner is not None:
            last = session.actions[-1]
            likely_next = self.pattern_miner.predict_next(last.type, last.page)

        services = Counter()
        if session is not None:
            for action in session.actions:
                name = action.details.get("serviceName")
                if action.type == ActionType.SERVICE_VIEW and name:
                    services[name] += 1

        if services:
            most_viewed, count = services.most_common(1)[0]
            affinities = self.SERVICE_AFFINITY.get(most_viewed)
            if affinities:
                recommended = affinities[0]
                confidence = min(95, count * 25 + 50)
                slug = re.sub(r"\s+", "-", recommended.lower())
                return Prediction(
                    type=PredictionType.NEXT_SERVICE,
                    confidence=confidence,
                    suggestion=f"Based on your interest in {most_viewed}, we recommend {recommended}",
                    action=RecommendedAction(
                        type=RecommendedActionType.SUGGEST_SERVICE,
                        priority=ActionPriority.HIGH if confidence > 75 else ActionPriority.MEDIUM,
                        content=f"Explore our {recommended} solutions",
                        cta=f"View {recommended}",
                        cta_link=f"/services#{slug}",
                    ),
                    data={"viewed_service": most_viewed, "views": count, "likely_next": likely_next},
                )

        return Prediction(
            type=PredictionType.NEXT_SERVICE,
            confidence=0,
            suggestion="Explore our Digital Marketing services",
            action=RecommendedAction(
                type=RecommendedActionType.SUGGEST_SERVICE,
                priority=ActionPriority.LOW,
                content="Discover how we can help grow your business",
                cta="View Services",
                cta_link="/services",
            ),
            data={"likely_next": likely_next},
        )

    def predict_conversion(self) -> Prediction:
        session = self.session_manager.get_current_session()
        if session is None:
            return Prediction(
                type=PredictionType.CONVERSION_LIKELIHOOD,
                confidence=0,
                suggestion="No active session",
            )

        types = {action.type for action in session.actions}
        duration = session.duration_seconds(self.session_manager.now())

        likelihood = session.engagement_score
        if ActionType.FORM_SUBMIT in types:
            likelihood = min(100, likelihood + self.FORM_SUBMIT_BOOST)
        if ActionType.CHAT_MESSAGE in types:
            likelihood = min(100, likelihood + self.CHAT_MESSAGE_BOOST)
        if ActionType.FORM_START in types:
            likelihood = min(100, likelihood + self.FORM_START_BOOST)
        if duration > self.LONG_SESSION_SECONDS:
            likelihood = min(100, likelihood + self.LONG_SESSION_BOOST)

        action = None
        if likelihood > 75:
            suggestion = "High conversion probability - Engage with personalized offer"
            action = RecommendedAction(
                type=RecommendedActionType.OFFER_DISCOUNT,
                priority=ActionPriority.HIGH,
                content="Special offer for engaged visitors",
                cta="Claim 20% Off",
                cta_link="/contact",
            )
        elif likelihood > 50:
            suggestion = "Medium conversion potential - Provide more information"
            action = RecommendedAction(
                type=RecommendedActionType.SHOW_GUIDE,
                priority=ActionPriority.MEDIUM,
                content="Learn more about our solutions",
                cta="Download Guide",
                cta_link="/resources",
            )
        elif likelihood > 25:
            suggestion = "Low engagement - Consider exit-intent offer"
            action = RecommendedAction(
                type=RecommendedActionType.START_CHAT,
                priority=ActionPriority.MEDIUM,
                content="Have questions? We're here to help",
                cta="Chat with Us",
                cta_link="/chat",
            )
        else:
            suggestion = "Very early stage - Continue monitoring"

        return Prediction(
            type=PredictionType.CONVERSION_LIKELIHOOD,
            confidence=likelihood,
            suggestion=suggestion,
            action=action,
        )

    def detect_exit_intent(self) -> Prediction:
        session = self.session_manager.get_current_session()
        if session is None or not session.actions:
            return Prediction(
                type=PredictionType.EXIT_INTENT,
                confidence=0,
                suggestion="No activity yet",
            )

        recent = session.actions[-self.RECENT_WINDOW:]
        duration = session.duration_seconds(self.session_manager.now())
        minutes = duration / 60
        actions_per_minute = len(session.actions) / minutes if minutes > 0 else float("inf")

        risk = 0
        if any(a.type == ActionType.EXIT_INTENT for a in recent):
            risk += self.EXIT_SIGNAL_RISK
        if actions_per_minute < 1:
            risk += self.LOW_ACTIVITY_RISK
        if duration < 60:
            risk += self.NEW_SESSION_RISK
        if not any(a.type == ActionType.BUTTON_CLICK for a in recent):
            risk += self.NO_CLICK_RISK
        risk = min(100, risk)

        if risk > self.EXIT_RISK_THRESHOLD:
            return Prediction(
                type=PredictionType.EXIT_INTENT,
                confidence=risk,
                suggestion="User likely to leave - Show retention offer",
                action=RecommendedAction(
                    type=RecommendedActionType.OFFER_DISCOUNT,
                    priority=ActionPriority.HIGH,
                    content="Wait! Before you go...",
                    cta="Get Free Consultation",
                    cta_link="/contact",
                ),
            )

        return Prediction(
            type=PredictionType.EXIT_INTENT,
            confidence=risk,
            suggestion="User engaged, exit risk low",
        )

    def predict_peak_activity(self) -> Prediction:
        actions = self.session_manager.get_all_actions()
        if not actions:
            return Prediction(
                type=PredictionType.PEAK_ACTIVITY,
                confidence=0,
                suggestion="No activity recorded yet",
                data={"hour_counts": {}},
            )

        hour_counts = Counter(action.timestamp.hour for action in actions)
        average = sum(hour_counts.values()) / len(hour_counts)
        peak_hours = sorted(
            (hour for hour, count in hour_counts.items() if count > average * self.PEAK_MULTIPLIER),
            key=lambda hour: hour_counts[hour],
            reverse=True,
        )
        data = {"hour_counts": dict(sorted(hour_counts.items()))}

        if peak_hours:
            top = peak_hours[:3]
            data["peak_hours"] = top
            return Prediction(
                type=PredictionType.PEAK_ACTIVITY,
                confidence=self.PEAK_CONFIDENCE,
                suggestion="Peak activity hours: " + ", ".join(f"{hour:02d}:00" for hour in top),
                data=data,
            )

        return Prediction(
            type=PredictionType.PEAK_ACTIVITY,
            confidence=self.INSUFFICIENT_PEAK_CONFIDENCE,
            suggestion="Insufficient data to determine peak hours",
            data=data,
        )

    def predict_content_interest(self) -> Prediction:
        session = self.session_manager.get_current_session()
        pages = []
        if session is not None:
            pages = [a.page for a in session.actions if a.type == ActionType.PAGE_VIEW]

        if not pages:
            return Prediction(
                type=PredictionType.CONTENT_INTEREST,
                confidence=0,
                suggestion="No pages viewed yet",
            )

        interests = count_categories(pages)
        dominant = max(interests, key=interests.get)
        confidence = min(95, interests[dominant] / len(pages) * 100)

        return Prediction(
            type=PredictionType.CONTENT_INTEREST,
            confidence=confidence,
            suggestion=f"Primary interest: {dominant}",
            data={"interests": interests},
        )
