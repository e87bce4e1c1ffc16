"""
Behavior Tracking Module.

This module records user interactions and turns them into predictions:
- Session tracking with inactivity timeout and bounded history
- Pattern mining over action transitions
- Predictions (next service, conversion, exit risk, peak hours, interests)
- Engagement metrics roll-up
"""

from .models import (
    Action,
    ActionType,
    Session,
    BehaviorPattern,
    Prediction,
    PredictionType,
    RecommendedAction,
    EngagementMetrics,
)
from .session_store import SessionStore, InMemorySessionStore, JsonFileSessionStore
from .session_manager import SessionManager
from .pattern_miner import PatternMiner
from .prediction_engine import PredictionEngine
from .metrics import compute_engagement_metrics
from .activity_feed import ActivityFeed
from .context import TrackingContext

__all__ = [
    "Action",
    "ActionType",
    "Session",
    "BehaviorPattern",
    "Prediction",
    "PredictionType",
    "RecommendedAction",
    "EngagementMetrics",
    "SessionStore",
    "InMemorySessionStore",
    "JsonFileSessionStore",
    "SessionManager",
    "PatternMiner",
    "PredictionEngine",
    "compute_engagement_metrics",
    "ActivityFeed",
    "TrackingContext",
]
