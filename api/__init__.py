"""
API Module for the Behavior Insights engine.

FastAPI application with routes for:
- Behavior tracking (actions, sessions, visibility)
- Predictions, patterns and engagement metrics
- Lead scoring and attribution
"""

from .main import create_app, app

__all__ = ["create_app", "app"]
