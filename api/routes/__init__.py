"""
API Routes for the Behavior Insights engine.
"""

from . import tracking, insights, leads, realtime

__all__ = ["tracking", "insights", "leads", "realtime"]
