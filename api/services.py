"""
Service initialization and dependency injection for the Behavior Insights API.

Creates and manages all service instances used by the API, including one
tracking context per client.
"""

import asyncio
import logging
from typing import Dict, Optional

from config.settings import get_settings, Settings
from behavior.context import TrackingContext
from lead_scoring.scoring_model import PredictiveLeadScorer
from .realtime.connection_manager import ConnectionManager

logger = logging.getLogger(__name__)


class Services:
    """Container for all application services."""

    def __init__(self):
        self.settings: Optional[Settings] = None
        self.lead_scorer: Optional[PredictiveLeadScorer] = None
        self.connection_manager: Optional[ConnectionManager] = None
        self._contexts: Dict[str, TrackingContext] = {}
        self._initialized = False

    def initialize(self):
        """Initialize all services."""
        if self._initialized:
            return

        self.settings = get_settings()
        logger.info(f"Initializing services with storage backend: {self.settings.storage_backend}")

        self._init_lead_scoring()
        self.connection_manager = ConnectionManager()
        self._initialized = True
        logger.info("All services initialized successfully")

    def _init_lead_scoring(self):
        """Initialize lead scoring components."""
        s = self.settings
        self.lead_scorer = PredictiveLeadScorer(
            hot_threshold=s.lead_score_threshold_hot,
            warm_threshold=s.lead_score_threshold_warm,
            urgency_window_hours=s.urgency_window_hours,
        )
        logger.info("Lead scoring services ready")

    def get_context(self, client_id: str) -> TrackingContext:
        """Get or create the tracking context for a client."""
        if not self._initialized:
            self.initialize()

        context = self._contexts.get(client_id)
        if context is not None:
            return context

        context = TrackingContext.create(client_id, self.settings)
        context.session_manager.subscribe(self.connection_manager.action_publisher(client_id))
        self._contexts[client_id] = context

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running loop, pattern mining for {client_id} runs on demand only")
        else:
            context.start()
        return context

    async def shutdown(self):
        """Stop background work and end every open session."""
        for client_id, context in list(self._contexts.items()):
            await context.stop()
            logger.info(f"Tracking context closed for client {client_id}")
        self._contexts.clear()

    @property
    def client_count(self) -> int:
        return len(self._contexts)

    @property
    def is_ready(self) -> bool:
        return self._initialized and self.lead_scorer is not None

    def health(self) -> dict:
        """Return health status of all services."""
        return {
            "initialized": self._initialized,
            "lead_scoring": self.lead_scorer is not None,
            "tracking_clients": self.client_count,
            "websocket_connections": self.connection_manager.active_count if self.connection_manager else 0,
        }


# Singleton
_services = Services()


def get_services() -> Services:
    """Get the global services instance."""
    return _services


def initialize_services():
    """Initialize all services (called at startup)."""
    _services.initialize()
