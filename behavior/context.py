"""
Per-client tracking context.

Bundles the session manager, pattern miner, prediction engine and
activity feed that together serve one client.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from config.settings import Settings
from .activity_feed import ActivityFeed
from .pattern_miner import PatternMiner
from .prediction_engine import PredictionEngine
from .session_manager import SessionManager
from .session_store import InMemorySessionStore, JsonFileSessionStore, SessionStore

logger = logging.getLogger(__name__)


@dataclass
class TrackingContext:
    """Everything that belongs to one client. Nothing here is shared across clients."""
    client_id: str
    session_manager: SessionManager
    pattern_miner: PatternMiner
    prediction_engine: PredictionEngine
    activity_feed: ActivityFeed

    @classmethod
    def create(
        cls,
        client_id: str,
        settings: Settings,
        store: Optional[SessionStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "TrackingContext":
        """Build a context from settings, choosing the store by storage backend."""
        if store is None:
            if settings.is_file_storage:
                store = JsonFileSessionStore(settings.storage_directory, namespace=client_id)
            else:
                store = InMemorySessionStore()

        session_manager = SessionManager(
            store=store,
            session_timeout=settings.session_timeout_seconds,
            max_sessions=settings.max_sessions,
            clock=clock,
        )
        pattern_miner = PatternMiner(session_manager, interval=settings.pattern_analysis_interval)
        activity_feed = ActivityFeed(size=settings.activity_feed_size)
        session_manager.subscribe(activity_feed)

        logger.info(f"Tracking context created for client {client_id}")
        return cls(
            client_id=client_id,
            session_manager=session_manager,
            pattern_miner=pattern_miner,
            prediction_engine=PredictionEngine(session_manager, pattern_miner),
            activity_feed=activity_feed,
        )

    def start(self):
        """Start background pattern mining. Requires a running event loop."""
        self.pattern_miner.start()

    async def stop(self):
        """Cancel background work and end the current session."""
        await self.pattern_miner.stop()
        self.session_manager.shutdown()
