"""
Pattern Miner for the behavior tracker.

Periodically scans the action log and keeps a table of
`type:page -> next type:page` transitions with frequency and confidence.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from .models import ActionType, BehaviorPattern
from .session_manager import SessionManager

logger = logging.getLogger(__name__)


class PatternMiner:
    """
    Maintains the transition table for one client.

    Each analysis recomputes counts from the full action history, so running
    it twice over the same history gives the same table. Patterns that drop
    out of the history (archive eviction) keep their last values.

    Confidence = min(100, frequency / total actions observed * 100).
    """

    DEFAULT_INTERVAL = 60.0

    def __init__(self, session_manager: SessionManager, interval: float = DEFAULT_INTERVAL):
        self.session_manager = session_manager
        self.interval = interval
        self._patterns: Dict[str, BehaviorPattern] = {}
        self._task: Optional[asyncio.Task] = None
        self.runs = 0

    def analyze_patterns(self):
        """Rebuild the transition table from the current action history."""
        actions = self.session_manager.get_all_actions()
        if not actions:
            return

        total = len(actions)
        observed: Dict[str, BehaviorPattern] = {}

        for current, following in zip(actions, actions[1:]):
            key = current.pattern_key
            pattern = observed.get(key)
            if pattern is None:
                pattern = BehaviorPattern(
                    pattern=key,
                    frequency=0,
                    last_occurrence=current.timestamp,
                )
                observed[key] = pattern

            pattern.frequency += 1
            pattern.last_occurrence = max(pattern.last_occurrence, current.timestamp)
            next_key = following.pattern_key
            if next_key not in pattern.predicted_next:
                pattern.predicted_next.append(next_key)

        for pattern in observed.values():
            pattern.confidence = min(100.0, pattern.frequency / total * 100)

        self._patterns.update(observed)
        self.runs += 1
        logger.debug(f"Pattern analysis: {total} actions, {len(observed)} active patterns")

    def get_patterns(self) -> List[BehaviorPattern]:
        return list(self._patterns.values())

    def get_pattern(self, key: str) -> Optional[BehaviorPattern]:
        return self._patterns.get(key)

    def predict_next(self, action_type: ActionType, page: str) -> List[str]:
        """States observed after `action_type` on `page`, in first-seen order."""
        pattern = self._patterns.get(f"{ActionType(action_type).value}:{page}")
        return list(pattern.predicted_next) if pattern else []

    def top_patterns(self, limit: int = 10) -> List[BehaviorPattern]:
        return sorted(
            self._patterns.values(),
            key=lambda p: (p.confidence, p.frequency),
            reverse=True,
        )[:limit]

    # ── Scheduling ────────────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Start periodic analysis on the running event loop."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Pattern miner started (interval={self.interval}s)")

    async def stop(self):
        """Cancel periodic analysis and wait for the task to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Pattern miner stopped")

    async def _run(self):
        while True:
            try:
                self.analyze_patterns()
            except Exception:
                logger.exception("Pattern analysis failed")
            await asyncio.sleep(self.interval)
