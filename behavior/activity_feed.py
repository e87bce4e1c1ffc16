"""Rolling feed of the most recent actions for real-time widgets."""

from collections import deque
from typing import Deque, List

from .models import Action


class ActivityFeed:
    """Session manager subscriber that keeps the last `size` actions, newest first."""

    def __init__(self, size: int = 10):
        self._actions: Deque[Action] = deque(maxlen=size)

    def __call__(self, action: Action):
        self._actions.appendleft(action)

    def recent(self) -> List[Action]:
        return list(self._actions)

    def clear(self):
        self._actions.clear()
