"""
Session Manager for the behavior tracker.

Owns the session lifecycle for one client: records actions into the
current session, keeps engagement up to date, persists snapshots to the
local event log, expires idle sessions and publishes every new action to
subscribers.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .interests import rank_interests
from .models import Action, ActionType, Session, utc_now
from .session_store import InMemorySessionStore, SessionStore

logger = logging.getLogger(__name__)

ActionSubscriber = Callable[[Action], None]

# Errors raised while decoding a stored snapshot
CORRUPT_SNAPSHOT_ERRORS = (ValueError, KeyError, TypeError, AttributeError)

# Errors raised while encoding a payload the store cannot serialize
SERIALIZATION_ERRORS = (TypeError, ValueError)


class SessionManager:
    """
    Tracks user actions in time-bounded sessions.

    Engagement (0-100) is the mean action weight scaled by 5:
    - page_view: 1
    - button_click: 2
    - service_view: 3
    - chat_open: 5
    - chat_message: 7
    - form_start: 10
    - download: 15
    - form_submit: 20
    - anything else: 1

    A session ends on inactivity timeout, on a hidden transition or on
    shutdown. Ended sessions go to a bounded archive, oldest evicted first.
    """

    ENGAGEMENT_WEIGHTS = {
        ActionType.PAGE_VIEW: 1,
        ActionType.SERVICE_VIEW: 3,
        ActionType.BUTTON_CLICK: 2,
        ActionType.CHAT_OPEN: 5,
        ActionType.CHAT_MESSAGE: 7,
        ActionType.FORM_START: 10,
        ActionType.FORM_SUBMIT: 20,
        ActionType.DOWNLOAD: 15,
    }
    DEFAULT_ACTION_WEIGHT = 1
    ENGAGEMENT_SCALE = 5

    DEFAULT_SESSION_TIMEOUT = 30 * 60
    DEFAULT_MAX_SESSIONS = 50

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        session_timeout: float = DEFAULT_SESSION_TIMEOUT,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the session manager and resume or start a session.

        Args:
            store: Session persistence backend (in-memory if omitted)
            session_timeout: Inactivity timeout in seconds
            max_sessions: Number of archived sessions to retain
            clock: Optional source of aware UTC datetimes
        """
        self.store = store if store is not None else InMemorySessionStore()
        self.session_timeout = timedelta(seconds=session_timeout)
        self.max_sessions = max_sessions
        self._clock = clock or utc_now

        self._current: Optional[Session] = None
        self._archive: List[Session] = self._load_archive()
        self._subscribers: List[ActionSubscriber] = []
        self._timer: Optional[asyncio.TimerHandle] = None
        self._last_activity: Optional[datetime] = None
        self._last_page: Optional[str] = None

        self._resume_or_start()

    # ── Public API ────────────────────────────────────────────────

    def record_action(
        self,
        action_type: Union[ActionType, str],
        details: Optional[Dict[str, Any]] = None,
        page: Optional[str] = None,
    ) -> Action:
        """
        Record an action in the current session.

        Args:
            action_type: ActionType or its string value
            details: Optional free-form payload (e.g. serviceName, formName)
            page: Page the action happened on. Falls back to details["page"],
                then to the last page seen.

        Returns:
            The recorded Action
        """
        action_type = ActionType(action_type)
        now = self._clock()

        self._expire_if_idle(now)
        if self._current is None:
            self._start_session(now)

        details = dict(details or {})
        page = page or details.get("page") or self._last_page or "/"
        session = self._current

        action = Action(
            id=str(uuid.uuid4()),
            type=action_type,
            timestamp=now,
            page=page,
            session_id=session.id,
            details=details,
        )
        session.actions.append(action)
        session.engagement_score = self.calculate_engagement(session.actions)
        session.predicted_interests = rank_interests(
            a.page for a in session.actions if a.type == ActionType.PAGE_VIEW
        )

        self._last_page = page
        self._last_activity = now
        self._save_current()
        self._reset_inactivity_timer()

        logger.debug(
            f"Action recorded: session={session.id} type={action_type.value} "
            f"page={page} engagement={session.engagement_score:.1f}"
        )
        self._publish(action)
        return action

    def get_current_session(self) -> Optional[Session]:
        """Get the active session, or None between sessions."""
        return self._current

    def get_all_sessions(self) -> List[Session]:
        """Get archived sessions, oldest first."""
        return list(self._archive)

    def get_all_actions(self) -> List[Action]:
        """Snapshot of every action in the archive plus the current session."""
        actions = [action for session in self._archive for action in session.actions]
        if self._current is not None:
            actions.extend(list(self._current.actions))
        return actions

    def end_session(self, reason: str = "manual") -> Optional[Session]:
        """
        End the current session and move it to the archive.

        Args:
            reason: Why the session ended (timeout, hidden, shutdown, manual)

        Returns:
            The archived session, or None if there was no current session
        """
        session = self._current
        if session is None:
            return None

        self._current = None
        self._cancel_inactivity_timer()
        session.close(self._clock())

        self._archive.append(session)
        if len(self._archive) > self.max_sessions:
            self._archive = self._archive[-self.max_sessions:]

        self._guard_io(self.store.clear_current, "clear current session")
        self._save_archive()

        logger.info(
            f"Session {session.id} ended ({reason}) with {len(session.actions)} actions, "
            f"engagement={session.engagement_score:.1f}"
        )
        return session

    def handle_visibility_change(self, hidden: bool):
        """End the session when the client is backgrounded, start one when it returns."""
        if hidden:
            self.end_session("hidden")
        elif self._current is None:
            self._start_session(self._clock())

    def clear_all(self):
        """Drop the current session and the whole archive."""
        self._cancel_inactivity_timer()
        self._current = None
        self._archive = []
        self._last_activity = None
        self._guard_io(self.store.clear_current, "clear current session")
        self._save_archive()
        logger.info("All session data cleared")

    def shutdown(self):
        """End the current session and cancel the inactivity timer."""
        self.end_session("shutdown")
        self._cancel_inactivity_timer()

    def subscribe(self, callback: ActionSubscriber) -> Callable[[], None]:
        """
        Register a callback invoked with every new action.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def now(self) -> datetime:
        """Current time according to this manager's clock."""
        return self._clock()

    @property
    def last_activity(self) -> Optional[datetime]:
        return self._last_activity

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @classmethod
    def calculate_engagement(cls, actions: Iterable[Action]) -> float:
        """Mean action weight scaled to 0-100."""
        actions = list(actions)
        if not actions:
            return 0.0
        total = sum(cls.ENGAGEMENT_WEIGHTS.get(a.type, cls.DEFAULT_ACTION_WEIGHT) for a in actions)
        return min(100.0, total / len(actions) * cls.ENGAGEMENT_SCALE)

    # ── Lifecycle internals ───────────────────────────────────────

    def _resume_or_start(self):
        now = self._clock()
        session = self._load_current()

        if session is not None:
            if session.end_time is None and now - session.start_time < self.session_timeout:
                self._current = session
                self._last_activity = now
                if session.actions:
                    self._last_page = session.actions[-1].page
                self._reset_inactivity_timer()
                logger.info(f"Resumed session {session.id} with {len(session.actions)} actions")
                return
            logger.info(f"Discarding stale session {session.id} (started {session.start_time.isoformat()})")
            self._guard_io(self.store.clear_current, "clear stale session")

        self._start_session(now)

    def _start_session(self, now: datetime):
        self._current = Session(id=str(uuid.uuid4()), start_time=now)
        self._last_activity = now
        self._save_current()
        self._reset_inactivity_timer()
        logger.info(f"Started session {self._current.id}")

    def _expire_if_idle(self, now: datetime):
        if self._current is None or self._last_activity is None:
            return
        if now - self._last_activity >= self.session_timeout:
            self.end_session("timeout")

    def _on_inactivity_timeout(self):
        self._timer = None
        self.end_session("timeout")

    def _reset_inactivity_timer(self):
        self._cancel_inactivity_timer()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: idle sessions are expired lazily on the next action
            return
        self._timer = loop.call_later(
            self.session_timeout.total_seconds(), self._on_inactivity_timeout
        )

    def _cancel_inactivity_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _publish(self, action: Action):
        for callback in list(self._subscribers):
            try:
                callback(action)
            except Exception:
                logger.exception(f"Action subscriber {callback!r} failed for action {action.id}")

    # ── Persistence ───────────────────────────────────────────────

    def _guard_io(self, operation: Callable[..., Any], description: str, *args) -> Any:
        """Run a store operation; I/O failures are logged and in-memory state wins."""
        try:
            return operation(*args)
        except OSError as e:
            logger.warning(f"Failed to {description}: {e}")
            return None

    def _guard_write(self, operation: Callable[..., Any], description: str, payload: Any):
        try:
            self._guard_io(operation, description, payload)
        except SERIALIZATION_ERRORS as e:
            logger.warning(f"Failed to {description}: {e}")

    def _save_current(self):
        if self._current is not None:
            self._guard_write(self.store.save_current, "save current session", self._current.to_dict())

    def _save_archive(self):
        payload = [session.to_dict() for session in self._archive]
        self._guard_write(self.store.save_archive, "save session archive", payload)

    def _load_current(self) -> Optional[Session]:
        try:
            snapshot = self._guard_io(self.store.load_current, "load current session")
            if snapshot is None:
                return None
            return Session.from_dict(snapshot)
        except CORRUPT_SNAPSHOT_ERRORS as e:
            logger.warning(f"Discarding corrupt session snapshot: {e}")
            self._guard_io(self.store.clear_current, "clear corrupt session")
            return None

    def _load_archive(self) -> List[Session]:
        try:
            records = self._guard_io(self.store.load_archive, "load session archive") or []
            sessions = [Session.from_dict(record) for record in records]
        except CORRUPT_SNAPSHOT_ERRORS as e:
            logger.warning(f"Discarding corrupt session archive: {e}")
            return []
        return sessions[-self.max_sessions:]
