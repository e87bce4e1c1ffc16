"""
Session storage for the behavior tracker.

Abstracts the local event log so the session manager can work with
either in-memory dicts or JSON files on disk.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

CURRENT_SESSION_KEY = "current_session"
SESSION_ARCHIVE_KEY = "sessions"


@runtime_checkable
class SessionStore(Protocol):
    """Protocol for session persistence.

    Stores hold serialized session dicts. Implementations raise OSError on
    I/O failure and ValueError on unreadable content; callers decide how to
    degrade.
    """

    def load_current(self) -> Optional[Dict[str, Any]]:
        """Get the persisted current-session snapshot, if any."""
        ...

    def save_current(self, session: Dict[str, Any]) -> None:
        """Overwrite the current-session snapshot."""
        ...

    def clear_current(self) -> None:
        """Remove the current-session snapshot."""
        ...

    def load_archive(self) -> List[Dict[str, Any]]:
        """Get archived sessions, oldest first."""
        ...

    def save_archive(self, sessions: List[Dict[str, Any]]) -> None:
        """Overwrite the archived session list."""
        ...


class InMemorySessionStore:
    """Session store kept in process memory. Used for tests and memory mode."""

    def __init__(self):
        self._records: Dict[str, Any] = {}

    def load_current(self) -> Optional[Dict[str, Any]]:
        return self._records.get(CURRENT_SESSION_KEY)

    def save_current(self, session: Dict[str, Any]) -> None:
        self._records[CURRENT_SESSION_KEY] = session

    def clear_current(self) -> None:
        self._records.pop(CURRENT_SESSION_KEY, None)

    def load_archive(self) -> List[Dict[str, Any]]:
        return list(self._records.get(SESSION_ARCHIVE_KEY, []))

    def save_archive(self, sessions: List[Dict[str, Any]]) -> None:
        self._records[SESSION_ARCHIVE_KEY] = list(sessions)


class JsonFileSessionStore:
    """Session store backed by two JSON files per client.

    Layout::

        <directory>/<namespace>_current_session.json
        <directory>/<namespace>_sessions.json
    """

    def __init__(self, directory: str, namespace: str = "default"):
        self.directory = Path(directory)
        self.namespace = namespace

    def _path(self, key: str) -> Path:
        return self.directory / f"{self.namespace}_{key}.json"

    def _read(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, key: str, payload: Any):
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, default=str)
            tmp_path.replace(path)
        finally:
            tmp_path.unlink(missing_ok=True)

    def load_current(self) -> Optional[Dict[str, Any]]:
        data = self._read(CURRENT_SESSION_KEY)
        if data is not None and not isinstance(data, dict):
            raise ValueError(f"Current session snapshot in {self._path(CURRENT_SESSION_KEY)} is not an object")
        return data

    def save_current(self, session: Dict[str, Any]) -> None:
        self._write(CURRENT_SESSION_KEY, session)

    def clear_current(self) -> None:
        self._path(CURRENT_SESSION_KEY).unlink(missing_ok=True)

    def load_archive(self) -> List[Dict[str, Any]]:
        data = self._read(SESSION_ARCHIVE_KEY)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ValueError(f"Session archive in {self._path(SESSION_ARCHIVE_KEY)} is not a list")
        return data

    def save_archive(self, sessions: List[Dict[str, Any]]) -> None:
        self._write(SESSION_ARCHIVE_KEY, sessions)
        logger.debug(f"Archived {len(sessions)} sessions for {self.namespace}")
