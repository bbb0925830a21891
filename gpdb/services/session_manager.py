# gpdb/services/session_manager.py
# This module handles the persistence of conversations, in session files on
# disk or in Redis.

import json
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError
from redis import Redis

from gpdb.core.config import Settings
from gpdb.core.conversation_history import ConversationHistory
from gpdb.core.errors import ConfigurationError
from gpdb.models.common import PersistedSession, SessionInfo
from gpdb.utils.logger import console

SESSIONS_DIR = Path(".gpdb") / "sessions"
REDIS_KEY_PREFIX = "gpdb:session:"


class StartResult(str, Enum):
    NEW = "new"
    RESUMED = "resumed"


class SessionStore(ABC):
    """A key to bytes mapping that session files are stored in."""

    @abstractmethod
    def read(self, key: str) -> Optional[bytes]:
        """Returns the stored bytes, or None if the key does not exist."""

    @abstractmethod
    def write(self, key: str, data: bytes):
        """Stores data under key, replacing any previous value atomically."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Deletes key. Returns False if it did not exist."""

    @abstractmethod
    def keys(self) -> List[str]:
        """Lists the stored keys."""


def default_sessions_dir(start_dir: Optional[Path] = None) -> Path:
    """
    The sessions directory of the nearest ancestor holding a .gpdb directory,
    else ./.gpdb/sessions.
    """
    directory = Path(start_dir or Path.cwd()).resolve()
    for candidate in (directory, *directory.parents):
        if (candidate / ".gpdb").is_dir():
            return candidate / SESSIONS_DIR
    return directory / SESSIONS_DIR


class FileSessionStore(SessionStore):
    """Stores each session as <directory>/<key>.json."""

    def __init__(self, directory: Optional[Path] = None):
        self.directory = Path(directory) if directory else default_sessions_dir()

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise ValueError(f"Invalid session id: {key!r}")
        return self.directory / f"{key}.json"

    def read(self, key):
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_bytes()

    def write(self, key, data):
        path = self._path(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def delete(self, key):
        path = self._path(key)
        if not path.exists():
            return False
        path.unlink()
        return True

    def keys(self):
        if not self.directory.is_dir():
            return []
        return sorted(path.stem for path in self.directory.glob("*.json"))


class RedisSessionStore(SessionStore):
    """Stores sessions in Redis under gpdb:session:<key>, with an expiry."""

    def __init__(self, client: Redis, ttl: int = 86400, prefix: str = REDIS_KEY_PREFIX):
        self._redis_client = client
        self._session_ttl = ttl
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, ttl: int = 86400) -> "RedisSessionStore":
        return cls(Redis.from_url(url), ttl=ttl)

    def read(self, key):
        return self._redis_client.get(self._prefix + key)

    def write(self, key, data):
        self._redis_client.set(self._prefix + key, data, ex=self._session_ttl)

    def delete(self, key):
        return bool(self._redis_client.delete(self._prefix + key))

    def keys(self):
        found = []
        for raw_key in self._redis_client.scan_iter(match=f"{self._prefix}*"):
            key = raw_key.decode() if isinstance(raw_key, bytes) else raw_key
            found.append(key[len(self._prefix):])
        return sorted(found)


def create_session_store(settings: Settings) -> SessionStore:
    if settings.SESSION_BACKEND == "redis":
        if not settings.REDIS_URL:
            raise ConfigurationError("GPDB_SESSION_BACKEND is 'redis' but GPDB_REDIS_URL is not set.")
        return RedisSessionStore.from_url(settings.REDIS_URL, ttl=settings.SESSION_TTL)
    return FileSessionStore(Path(settings.SESSIONS_DIR) if settings.SESSIONS_DIR else None)


class SessionPersistence:
    """
    Saves and restores a ConversationHistory under a session id.

    Failures never propagate: a corrupt or unreadable session starts fresh,
    and a failed save is reported and otherwise ignored.
    """

    def __init__(self, store: SessionStore, history: ConversationHistory):
        self.store = store
        self.history = history

    def start(self, session_id: str) -> StartResult:
        """Loads the session into the history if it exists, else resets the history."""
        try:
            data = self.store.read(session_id)
        except Exception:
            console.exception(f"Failed to read session '{session_id}'. Starting a new one.")
            data = None

        if data is None:
            self.history.clear()
            console.info(f"New session: {session_id}")
            return StartResult.NEW

        try:
            persisted = PersistedSession.model_validate_json(data)
        except ValidationError as e:
            console.warning(f"Failed to load session '{session_id}': {e}. Starting a new one.")
            self.history.clear()
            return StartResult.NEW

        self.history.load(persisted.messages)
        console.success(f"Resumed session: {session_id} ({len(persisted.messages)} messages)")
        return StartResult.RESUMED

    def save(self, session_id: str) -> bool:
        payload = {
            "session_id": session_id,
            "saved_at": datetime.now().astimezone().isoformat(),
            "messages": self.history.serialize(),
        }
        try:
            data = json.dumps(payload, indent=2, ensure_ascii=False, default=str).encode("utf-8")
            self.store.write(session_id, data)
        except Exception:
            console.exception(f"Failed to save session '{session_id}'.")
            return False
        console.debug(f"Session '{session_id}' saved.")
        return True

    def clear(self, session_id: str) -> bool:
        """Deletes the stored session and resets the history."""
        try:
            deleted = self.store.delete(session_id)
        except Exception:
            console.exception(f"Failed to delete session '{session_id}'.")
            deleted = False
        self.history.clear()
        return deleted

    def list(self) -> List[SessionInfo]:
        sessions = []
        for key in self.store.keys():
            try:
                data = self.store.read(key)
                if data is None:
                    continue
                persisted = PersistedSession.model_validate_json(data)
            except Exception as e:
                console.debug(f"Skipping unreadable session '{key}': {e}")
                continue
            sessions.append(SessionInfo(
                id=persisted.session_id,
                saved_at=persisted.saved_at,
                message_count=len(persisted.messages),
            ))
        return sessions
