"""
Session Persistence - Saves and restores session records.

The host supplies a string-keyed, string-valued store. Records are kept
under one key per deck ("match-session-<deck_id>") as JSON.

RULES:
- save() without a session does nothing
- load() never raises for missing, corrupt, undecodable, foreign or
  expired data; it returns None and leaves the in-memory session untouched
- A restored grid is adopted verbatim; whether the round is already
  complete is for the caller to check
- end() does not clear storage; call clear() for eager cleanup
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable
from urllib.parse import quote, unquote
import logging
import time

from pydantic import ValidationError

from ..engine_core.state import SessionRecord
from .manager import MatchSession
from .schemas import SessionRecordModel

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "match-session-"
DEFAULT_EXPIRY_SECONDS = 7 * 24 * 60 * 60  # 7 days


def session_key(deck_id: str) -> str:
    """Store key for a deck's session."""
    return f"{SESSION_KEY_PREFIX}{deck_id}"


class KeyValueStore(ABC):
    """Host-provided persistent store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: str):
        """Store a value, replacing any previous one."""

    @abstractmethod
    def delete(self, key: str):
        """Remove a key; missing keys are ignored."""


class MemoryStore(KeyValueStore):
    """Dict-backed store for tests and single-process hosts."""

    def __init__(self, data: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(data or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str):
        self.data[key] = value

    def delete(self, key: str):
        self.data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self.data)


class FileStore(KeyValueStore):
    """
    Directory-backed store, one JSON file per key.

    Usage:
        store = FileStore(store_dir="~/.tilematch/store")
        persistence = SessionPersistence(session, store)
    """

    def __init__(self, store_dir: str | Path | None = None):
        if store_dir is None:
            store_dir = Path.home() / ".tilematch" / "store"
        self.store_dir = Path(store_dir).expanduser()
        self.store_dir.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str):
        path = self._path(key)
        # Atomic replace: readers see the old record or the new one
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    def delete(self, key: str):
        self._path(key).unlink(missing_ok=True)

    def keys(self) -> list[str]:
        return [unquote(f.stem) for f in self.store_dir.glob("*.json")]

    def _path(self, key: str) -> Path:
        return self.store_dir / f"{quote(key, safe='')}.json"


def serialize_record(record: SessionRecord) -> str:
    """Serialize a record to the stored JSON form."""
    return SessionRecordModel.from_record(record).model_dump_json()


def parse_record(raw: str) -> SessionRecord | None:
    """
    Parse stored JSON into a record.

    Returns None for malformed JSON or anything that does not have the
    shape of a session record.
    """
    try:
        model = SessionRecordModel.model_validate_json(raw)
    except ValidationError as e:
        logger.warning("Discarding stored session: %d schema error(s)", e.error_count())
        return None
    return model.to_record()


class SessionPersistence:
    """
    Persistence adapter between a MatchSession and a host store.

    Usage:
        persistence = SessionPersistence(session, FileStore())
        record = persistence.load("deck-1")
        if record is None:
            session.start("deck-1", config, cards)
        ...
        persistence.save()
    """

    def __init__(
        self,
        session: MatchSession,
        store: KeyValueStore,
        expiry_seconds: float | None = DEFAULT_EXPIRY_SECONDS,
        clock: Callable[[], float] | None = None,
    ):
        self.session = session
        self.store = store
        self.expiry_seconds = expiry_seconds
        self._clock = clock or time.time

    def save(self) -> bool:
        """
        Save the current session under its deck key.

        Returns False when there is no session, the record does not fit the
        stored schema, or the store failed.
        """
        record = self.session.record
        if record is None:
            return False

        try:
            payload = serialize_record(record)
        except ValidationError as e:
            logger.warning(
                "Not saving session for deck %s: %d schema error(s)",
                record.deck_id, e.error_count(),
            )
            return False

        try:
            self.store.set(session_key(record.deck_id), payload)
        except OSError as e:
            logger.warning("Failed to save session for deck %s: %s", record.deck_id, e)
            return False
        return True

    def load(self, deck_id: str) -> SessionRecord | None:
        """
        Restore the stored session for a deck and adopt it.

        Returns None (without touching the current session) when nothing
        is stored, the data is corrupt, belongs to another deck, or has
        expired. Expired records are deleted.
        """
        key = session_key(deck_id)
        try:
            raw = self.store.get(key)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read session for deck %s: %s", deck_id, e)
            return None

        if raw is None:
            return None

        record = parse_record(raw)
        if record is None:
            return None

        if record.deck_id != deck_id:
            logger.warning(
                "Stored session under %s belongs to deck %s", key, record.deck_id
            )
            return None

        if self._is_expired(record):
            logger.info("Stored session for deck %s has expired", deck_id)
            self.clear(deck_id)
            return None

        return self.session.adopt(record)

    def clear(self, deck_id: str):
        """Delete the stored session for a deck."""
        try:
            self.store.delete(session_key(deck_id))
        except OSError as e:
            logger.warning("Failed to clear session for deck %s: %s", deck_id, e)

    def _is_expired(self, record: SessionRecord) -> bool:
        if not self.expiry_seconds:
            return False
        return self._clock() - record.start_time > self.expiry_seconds
