"""
Best Times - Fastest completed round per deck.

Stored as one JSON object under a single key of the host store.
Unreadable data counts as "no records yet".
"""

from __future__ import annotations
from datetime import datetime, timezone
import logging

from pydantic import BaseModel, TypeAdapter, ValidationError

from ..engine_core.state import MatchKind, SessionRecord
from .persistence import KeyValueStore

logger = logging.getLogger(__name__)

BEST_TIMES_KEY = "match-best-times"


class BestTime(BaseModel):
    """Best completion time for one deck."""
    deck_id: str
    best_time_ms: int
    achieved_at: datetime
    rows: int
    cols: int
    match_kind: MatchKind
    total_matches: int


_best_times_adapter = TypeAdapter(dict[str, BestTime])


def format_time(time_ms: int | None) -> str:
    """Format milliseconds as MM:SS; "--:--" when there is no time."""
    if time_ms is None:
        return "--:--"
    total_seconds = int(time_ms // 1000)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


class BestTimes:
    """
    Per-deck best times backed by a KeyValueStore.

    Usage:
        best_times = BestTimes(store)
        if session.record.is_complete:
            is_new = best_times.record_round(session.record, session.elapsed())
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def update(
        self,
        deck_id: str,
        time_ms: int,
        rows: int,
        cols: int,
        match_kind: MatchKind,
        total_matches: int,
    ) -> bool:
        """Store time_ms if it beats the deck's record. Returns True if it did."""
        times = self._read()
        current = times.get(deck_id)
        if current is not None and time_ms >= current.best_time_ms:
            return False

        times[deck_id] = BestTime(
            deck_id=deck_id,
            best_time_ms=time_ms,
            achieved_at=datetime.now(timezone.utc),
            rows=rows,
            cols=cols,
            match_kind=match_kind,
            total_matches=total_matches,
        )
        self._write(times)
        logger.info("New best time for deck %s: %s", deck_id, format_time(time_ms))
        return True

    def record_round(self, record: SessionRecord, elapsed_seconds: float) -> bool:
        """Update from a completed session record."""
        return self.update(
            deck_id=record.deck_id,
            time_ms=int(elapsed_seconds * 1000),
            rows=record.config.rows,
            cols=record.config.cols,
            match_kind=record.config.match_kind,
            total_matches=len(record.completed_groups),
        )

    def get(self, deck_id: str) -> BestTime | None:
        return self._read().get(deck_id)

    def has(self, deck_id: str) -> bool:
        return deck_id in self._read()

    def all(self) -> list[BestTime]:
        return list(self._read().values())

    def clear(self, deck_id: str):
        times = self._read()
        if times.pop(deck_id, None) is not None:
            self._write(times)

    def clear_all(self):
        self.store.delete(BEST_TIMES_KEY)

    def formatted(self, deck_id: str) -> str:
        best = self.get(deck_id)
        return format_time(best.best_time_ms if best else None)

    def _read(self) -> dict[str, BestTime]:
        raw = self.store.get(BEST_TIMES_KEY)
        if raw is None:
            return {}
        try:
            return _best_times_adapter.validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable best times")
            return {}

    def _write(self, times: dict[str, BestTime]):
        self.store.set(BEST_TIMES_KEY, _best_times_adapter.dump_json(times).decode("utf-8"))
