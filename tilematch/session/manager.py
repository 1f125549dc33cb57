"""
Match Session - The state machine that owns one session record.

LIFECYCLE:
1. start() builds a record at round 1 and generates the first grid
2. During a round:
   - select_tile() toggles tiles in and out of the selection
   - process_match() evaluates the selection
   - clear_selection() is called by the UI after showing a wrong answer
   - pause() / resume() track time spent paused
3. start_new_round() regenerates the grid from the retained card pool,
   putting previously missed cards first
4. end() discards the record

FAILURE SEMANTICS:
- Operations without a session are no-ops, never errors. A tap arriving
  after the session ended is an expected race.
- Only programming errors (e.g. a card pool that is not a list) raise.
"""

from __future__ import annotations
from enum import Enum
from typing import Any, Callable, Iterable
import logging
import random
import time

from ..engine_core.state import MatchConfig, SessionRecord
from ..engine_core.grid import generate, coerce_card_pool
from ..engine_core.validator import evaluate, MatchResult

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of the match session."""
    IDLE = "idle"  # No session
    ACTIVE = "active"  # Round in progress
    PAUSED = "paused"  # Round paused, taps ignored


class MatchSession:
    """
    Single owner of the current SessionRecord.

    The surrounding application holds one instance and reads
    `record` on every render to derive progress and completion.

    Usage:
        session = MatchSession()
        session.start("deck-1", default_config(), cards)

        session.select_tile(tile_a.id)
        session.select_tile(tile_b.id)
        result = session.process_match()
        if not result.is_match:
            session.clear_selection()

        if session.record.is_complete:
            session.start_new_round()
    """

    def __init__(
        self,
        clock: Callable[[], float] | None = None,
        rng: random.Random | None = None,
    ):
        self._record: SessionRecord | None = None
        self._clock = clock or time.time
        self._rng = rng or random.Random()

    @property
    def record(self) -> SessionRecord | None:
        """The current session record, or None when idle."""
        return self._record

    @property
    def state(self) -> SessionState:
        if self._record is None:
            return SessionState.IDLE
        if self._record.is_paused:
            return SessionState.PAUSED
        return SessionState.ACTIVE

    def is_active(self, deck_id: str | None = None) -> bool:
        """Check for a session, optionally for a specific deck."""
        if self._record is None:
            return False
        return deck_id is None or self._record.deck_id == deck_id

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(
        self,
        deck_id: str,
        config: MatchConfig,
        card_pool: list[Any],
        mastered_indices: Iterable[int] | None = None,
    ) -> SessionRecord:
        """
        Start a new session, replacing any existing one.

        Args:
            deck_id: Deck identifier (also the persistence key)
            config: Match configuration, validated by the caller
            card_pool: Deck cards; retained for later rounds
            mastered_indices: Cards to leave out unless config.include_mastered

        Returns:
            The new record at round 1 with its first grid
        """
        cards = coerce_card_pool(card_pool)
        mastered = sorted(set(mastered_indices or []))

        if self._record is not None and self._record.deck_id != deck_id:
            logger.info(
                "Replacing session for deck %s with deck %s",
                self._record.deck_id, deck_id,
            )

        now = self._clock()
        record = SessionRecord(
            deck_id=deck_id,
            config=config,
            current_round=1,
            start_time=now,
            round_start_time=now,
            card_pool=cards,
            mastered_indices=mastered,
        )
        record.grid = generate(
            cards, config, mastered_indices=mastered, rng=self._rng,
        )
        self._record = record

        logger.info(
            "Started session for deck %s: %d tiles from %d cards",
            deck_id, len(record.grid), len(cards),
        )
        return record

    def adopt(self, record: SessionRecord) -> SessionRecord:
        """Make a restored record the current session."""
        self._record = record
        return record

    def end(self) -> SessionRecord | None:
        """
        Discard the session and return to idle.

        Persisted copies are left alone; clearing them is up to the caller.
        """
        record, self._record = self._record, None
        if record is not None:
            logger.info("Ended session for deck %s", record.deck_id)
        return record

    # =========================================================================
    # Pause / resume
    # =========================================================================

    def pause(self) -> bool:
        """Pause the round. Returns False if there was nothing to pause."""
        record = self._record
        if record is None or record.is_paused:
            return False
        record.is_paused = True
        record.paused_at = self._clock()
        return True

    def resume(self) -> bool:
        """
        Resume a paused round.

        The time spent paused is added to paused_duration; the round's
        start time is left untouched.
        """
        record = self._record
        if record is None or not record.is_paused:
            return False
        if record.paused_at is not None:
            record.paused_duration += max(0.0, self._clock() - record.paused_at)
        record.is_paused = False
        record.paused_at = None
        return True

    def elapsed(self) -> float:
        """Seconds of active play in the current round."""
        record = self._record
        if record is None:
            return 0.0
        now = self._clock()
        paused = record.paused_duration
        if record.is_paused and record.paused_at is not None:
            paused += now - record.paused_at
        return max(0.0, now - record.round_start_time - paused)

    # =========================================================================
    # Selection and matching
    # =========================================================================

    def select_tile(self, tile_id: str) -> bool:
        """
        Toggle a tile in or out of the selection.

        Ignored while idle or paused, and for unknown or matched tiles.
        Returns True if the selection changed.
        """
        record = self._record
        if record is None or record.is_paused:
            logger.debug("Ignoring tap on %s: no active round", tile_id)
            return False

        tile = record.get_tile(tile_id)
        if tile is None or tile.is_matched:
            logger.debug("Ignoring tap on %s: unknown or matched", tile_id)
            return False

        if tile_id in record.selected_tile_ids:
            record.selected_tile_ids.remove(tile_id)
            tile.is_selected = False
        else:
            record.selected_tile_ids.append(tile_id)
            tile.is_selected = True
        return True

    def clear_selection(self):
        """Empty the selection without evaluating it."""
        record = self._record
        if record is None:
            return
        record.selected_tile_ids = []
        for tile in record.grid:
            tile.is_selected = False

    def process_match(self) -> MatchResult:
        """
        Evaluate the current selection.

        On a match the tiles are marked matched, the group is recorded and
        the selection is cleared. On a real mismatch (exactly required_count
        tiles) the underlying cards go into the miss history and the
        selection is kept so the UI can show the wrong answer before
        calling clear_selection().
        """
        record = self._record
        if record is None:
            return MatchResult.no_match()

        selected = record.selected_tiles()
        result = evaluate(selected, record.config)

        if result.is_match:
            for tile in selected:
                tile.is_matched = True
            record.completed_groups.append(list(result.matched_ids))
            self.clear_selection()
            logger.debug("Matched %s", result.matched_ids)
        elif len(selected) == record.config.required_count:
            for tile in selected:
                if tile.underlying_card_index not in record.missed_card_indices:
                    record.missed_card_indices.append(tile.underlying_card_index)
            logger.debug("Mismatch on %s", [tile.id for tile in selected])

        return result

    # =========================================================================
    # Rounds
    # =========================================================================

    def start_new_round(
        self,
        priority_indices: Iterable[int] | None = None,
    ) -> SessionRecord | None:
        """
        Move to the next round with a fresh grid.

        Args:
            priority_indices: Cards to place first. Defaults to this
                round's miss history when omitted.

        Returns:
            The updated record, or None when idle
        """
        record = self._record
        if record is None:
            return None

        if priority_indices is None and record.missed_card_indices:
            priority = list(record.missed_card_indices)
        else:
            priority = list(priority_indices or [])

        now = self._clock()
        record.current_round += 1
        record.round_start_time = now
        record.paused_duration = 0.0
        record.paused_at = None
        record.is_paused = False
        record.selected_tile_ids = []
        record.completed_groups = []
        record.missed_card_indices = []
        record.grid = generate(
            record.card_pool,
            record.config,
            priority_indices=priority,
            mastered_indices=record.mastered_indices,
            rng=self._rng,
        )

        logger.info(
            "Deck %s round %d: %d tiles, %d prioritized cards",
            record.deck_id, record.current_round, len(record.grid), len(priority),
        )
        return record
