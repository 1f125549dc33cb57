"""
API Service - Business logic layer between API and engine.

The service:
1. Keeps one MatchSession per deck
2. Validates configurations before starting a session
3. Saves after every state change and restores on demand
4. Formats responses for the study app

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .schemas import (
    # Requests
    StartSessionRequest,
    NewRoundRequest,
    # Responses
    SessionResponse,
    MatchResponse,
    ProgressInfo,
    BestTimeResponse,
    ErrorResponse,
    # Enums
    SessionStatus,
    ErrorCode,
)
from ..config import default_config, validate_config
from ..engine_core.grid import grid_progress, remaining_tile_count
from ..session import (
    MatchSession,
    SessionPersistence,
    KeyValueStore,
    MemoryStore,
    BestTimes,
)
from ..session.persistence import DEFAULT_EXPIRY_SECONDS
from ..session.schemas import TileModel, MatchConfigModel

logger = logging.getLogger(__name__)


@dataclass
class MatchService:
    """
    Main API service for the study app.

    Usage:
        service = MatchService(store=FileStore())

        response = service.start_session("deck-1", request)
        service.select_tile("deck-1", tile_id)
        service.select_tile("deck-1", other_tile_id)
        result = service.process_match("deck-1")
    """
    store: KeyValueStore = field(default_factory=MemoryStore)
    expiry_seconds: float | None = DEFAULT_EXPIRY_SECONDS

    # Sessions by deck ID
    _sessions: dict[str, MatchSession] = field(default_factory=dict)

    def __post_init__(self):
        self.best_times = BestTimes(self.store)

    def start_session(
        self,
        deck_id: str,
        request: StartSessionRequest,
    ) -> SessionResponse | ErrorResponse:
        """Start (or restart) the session for a deck."""
        config = request.config.to_config() if request.config else default_config()

        validation = validate_config(config)
        if not validation.valid:
            return ErrorResponse(
                error="Invalid match configuration",
                error_code=ErrorCode.INVALID_CONFIG,
                details={"errors": validation.errors},
            )
        for warning in validation.warnings:
            logger.warning("Deck %s: %s", deck_id, warning)

        if not request.cards:
            return ErrorResponse(
                error="Deck has no cards",
                error_code=ErrorCode.INVALID_DECK,
            )

        session = MatchSession()
        try:
            session.start(
                deck_id, config, request.cards,
                mastered_indices=request.mastered_indices,
            )
        except ValueError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.INVALID_DECK)

        self._sessions[deck_id] = session
        self._save(session)
        return self._session_response(session)

    def get_session(self, deck_id: str) -> SessionResponse | ErrorResponse:
        """Get the deck's session, restoring it from the store if needed."""
        session = self._get_or_restore(deck_id)
        if session is None:
            return self._not_found(deck_id)
        return self._session_response(session)

    def select_tile(self, deck_id: str, tile_id: str) -> SessionResponse | ErrorResponse:
        session = self._get_or_restore(deck_id)
        if session is None:
            return self._not_found(deck_id)
        if session.select_tile(tile_id):
            self._save(session)
        return self._session_response(session)

    def clear_selection(self, deck_id: str) -> SessionResponse | ErrorResponse:
        session = self._get_or_restore(deck_id)
        if session is None:
            return self._not_found(deck_id)
        session.clear_selection()
        self._save(session)
        return self._session_response(session)

    def process_match(self, deck_id: str) -> MatchResponse | ErrorResponse:
        """
        Evaluate the current selection.

        When the match completes the round, the round time is checked
        against the deck's best time.
        """
        session = self._get_or_restore(deck_id)
        if session is None:
            return self._not_found(deck_id)

        result = session.process_match()
        is_new_best = False
        if result.is_match and session.record.is_complete:
            is_new_best = self.best_times.record_round(session.record, session.elapsed())

        self._save(session)
        return MatchResponse(
            is_match=result.is_match,
            matched_ids=result.matched_ids,
            is_new_best=is_new_best,
            session=self._session_response(session),
        )

    def pause(self, deck_id: str) -> SessionResponse | ErrorResponse:
        session = self._get_or_restore(deck_id)
        if session is None:
            return self._not_found(deck_id)
        if session.pause():
            self._save(session)
        return self._session_response(session)

    def resume(self, deck_id: str) -> SessionResponse | ErrorResponse:
        session = self._get_or_restore(deck_id)
        if session is None:
            return self._not_found(deck_id)
        if session.resume():
            self._save(session)
        return self._session_response(session)

    def new_round(
        self,
        deck_id: str,
        request: NewRoundRequest | None = None,
    ) -> SessionResponse | ErrorResponse:
        """Start the next round, prioritizing the given or missed cards."""
        session = self._get_or_restore(deck_id)
        if session is None:
            return self._not_found(deck_id)
        priority = request.priority_indices if request else None
        session.start_new_round(priority)
        self._save(session)
        return self._session_response(session)

    def end_session(self, deck_id: str, clear_saved: bool = False) -> bool:
        """
        End a deck's session.

        The stored copy survives unless clear_saved is set.
        """
        session = self._sessions.pop(deck_id, None)
        if clear_saved:
            SessionPersistence(MatchSession(), self.store).clear(deck_id)
        if session is None:
            return False
        session.end()
        return True

    def list_sessions(self) -> list[str]:
        """Deck IDs with a session in memory."""
        return [
            deck_id for deck_id, session in self._sessions.items()
            if session.is_active()
        ]

    def best_time(self, deck_id: str) -> BestTimeResponse:
        best = self.best_times.get(deck_id)
        return BestTimeResponse(
            deck_id=deck_id,
            has_record=best is not None,
            best_time_ms=best.best_time_ms if best else None,
            formatted_time=self.best_times.formatted(deck_id),
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get_or_restore(self, deck_id: str) -> MatchSession | None:
        session = self._sessions.get(deck_id)
        if session is not None and session.is_active(deck_id):
            return session

        session = MatchSession()
        if self._persistence(session).load(deck_id) is None:
            return None
        logger.info("Restored session for deck %s", deck_id)
        self._sessions[deck_id] = session
        return session

    def _persistence(self, session: MatchSession) -> SessionPersistence:
        return SessionPersistence(session, self.store, expiry_seconds=self.expiry_seconds)

    def _save(self, session: MatchSession):
        self._persistence(session).save()

    def _not_found(self, deck_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"No session for deck {deck_id}",
            error_code=ErrorCode.SESSION_NOT_FOUND,
        )

    def _session_response(self, session: MatchSession) -> SessionResponse:
        record = session.record
        progress = grid_progress(record.grid)

        if record.is_complete:
            status = SessionStatus.COMPLETE
        elif record.is_paused:
            status = SessionStatus.PAUSED
        else:
            status = SessionStatus.ACTIVE

        return SessionResponse(
            deck_id=record.deck_id,
            status=status,
            current_round=record.current_round,
            grid=[TileModel.model_validate(tile) for tile in record.grid],
            selected_tile_ids=list(record.selected_tile_ids),
            completed_groups=[list(group) for group in record.completed_groups],
            missed_card_indices=list(record.missed_card_indices),
            config=MatchConfigModel.model_validate(record.config),
            progress=ProgressInfo(
                total_groups=progress.total_groups,
                matched_groups=progress.matched_groups,
                percent=progress.percent,
                remaining_tiles=remaining_tile_count(record.grid),
                is_complete=record.is_complete,
            ),
            elapsed_seconds=session.elapsed(),
            paused_duration=record.paused_duration,
            start_time=record.start_time,
        )
