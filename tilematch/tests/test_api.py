"""
Tests for API layer.

Tests:
- Service methods
- Session lifecycle via the service
- Restoring saved sessions
- Error handling
"""

import pytest

from ..api.schemas import (
    StartSessionRequest,
    NewRoundRequest,
    SessionStatus,
    ErrorCode,
    ErrorResponse,
)
from ..api.service import MatchService
from ..session import MemoryStore
from ..session.schemas import MatchConfigModel, SideConfigModel


FRUIT_CARDS = [
    {"idx": 0, "side_a": "Apple", "side_b": "RedFruit"},
    {"idx": 1, "side_a": "Banana", "side_b": "YellowFruit"},
    {"idx": 2, "side_a": "Cherry", "side_b": "SmallRedFruit"},
    {"idx": 3, "side_a": "Date", "side_b": "BrownFruit"},
]

SMALL_CONFIG = MatchConfigModel(
    rows=2,
    cols=3,
    match_kind="two_way",
    side_configs=[
        SideConfigModel(sides=["side_a"], label="Front", count=3),
        SideConfigModel(sides=["side_b"], label="Back", count=3),
    ],
)


def group_ids(response) -> list[list[str]]:
    groups: dict[str, list[str]] = {}
    for tile in response.grid:
        groups.setdefault(tile.group_key, []).append(tile.id)
    return list(groups.values())


class TestMatchService:
    """Tests for MatchService."""

    @pytest.fixture
    def store(self):
        return MemoryStore()

    @pytest.fixture
    def service(self, store):
        """Create a fresh service."""
        return MatchService(store=store)

    @pytest.fixture
    def started(self, service):
        return service.start_session(
            "fruit", StartSessionRequest(cards=FRUIT_CARDS, config=SMALL_CONFIG),
        )

    def test_start_session(self, started):
        assert started.deck_id == "fruit"
        assert started.status == SessionStatus.ACTIVE
        assert started.current_round == 1
        assert len(started.grid) == 6
        assert started.progress.total_groups == 3
        assert started.progress.matched_groups == 0
        assert not started.progress.is_complete

    def test_start_with_default_config(self, service):
        cards = [{"side_a": f"front {i}", "side_b": f"back {i}"} for i in range(8)]
        response = service.start_session("deck", StartSessionRequest(cards=cards))

        assert len(response.grid) == 12
        assert response.config.rows == 3

    def test_invalid_config_rejected(self, service):
        config = MatchConfigModel(
            rows=2,
            cols=2,
            side_configs=[
                SideConfigModel(sides=["side_a"], label="Front", count=2),
                SideConfigModel(sides=["side_b"], label="Back", count=2),
            ],
        )
        response = service.start_session(
            "fruit", StartSessionRequest(cards=FRUIT_CARDS, config=config),
        )

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.INVALID_CONFIG
        assert response.details["errors"]

    def test_empty_deck_rejected(self, service):
        response = service.start_session("fruit", StartSessionRequest(cards=[]))
        assert response.error_code == ErrorCode.INVALID_DECK

    def test_unknown_deck(self, service):
        response = service.get_session("nope")
        assert response.error_code == ErrorCode.SESSION_NOT_FOUND

    def test_match_flow(self, service, started):
        first, second = group_ids(started)[0]
        service.select_tile("fruit", first)
        service.select_tile("fruit", second)

        response = service.process_match("fruit")

        assert response.is_match
        assert response.matched_ids == [first, second]
        assert response.session.progress.matched_groups == 1
        assert response.session.selected_tile_ids == []

    def test_mismatch_then_clear(self, service, started):
        groups = group_ids(started)
        service.select_tile("fruit", groups[0][0])
        service.select_tile("fruit", groups[1][0])

        response = service.process_match("fruit")
        assert not response.is_match
        assert response.matched_ids is None
        assert len(response.session.selected_tile_ids) == 2
        assert len(response.session.missed_card_indices) == 2

        cleared = service.clear_selection("fruit")
        assert cleared.selected_tile_ids == []

    def test_completing_round_records_best_time(self, service, started):
        response = None
        for first, second in group_ids(started):
            service.select_tile("fruit", first)
            service.select_tile("fruit", second)
            response = service.process_match("fruit")

        assert response.session.status == SessionStatus.COMPLETE
        assert response.is_new_best
        assert service.best_time("fruit").has_record

    def test_pause_resume(self, service, started):
        assert service.pause("fruit").status == SessionStatus.PAUSED
        assert service.resume("fruit").status == SessionStatus.ACTIVE

    def test_new_round(self, service, started):
        response = service.new_round("fruit", NewRoundRequest(priority_indices=[3]))

        assert response.current_round == 2
        assert 3 in {t.underlying_card_index for t in response.grid}

    def test_restore_from_store(self, store, started):
        """A new service instance picks up the saved session."""
        fresh = MatchService(store=store)
        response = fresh.get_session("fruit")

        assert response.deck_id == "fruit"
        assert [t.id for t in response.grid] == [t.id for t in started.grid]
        assert fresh.list_sessions() == ["fruit"]

    def test_end_session_keeps_saved_copy(self, service, started):
        assert service.end_session("fruit")
        assert service.list_sessions() == []
        assert service.get_session("fruit").deck_id == "fruit"

    def test_end_session_clear_saved(self, service, started):
        assert service.end_session("fruit", clear_saved=True)
        response = service.get_session("fruit")
        assert response.error_code == ErrorCode.SESSION_NOT_FOUND

    def test_end_unknown_session(self, service):
        assert not service.end_session("nope")

    def test_no_best_time(self, service):
        response = service.best_time("fruit")
        assert not response.has_record
        assert response.formatted_time == "--:--"
