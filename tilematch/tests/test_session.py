"""
Tests for the match session state machine.

Tests:
- Start / end lifecycle
- Tile selection toggling
- Match processing and miss history
- Pause / resume timing
- Round progression
- No-op behavior without a session
"""

import pytest

from ..engine_core.state import MatchKind
from ..session import MatchSession, SessionState
from ..config import make_config
from .conftest import tiles_by_group, mismatched_pair


class TestLifecycle:
    """Tests for start and end."""

    def test_start_creates_round_one(self, session, fruit_cards, two_way_config, clock):
        record = session.start("fruit", two_way_config, fruit_cards)

        assert session.state == SessionState.ACTIVE
        assert record.deck_id == "fruit"
        assert record.current_round == 1
        assert record.start_time == clock.now
        assert len(record.grid) == 6
        assert record.selected_tile_ids == []
        assert record.completed_groups == []
        assert record.missed_card_indices == []
        assert len(record.card_pool) == 4

    def test_start_overwrites_existing(self, active_session, word_cards, two_way_config):
        active_session.start("words", two_way_config, word_cards)
        assert active_session.record.deck_id == "words"
        assert active_session.is_active("words")
        assert not active_session.is_active("fruit")

    def test_start_rejects_non_list_pool(self, session, two_way_config):
        with pytest.raises(TypeError):
            session.start("fruit", two_way_config, {"side_a": "Apple"})

    def test_end_returns_to_idle(self, active_session):
        ended = active_session.end()

        assert ended.deck_id == "fruit"
        assert active_session.record is None
        assert active_session.state == SessionState.IDLE

    def test_end_when_idle(self, session):
        assert session.end() is None


class TestSelection:
    """Tests for select_tile and clear_selection."""

    def test_select_marks_tile(self, active_session):
        tile = active_session.record.grid[0]

        assert active_session.select_tile(tile.id)
        assert tile.is_selected
        assert active_session.record.selected_tile_ids == [tile.id]

    def test_select_twice_deselects(self, active_session):
        tile = active_session.record.grid[0]

        active_session.select_tile(tile.id)
        active_session.select_tile(tile.id)

        assert not tile.is_selected
        assert tile.id not in active_session.record.selected_tile_ids

    def test_unknown_tile_ignored(self, active_session):
        assert not active_session.select_tile("no-such-tile")
        assert active_session.record.selected_tile_ids == []

    def test_matched_tile_ignored(self, active_session):
        tile = active_session.record.grid[0]
        tile.is_matched = True

        assert not active_session.select_tile(tile.id)
        assert not tile.is_selected

    def test_select_while_paused_ignored(self, active_session):
        active_session.pause()
        tile = active_session.record.grid[0]

        assert not active_session.select_tile(tile.id)
        assert not tile.is_selected

    def test_clear_selection(self, active_session):
        for tile in active_session.record.grid[:2]:
            active_session.select_tile(tile.id)

        active_session.clear_selection()

        assert active_session.record.selected_tile_ids == []
        assert not any(t.is_selected for t in active_session.record.grid)


class TestProcessMatch:
    """Tests for process_match."""

    def test_match_marks_tiles(self, active_session):
        first, second = next(iter(tiles_by_group(active_session.record.grid).values()))
        active_session.select_tile(second.id)
        active_session.select_tile(first.id)

        result = active_session.process_match()

        assert result.is_match
        assert result.matched_ids == [second.id, first.id]
        assert first.is_matched and second.is_matched
        assert not first.is_selected and not second.is_selected
        assert active_session.record.selected_tile_ids == []
        assert active_session.record.completed_groups == [[second.id, first.id]]

    def test_mismatch_keeps_selection_and_records_misses(self, active_session):
        a, b = mismatched_pair(active_session.record.grid)
        active_session.select_tile(a.id)
        active_session.select_tile(b.id)

        result = active_session.process_match()

        assert not result.is_match
        assert result.matched_ids is None
        assert active_session.record.selected_tile_ids == [a.id, b.id]
        assert a.is_selected and b.is_selected
        assert not a.is_matched and not b.is_matched
        assert sorted(active_session.record.missed_card_indices) == sorted(
            [a.underlying_card_index, b.underlying_card_index]
        )

    def test_miss_history_deduplicated(self, active_session):
        a, b = mismatched_pair(active_session.record.grid)
        for _ in range(3):
            active_session.select_tile(a.id)
            active_session.select_tile(b.id)
            active_session.process_match()
            active_session.clear_selection()

        assert len(active_session.record.missed_card_indices) == 2

    def test_insufficient_selection_no_side_effects(self, active_session):
        tile = active_session.record.grid[0]
        active_session.select_tile(tile.id)

        result = active_session.process_match()

        assert not result.is_match
        assert result.matched_ids is None
        assert active_session.record.missed_card_indices == []
        assert active_session.record.selected_tile_ids == [tile.id]
        assert not tile.is_matched

    def test_excess_selection_no_side_effects(self, active_session):
        grid = active_session.record.grid
        for tile in grid[:3]:
            active_session.select_tile(tile.id)

        result = active_session.process_match()

        assert not result.is_match
        assert active_session.record.missed_card_indices == []
        assert not any(t.is_matched for t in grid)

    def test_completing_grid(self, active_session):
        for members in tiles_by_group(active_session.record.grid).values():
            for tile in members:
                active_session.select_tile(tile.id)
            assert active_session.process_match().is_match

        assert active_session.record.is_complete
        assert len(active_session.record.completed_groups) == 3

    def test_three_way_match(self, session, word_cards, three_way_config):
        session.start("words", three_way_config, word_cards)
        members = next(iter(tiles_by_group(session.record.grid).values()))

        for tile in members[:2]:
            session.select_tile(tile.id)
        assert not session.process_match().is_match
        assert session.record.missed_card_indices == []

        session.select_tile(members[2].id)
        assert session.process_match().is_match


class TestPauseResume:
    """Tests for pause and resume timing."""

    def test_pause_and_resume_accumulate(self, active_session, clock):
        clock.advance(10)
        assert active_session.pause()
        assert active_session.state == SessionState.PAUSED

        clock.advance(30)
        assert active_session.resume()
        assert active_session.state == SessionState.ACTIVE

        record = active_session.record
        assert record.paused_duration == 30
        assert not record.is_paused
        assert record.round_start_time == record.start_time

    def test_elapsed_excludes_pauses(self, active_session, clock):
        clock.advance(10)
        active_session.pause()
        clock.advance(100)
        assert active_session.elapsed() == 10

        active_session.resume()
        clock.advance(5)
        assert active_session.elapsed() == 15

    def test_repeated_pauses_accumulate(self, active_session, clock):
        for _ in range(2):
            active_session.pause()
            clock.advance(4)
            active_session.resume()
        assert active_session.record.paused_duration == 8

    def test_redundant_calls_are_noops(self, active_session):
        assert not active_session.resume()
        assert active_session.pause()
        assert not active_session.pause()


class TestNewRound:
    """Tests for start_new_round."""

    def test_resets_round_state(self, active_session, clock):
        grid = active_session.record.grid
        a, b = mismatched_pair(grid)
        active_session.select_tile(a.id)
        active_session.select_tile(b.id)
        active_session.process_match()
        clock.advance(60)

        record = active_session.start_new_round()

        assert record.current_round == 2
        assert record.selected_tile_ids == []
        assert record.completed_groups == []
        assert record.missed_card_indices == []
        assert record.round_start_time == clock.now
        assert len(record.grid) == 6
        assert not any(t.is_matched or t.is_selected for t in record.grid)

    def test_increments_by_one(self, active_session):
        active_session.start_new_round()
        active_session.start_new_round()
        assert active_session.record.current_round == 3

    def test_explicit_priority(self, session, word_cards, two_way_config):
        session.start("words", two_way_config, word_cards)
        record = session.start_new_round([0, 1])

        indices = {t.underlying_card_index for t in record.grid}
        assert {0, 1} <= indices

    def test_priority_truncated_to_groups(self, session, word_cards, two_way_config):
        session.start("words", two_way_config, word_cards)
        record = session.start_new_round([7, 6, 5, 4, 3])

        assert {t.underlying_card_index for t in record.grid} == {7, 6, 5}

    def test_falls_back_to_miss_history(self, session, word_cards, two_way_config):
        session.start("words", two_way_config, word_cards)
        a, b = mismatched_pair(session.record.grid)
        missed = {a.underlying_card_index, b.underlying_card_index}
        session.select_tile(a.id)
        session.select_tile(b.id)
        session.process_match()

        record = session.start_new_round()

        assert missed <= {t.underlying_card_index for t in record.grid}

    def test_reuses_retained_pool(self, active_session):
        record = active_session.start_new_round()
        assert {t.underlying_card_index for t in record.grid} <= {0, 1, 2, 3}

    def test_keeps_mastered_excluded(self, session, word_cards):
        config = make_config(MatchKind.TWO_WAY, rows=2, cols=3)
        session.start("words", config, word_cards, mastered_indices=[0, 1, 2])

        record = session.start_new_round([0, 3])

        indices = {t.underlying_card_index for t in record.grid}
        assert 0 not in indices
        assert 3 in indices


class TestIdleNoOps:
    """Operations without a session do nothing."""

    def test_select_tile(self, session):
        assert not session.select_tile("0-Front-0")

    def test_clear_selection(self, session):
        session.clear_selection()
        assert session.record is None

    def test_process_match(self, session):
        result = session.process_match()
        assert not result.is_match
        assert result.matched_ids is None

    def test_pause_resume(self, session):
        assert not session.pause()
        assert not session.resume()
        assert session.elapsed() == 0.0

    def test_new_round(self, session):
        assert session.start_new_round() is None

    def test_stale_tap_after_end(self, active_session):
        tile_id = active_session.record.grid[0].id
        active_session.end()
        assert not active_session.select_tile(tile_id)
        assert active_session.state == SessionState.IDLE
