"""
Match Validator - Decides whether selected tiles form a match.

One rule covers every match kind: the selection must contain exactly
required_count tiles (one per side entry) and all of them must share a
group key. Two-way, three-way and custom configurations differ only in
how many side entries they carry.
"""

from __future__ import annotations
from dataclasses import dataclass

from .state import Tile, MatchConfig


@dataclass
class MatchResult:
    """
    Outcome of evaluating a selection.

    matched_ids is None unless is_match is True.
    """
    is_match: bool
    matched_ids: list[str] | None = None

    @classmethod
    def no_match(cls) -> MatchResult:
        return cls(is_match=False)


def evaluate(selected_tiles: list[Tile], config: MatchConfig) -> MatchResult:
    """
    Evaluate a selection against the configuration.

    Never mutates the tiles; the session applies the consequences.
    """
    if not selected_tiles or len(selected_tiles) != config.required_count:
        return MatchResult.no_match()

    group_key = selected_tiles[0].group_key
    if all(tile.group_key == group_key for tile in selected_tiles):
        return MatchResult(
            is_match=True,
            matched_ids=[tile.id for tile in selected_tiles],
        )
    return MatchResult.no_match()
