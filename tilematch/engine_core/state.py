"""
Match State - Data model for tiles, configurations and session records.

Design principles:
- Plain dataclasses, mutated only by the session state machine
- Serializable: every field maps onto the persisted schema
- Group keys are the only notion of "belongs together"
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
from enum import Enum


class MatchKind(Enum):
    """How many sides make up one match."""
    TWO_WAY = "two_way"
    THREE_WAY = "three_way"
    CUSTOM = "custom"


@dataclass
class DeckCard:
    """
    One entry of the card pool.

    Note: This is the flashcard as supplied by the deck, not a grid tile.
    A single DeckCard usually backs several tiles (one per side entry).
    """
    index: int  # Stable index into the original deck
    sides: dict[str, str] = field(default_factory=dict)  # side_a -> "Apple"

    def side(self, name: str) -> str:
        """Value for a side, empty string if the card lacks it."""
        return self.sides.get(name) or ""

    @classmethod
    def from_dict(cls, data: dict[str, Any], index: int | None = None) -> DeckCard:
        """
        Build a card from a deck record.

        The record's "idx" wins over the positional index. Every key that
        starts with "side_" is treated as a side.
        """
        card_index = data.get("idx", index)
        if card_index is None:
            raise ValueError("Deck card has no idx and no positional index")
        sides = {
            key: str(value)
            for key, value in data.items()
            if key.startswith("side_") and value is not None
        }
        return cls(index=int(card_index), sides=sides)


@dataclass
class GridPosition:
    """Row-major cell coordinates, 0-based."""
    row: int = 0
    col: int = 0


@dataclass
class Tile:
    """
    A single visible grid cell.

    Tiles sharing a group_key must be collected together to form a match.
    """
    id: str
    underlying_card_index: int
    display_sides: list[str]
    content: str
    group_key: str
    is_matched: bool = False
    is_selected: bool = False
    position: GridPosition = field(default_factory=GridPosition)


@dataclass
class SideConfig:
    """
    One side combination shown on the grid.

    count is how many tiles display this combination.
    """
    sides: list[str]
    label: str
    count: int


@dataclass
class MatchConfig:
    """
    Grid dimensions, match kind and side entries.

    The toggles (timer, audio, mastery) do not affect matching; they ride
    along so callers can persist one configuration object.
    """
    rows: int
    cols: int
    match_kind: MatchKind = MatchKind.TWO_WAY
    side_configs: list[SideConfig] = field(default_factory=list)

    enable_timer: bool = True
    timer_seconds: int = 0  # 0 means count-up
    include_mastered: bool = False
    enable_audio: bool = False

    @property
    def total_tiles(self) -> int:
        return self.rows * self.cols

    @property
    def required_count(self) -> int:
        """Tiles that must be selected together to attempt a match."""
        return len(self.side_configs)

    @property
    def num_groups(self) -> int:
        """Number of distinct underlying cards a grid draws."""
        if not self.side_configs:
            return 0
        return max(entry.count for entry in self.side_configs)


@dataclass
class SessionRecord:
    """
    The complete state of one match session.

    This is the structure callers inspect on every render.
    Only the session state machine mutates it.
    """
    deck_id: str
    config: MatchConfig

    # Round tracking
    current_round: int = 1
    start_time: float = 0.0
    round_start_time: float = 0.0

    # Pause tracking (seconds)
    paused_duration: float = 0.0
    paused_at: float | None = None
    is_paused: bool = False

    # Round-scoped state
    grid: list[Tile] = field(default_factory=list)
    selected_tile_ids: list[str] = field(default_factory=list)
    completed_groups: list[list[str]] = field(default_factory=list)
    missed_card_indices: list[int] = field(default_factory=list)

    # Retained for later rounds
    card_pool: list[DeckCard] = field(default_factory=list, repr=False)
    mastered_indices: list[int] = field(default_factory=list, repr=False)

    def get_tile(self, tile_id: str) -> Tile | None:
        """Get tile by ID."""
        for tile in self.grid:
            if tile.id == tile_id:
                return tile
        return None

    def selected_tiles(self) -> list[Tile]:
        """Selected tiles in selection order."""
        tiles = []
        for tile_id in self.selected_tile_ids:
            tile = self.get_tile(tile_id)
            if tile is not None:
                tiles.append(tile)
        return tiles

    @property
    def is_complete(self) -> bool:
        """True once every tile on a non-empty grid is matched."""
        return bool(self.grid) and all(tile.is_matched for tile in self.grid)
