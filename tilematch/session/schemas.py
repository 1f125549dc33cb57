"""
Persisted Schemas - Pydantic models for stored session records.

Stored data is untrusted: it may come from an older build, a half-written
file or a hand-edited store. Every load goes through these models, which
check shape (types, required fields, ranges) but not content. Group keys
and tile content are restored verbatim.
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field

from ..engine_core.state import (
    MatchKind,
    DeckCard,
    GridPosition,
    Tile,
    SideConfig,
    MatchConfig,
    SessionRecord,
)

SCHEMA_VERSION = 1


class GridPositionModel(BaseModel):
    row: int = Field(ge=0)
    col: int = Field(ge=0)

    model_config = {"from_attributes": True}


class TileModel(BaseModel):
    """A grid tile as stored and as returned by the API."""
    id: str
    underlying_card_index: int
    display_sides: list[str] = Field(min_length=1)
    content: str
    group_key: str
    is_matched: bool = False
    is_selected: bool = False
    position: GridPositionModel

    model_config = {"from_attributes": True}

    def to_tile(self) -> Tile:
        return Tile(
            id=self.id,
            underlying_card_index=self.underlying_card_index,
            display_sides=list(self.display_sides),
            content=self.content,
            group_key=self.group_key,
            is_matched=self.is_matched,
            is_selected=self.is_selected,
            position=GridPosition(row=self.position.row, col=self.position.col),
        )


class SideConfigModel(BaseModel):
    sides: list[str] = Field(min_length=1)
    label: str
    count: int = Field(ge=1)

    model_config = {"from_attributes": True}

    def to_side_config(self) -> SideConfig:
        return SideConfig(sides=list(self.sides), label=self.label, count=self.count)


class MatchConfigModel(BaseModel):
    """Match configuration as stored and as accepted by the API."""
    rows: int = Field(ge=2)
    cols: int = Field(ge=2)
    match_kind: MatchKind = MatchKind.TWO_WAY
    side_configs: list[SideConfigModel] = Field(default_factory=list)
    enable_timer: bool = True
    timer_seconds: int = 0
    include_mastered: bool = False
    enable_audio: bool = False

    model_config = {"from_attributes": True}

    def to_config(self) -> MatchConfig:
        return MatchConfig(
            rows=self.rows,
            cols=self.cols,
            match_kind=self.match_kind,
            side_configs=[entry.to_side_config() for entry in self.side_configs],
            enable_timer=self.enable_timer,
            timer_seconds=self.timer_seconds,
            include_mastered=self.include_mastered,
            enable_audio=self.enable_audio,
        )


class DeckCardModel(BaseModel):
    index: int
    sides: dict[str, str] = Field(default_factory=dict)

    model_config = {"from_attributes": True}


class SessionRecordModel(BaseModel):
    """
    The stored form of a SessionRecord.

    The card pool is stored too, so a restored session can start new
    rounds without the caller resupplying the deck.
    """
    schema_version: Literal[1] = SCHEMA_VERSION
    deck_id: str
    config: MatchConfigModel
    current_round: int = Field(ge=1)
    start_time: float
    round_start_time: float
    paused_duration: float = Field(0.0, ge=0.0)
    paused_at: Optional[float] = None
    is_paused: bool = False
    grid: list[TileModel] = Field(default_factory=list)
    selected_tile_ids: list[str] = Field(default_factory=list)
    completed_groups: list[list[str]] = Field(default_factory=list)
    missed_card_indices: list[int] = Field(default_factory=list)
    card_pool: list[DeckCardModel] = Field(default_factory=list)
    mastered_indices: list[int] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @classmethod
    def from_record(cls, record: SessionRecord) -> "SessionRecordModel":
        return cls.model_validate(record)

    def to_record(self) -> SessionRecord:
        return SessionRecord(
            deck_id=self.deck_id,
            config=self.config.to_config(),
            current_round=self.current_round,
            start_time=self.start_time,
            round_start_time=self.round_start_time,
            paused_duration=self.paused_duration,
            paused_at=self.paused_at,
            is_paused=self.is_paused,
            grid=[tile.to_tile() for tile in self.grid],
            selected_tile_ids=list(self.selected_tile_ids),
            completed_groups=[list(group) for group in self.completed_groups],
            missed_card_indices=list(self.missed_card_indices),
            card_pool=[
                DeckCard(index=card.index, sides=dict(card.sides))
                for card in self.card_pool
            ],
            mastered_indices=list(self.mastered_indices),
        )
