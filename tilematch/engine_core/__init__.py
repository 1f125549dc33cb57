"""
Engine Core - Grid generation and match validation.

Both pieces are pure functions over the data model:
1. generate(card_pool, config) builds a grid of tiles
2. evaluate(selected_tiles, config) decides whether a selection matches
"""

from .state import (
    MatchKind,
    DeckCard,
    GridPosition,
    Tile,
    SideConfig,
    MatchConfig,
    SessionRecord,
)
from .grid import generate, select_cards, build_content, grid_progress, GridProgress
from .validator import evaluate, MatchResult

__all__ = [
    "MatchKind",
    "DeckCard",
    "GridPosition",
    "Tile",
    "SideConfig",
    "MatchConfig",
    "SessionRecord",
    "generate",
    "select_cards",
    "build_content",
    "grid_progress",
    "GridProgress",
    "evaluate",
    "MatchResult",
]
