"""
Presets - Grid sizes and side layouts offered to learners.

build_side_configs() produces equal-count side entries, which is what
keeps every group complete on the grid.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..engine_core.state import MatchKind, SideConfig, MatchConfig


@dataclass(frozen=True)
class GridPreset:
    """A named grid size."""
    label: str
    rows: int
    cols: int

    @property
    def tiles(self) -> int:
        return self.rows * self.cols


GRID_PRESETS = [
    GridPreset(label="Small (2×3)", rows=2, cols=3),
    GridPreset(label="Medium (3×4)", rows=3, cols=4),
    GridPreset(label="Large (4×4)", rows=4, cols=4),
    GridPreset(label="Extra Large (4×5)", rows=4, cols=5),
]

SIDE_LABELS = {
    "side_a": "Front",
    "side_b": "Back",
    "side_c": "Side C",
    "side_d": "Side D",
}

DEFAULT_SIDES = {
    MatchKind.TWO_WAY: [["side_a"], ["side_b"]],
    MatchKind.THREE_WAY: [["side_a"], ["side_b"], ["side_c"]],
}


def side_label(sides: list[str]) -> str:
    """Display label for a side combination, e.g. "Front + Back"."""
    return " + ".join(SIDE_LABELS.get(side, side) for side in sides)


def build_side_configs(
    kind: MatchKind,
    rows: int,
    cols: int,
    sides: list[list[str]] | None = None,
) -> list[SideConfig]:
    """
    Split a rows x cols grid evenly across side combinations.

    Two-way and three-way default to side_a/side_b(/side_c). Custom needs
    explicit side combinations.
    """
    if sides is None:
        if kind not in DEFAULT_SIDES:
            raise ValueError(f"{kind.value} requires explicit side combinations")
        sides = DEFAULT_SIDES[kind]
    if not sides:
        raise ValueError("At least one side combination is required")

    per_entry = (rows * cols) // len(sides)
    return [
        SideConfig(sides=list(combo), label=side_label(combo), count=per_entry)
        for combo in sides
    ]


def make_config(
    kind: MatchKind = MatchKind.TWO_WAY,
    rows: int = 3,
    cols: int = 4,
    sides: list[list[str]] | None = None,
    **toggles,
) -> MatchConfig:
    """Factory for a configuration with evenly split side entries."""
    return MatchConfig(
        rows=rows,
        cols=cols,
        match_kind=kind,
        side_configs=build_side_configs(kind, rows, cols, sides),
        **toggles,
    )


def default_config() -> MatchConfig:
    """3x4 two-way grid, count-up timer, mastered cards excluded."""
    return make_config(
        MatchKind.TWO_WAY,
        rows=3,
        cols=4,
        enable_timer=True,
        timer_seconds=0,
        include_mastered=False,
        enable_audio=False,
    )
