"""
Grid Generator - Turns a card pool and a match configuration into tiles.

The generator:
1. Filters mastered cards out of the pool (unless configured to keep them)
2. Picks one underlying card per group, priority hints first
3. Emits entry.count tiles per side entry, cycling over the picked cards
4. Shuffles and lays the tiles out row-major

Pure apart from its random source; never touches session state.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Iterable
import logging
import random

from .state import DeckCard, Tile, GridPosition, MatchConfig

logger = logging.getLogger(__name__)

CONTENT_SEPARATOR = " • "


@dataclass
class GridProgress:
    """Progress of a grid, counted in groups."""
    total_groups: int
    matched_groups: int
    percent: float


def coerce_card_pool(card_pool: Any) -> list[DeckCard]:
    """
    Normalize a card pool into DeckCards.

    Accepts DeckCard instances or deck dicts. Anything that is not a list
    is a programming error and raises TypeError.
    """
    if not isinstance(card_pool, list):
        raise TypeError(
            f"card_pool must be a list, got {type(card_pool).__name__}"
        )

    cards = []
    for position, item in enumerate(card_pool):
        if isinstance(item, DeckCard):
            cards.append(item)
        elif isinstance(item, dict):
            cards.append(DeckCard.from_dict(item, index=position))
        else:
            raise TypeError(
                f"card_pool[{position}] must be a DeckCard or dict, "
                f"got {type(item).__name__}"
            )
    return cards


def filter_mastered(
    cards: list[DeckCard],
    mastered_indices: Iterable[int],
) -> list[DeckCard]:
    """Drop cards whose index is in mastered_indices."""
    mastered = set(mastered_indices)
    if not mastered:
        return cards
    return [card for card in cards if card.index not in mastered]


def select_cards(
    cards: list[DeckCard],
    num_groups: int,
    priority_indices: Iterable[int] | None = None,
    rng: random.Random | None = None,
) -> list[DeckCard]:
    """
    Pick num_groups underlying cards.

    Priority indices are taken first (deduplicated, unknown ones skipped,
    truncated to num_groups). Remaining slots are sampled without
    replacement; once the pool is exhausted the picks cycle so the grid
    always fills even with a small deck.
    """
    if num_groups <= 0 or not cards:
        return []
    rng = rng or random.Random()

    by_index = {card.index: card for card in cards}
    selected: list[DeckCard] = []
    taken: set[int] = set()

    for index in priority_indices or []:
        if len(selected) >= num_groups:
            break
        if index in taken or index not in by_index:
            continue
        taken.add(index)
        selected.append(by_index[index])

    remaining = [card for card in cards if card.index not in taken]
    needed = num_groups - len(selected)
    selected.extend(rng.sample(remaining, min(needed, len(remaining))))

    # Pool exhausted: cycle over what we have
    base = list(selected)
    i = 0
    while len(selected) < num_groups:
        selected.append(base[i % len(base)])
        i += 1

    return selected


def build_content(card: DeckCard, sides: list[str], separator: str = CONTENT_SEPARATOR) -> str:
    """Render the card's values for sides, skipping empty ones."""
    values = [card.side(side) for side in sides]
    return separator.join(value for value in values if value).strip()


def make_tile_id(card_index: int, label: str, ordinal: int) -> str:
    return f"{card_index}-{label}-{ordinal}"


def make_group_key(slot: int) -> str:
    return f"group-{slot}"


def assign_positions(tiles: list[Tile], cols: int) -> list[Tile]:
    """Assign row-major positions in place and return the tiles."""
    for i, tile in enumerate(tiles):
        tile.position = GridPosition(row=i // cols, col=i % cols)
    return tiles


def generate(
    card_pool: list[Any],
    config: MatchConfig,
    priority_indices: Iterable[int] | None = None,
    mastered_indices: Iterable[int] | None = None,
    rng: random.Random | None = None,
) -> list[Tile]:
    """
    Generate a shuffled grid of tiles.

    Args:
        card_pool: Deck cards (DeckCard or dict records)
        config: Match configuration; side counts are trusted as given
        priority_indices: Card indices to place on the grid first
        mastered_indices: Card indices to exclude unless include_mastered
        rng: Random source (seed it for reproducible grids)

    Returns:
        sum(entry.count) tiles, positioned row-major over config.cols
    """
    cards = coerce_card_pool(card_pool)
    rng = rng or random.Random()

    if not config.include_mastered and mastered_indices:
        unmastered = filter_mastered(cards, mastered_indices)
        if unmastered:
            cards = unmastered
        else:
            logger.warning(
                "Every card is mastered; using the full pool of %d cards",
                len(cards),
            )

    num_groups = config.num_groups
    selected = select_cards(cards, num_groups, priority_indices, rng)
    if not selected:
        logger.warning(
            "No tiles generated (pool=%d, groups=%d)", len(cards), num_groups
        )
        return []

    tiles: list[Tile] = []
    ordinal = 0
    for entry in config.side_configs:
        for j in range(entry.count):
            slot = j % num_groups
            card = selected[slot]
            tiles.append(Tile(
                id=make_tile_id(card.index, entry.label, ordinal),
                underlying_card_index=card.index,
                display_sides=list(entry.sides),
                content=build_content(card, entry.sides),
                group_key=make_group_key(slot),
            ))
            ordinal += 1

    rng.shuffle(tiles)
    assign_positions(tiles, config.cols)

    logger.debug(
        "Generated %d tiles in %d groups for %dx%d grid",
        len(tiles), num_groups, config.rows, config.cols,
    )
    return tiles


def is_grid_complete(tiles: list[Tile]) -> bool:
    """True once every tile of a non-empty grid is matched."""
    return bool(tiles) and all(tile.is_matched for tile in tiles)


def remaining_tile_count(tiles: list[Tile]) -> int:
    return sum(1 for tile in tiles if not tile.is_matched)


def grid_progress(tiles: list[Tile]) -> GridProgress:
    """
    Count matched groups.

    A group counts as matched once all of its tiles are matched, so the
    numbers hold for pairs and triples alike.
    """
    groups: dict[str, bool] = {}
    for tile in tiles:
        groups[tile.group_key] = groups.get(tile.group_key, True) and tile.is_matched

    total = len(groups)
    matched = sum(1 for done in groups.values() if done)
    percent = (matched / total) * 100 if total else 0.0
    return GridProgress(total_groups=total, matched_groups=matched, percent=percent)
