"""
Pytest fixtures for tilematch tests.
"""

import random
import pytest

from ..engine_core.state import DeckCard, MatchKind
from ..config import make_config
from ..session import MatchSession, MemoryStore


class FakeClock:
    """Manually advanced clock (seconds)."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def fruit_cards() -> list[DeckCard]:
    """Four two-sided cards."""
    return [
        DeckCard(index=0, sides={"side_a": "Apple", "side_b": "RedFruit"}),
        DeckCard(index=1, sides={"side_a": "Banana", "side_b": "YellowFruit"}),
        DeckCard(index=2, sides={"side_a": "Cherry", "side_b": "SmallRedFruit"}),
        DeckCard(index=3, sides={"side_a": "Date", "side_b": "BrownFruit"}),
    ]


@pytest.fixture
def word_cards() -> list[DeckCard]:
    """Eight three-sided cards."""
    words = [
        ("hund", "dog", "/hʊnt/"),
        ("katze", "cat", "/ˈkat͡sə/"),
        ("maus", "mouse", "/maʊ̯s/"),
        ("vogel", "bird", "/ˈfoːɡl̩/"),
        ("fisch", "fish", "/fɪʃ/"),
        ("pferd", "horse", "/pfeːɐ̯t/"),
        ("kuh", "cow", "/kuː/"),
        ("schaf", "sheep", "/ʃaːf/"),
    ]
    return [
        DeckCard(index=i, sides={"side_a": a, "side_b": b, "side_c": c})
        for i, (a, b, c) in enumerate(words)
    ]


@pytest.fixture
def two_way_config():
    """2x3 two-way grid: 3 groups of 2."""
    return make_config(MatchKind.TWO_WAY, rows=2, cols=3)


@pytest.fixture
def three_way_config():
    """3x4 three-way grid: 4 groups of 3."""
    return make_config(MatchKind.THREE_WAY, rows=3, cols=4)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session(clock, rng) -> MatchSession:
    """Idle session with a fake clock and seeded randomness."""
    return MatchSession(clock=clock, rng=rng)


@pytest.fixture
def active_session(session, fruit_cards, two_way_config) -> MatchSession:
    """Session started on the fruit deck with a 2x3 two-way grid."""
    session.start("fruit", two_way_config, fruit_cards)
    return session


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


def tiles_by_group(tiles) -> dict[str, list]:
    """Group tiles by group key, preserving grid order."""
    groups: dict[str, list] = {}
    for tile in tiles:
        groups.setdefault(tile.group_key, []).append(tile)
    return groups


def mismatched_pair(tiles) -> list:
    """Two unmatched tiles from different groups."""
    groups = list(tiles_by_group([t for t in tiles if not t.is_matched]).values())
    return [groups[0][0], groups[1][0]]
