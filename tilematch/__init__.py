"""
tilematch - Card-matching study engine for flashcard decks.

Turns a deck and a match configuration into a grid of tiles and runs the
match session around it:
- Grid generation from deck cards
- Match validation by group key
- Session lifecycle (start, pause, resume, rounds)
- Persistence to a host key-value store
"""

__version__ = "0.1.0"
