"""
Session Module - Owns the match session and its persistence.

A session represents one learner working through one deck:
- Created when the learner starts matching
- Holds the current grid, selection and miss history
- Advances round by round, prioritizing missed cards
- Saved to and restored from the host key-value store by deck

Stored records are untrusted; restoring validates their shape first.
"""

from .manager import MatchSession, SessionState
from .persistence import (
    SessionPersistence,
    KeyValueStore,
    MemoryStore,
    FileStore,
    session_key,
)
from .best_times import BestTimes, BestTime, format_time

__all__ = [
    "MatchSession",
    "SessionState",
    "SessionPersistence",
    "KeyValueStore",
    "MemoryStore",
    "FileStore",
    "session_key",
    "BestTimes",
    "BestTime",
    "format_time",
]
