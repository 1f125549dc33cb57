"""
API Module - Study app interface.

Exposes the match engine via REST API.
The study app:
1. Starts a session with the deck's cards and a configuration
2. Sends taps and asks for matches to be processed
3. Starts new rounds when the grid is cleared
4. Reopens a deck and gets its saved session back

Sessions are saved to the configured store after every change.
"""

from .schemas import (
    # Requests
    StartSessionRequest,
    SelectTileRequest,
    NewRoundRequest,
    # Responses
    SessionResponse,
    MatchResponse,
    ProgressInfo,
    BestTimeResponse,
    ErrorResponse,
    # Enums
    SessionStatus,
    ErrorCode,
)
from .service import MatchService
from .app import create_app

__all__ = [
    # Requests
    "StartSessionRequest",
    "SelectTileRequest",
    "NewRoundRequest",
    # Responses
    "SessionResponse",
    "MatchResponse",
    "ProgressInfo",
    "BestTimeResponse",
    "ErrorResponse",
    # Enums
    "SessionStatus",
    "ErrorCode",
    # Service
    "MatchService",
    "create_app",
]
