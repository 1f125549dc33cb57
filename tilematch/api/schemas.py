"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between the study app and the engine.
Tiles and configurations reuse the persisted models so the API and the
store agree on one shape.

Error Codes:
- SESSION_NOT_FOUND: No session (in memory or stored) for the deck
- INVALID_CONFIG: Match configuration failed validation
- INVALID_DECK: Card pool is empty or malformed
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..session.schemas import TileModel, MatchConfigModel

API_VERSION = "v1"


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETE = "complete"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_DECK = "INVALID_DECK"


# =============================================================================
# Request Models
# =============================================================================

class StartSessionRequest(BaseModel):
    """Request to start a match session for a deck."""
    cards: list[dict[str, Any]] = Field(
        ..., description="Deck cards: {idx, side_a, side_b, ...}"
    )
    config: Optional[MatchConfigModel] = Field(
        None, description="Match configuration (defaults to 3x4 two-way)"
    )
    mastered_indices: list[int] = Field(
        default_factory=list, description="Card indices the learner has mastered"
    )


class SelectTileRequest(BaseModel):
    """Request to toggle a tile."""
    tile_id: str


class NewRoundRequest(BaseModel):
    """Request to start the next round."""
    priority_indices: Optional[list[int]] = Field(
        None, description="Cards to place first; defaults to this round's misses"
    )


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field(API_VERSION, description="API version")


class ProgressInfo(BaseModel):
    """Round progress, counted in groups."""
    total_groups: int
    matched_groups: int
    percent: float
    remaining_tiles: int
    is_complete: bool


class SessionResponse(BaseModel):
    """Current session state for rendering."""
    deck_id: str
    status: SessionStatus
    current_round: int
    grid: list[TileModel]
    selected_tile_ids: list[str] = Field(default_factory=list)
    completed_groups: list[list[str]] = Field(default_factory=list)
    missed_card_indices: list[int] = Field(default_factory=list)
    config: MatchConfigModel
    progress: ProgressInfo
    elapsed_seconds: float = 0.0
    paused_duration: float = 0.0
    start_time: float
    api_version: str = Field(API_VERSION, description="API version")


class MatchResponse(BaseModel):
    """Outcome of processing the current selection."""
    is_match: bool
    matched_ids: Optional[list[str]] = None
    is_new_best: bool = False
    session: SessionResponse


class BestTimeResponse(BaseModel):
    """Best completion time for a deck."""
    deck_id: str
    has_record: bool
    best_time_ms: Optional[int] = None
    formatted_time: str = "--:--"


class EndSessionResponse(BaseModel):
    """Response from ending a session."""
    success: bool
    deck_id: str


class SessionListResponse(BaseModel):
    """Decks with a session in memory."""
    decks: list[str]
    count: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    version: str
    api_version: str = API_VERSION
