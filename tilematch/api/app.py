"""
FastAPI Application - REST API for the study app.

Endpoints:
    GET    /api/v1/health                               Health check
    GET    /api/v1/sessions                             List decks with a session
    POST   /api/v1/decks/{deck_id}/session              Start a session
    GET    /api/v1/decks/{deck_id}/session              Get (or restore) a session
    DELETE /api/v1/decks/{deck_id}/session              End a session
    POST   /api/v1/decks/{deck_id}/session/select       Toggle a tile
    POST   /api/v1/decks/{deck_id}/session/clear        Clear the selection
    POST   /api/v1/decks/{deck_id}/session/match        Process the selection
    POST   /api/v1/decks/{deck_id}/session/pause        Pause the round
    POST   /api/v1/decks/{deck_id}/session/resume       Resume the round
    POST   /api/v1/decks/{deck_id}/session/rounds       Start the next round
    GET    /api/v1/decks/{deck_id}/best-time            Best completion time

Match Flow:
    1. POST /select for each tile the learner taps
    2. POST /match once the selection is full
    3. On is_match=false, show the wrong answer, then POST /clear
    4. When progress.is_complete, POST /rounds for the next grid

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Optional, Union
import os

from .. import __version__

# Environment configuration
TILEMATCH_ENV = os.getenv("TILEMATCH_ENV", "development")
TILEMATCH_STORE_DIR = os.getenv("TILEMATCH_STORE_DIR", None)
TILEMATCH_SESSION_EXPIRY_DAYS = float(os.getenv("TILEMATCH_SESSION_EXPIRY_DAYS", "7"))
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


def create_service():
    """Build the service from environment configuration."""
    from .service import MatchService
    from ..session import FileStore, MemoryStore

    store = FileStore(TILEMATCH_STORE_DIR) if TILEMATCH_STORE_DIR else MemoryStore()
    expiry = TILEMATCH_SESSION_EXPIRY_DAYS * 24 * 60 * 60
    return MatchService(store=store, expiry_seconds=expiry or None)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional MatchService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .schemas import (
        # Request models
        StartSessionRequest,
        SelectTileRequest,
        NewRoundRequest,
        # Response models
        SessionResponse,
        MatchResponse,
        BestTimeResponse,
        EndSessionResponse,
        SessionListResponse,
        HealthResponse,
        ErrorResponse,
        # Enums
        ErrorCode,
    )

    app = FastAPI(
        title="tilematch API",
        description="""
Card-matching study sessions over flashcard decks.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | No session for the deck |
| `INVALID_CONFIG` | Match configuration failed validation |
| `INVALID_DECK` | Card pool is empty or malformed |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or create_service()

    # =========================================================================
    # Error helpers
    # =========================================================================

    def error_json(error: ErrorResponse) -> JSONResponse:
        """Map a service error onto an HTTP response."""
        status_code = 404 if error.error_code == ErrorCode.SESSION_NOT_FOUND else 400
        return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))

    def respond(response):
        if isinstance(response, ErrorResponse):
            return error_json(response)
        return response

    # =========================================================================
    # Meta Endpoints
    # =========================================================================

    @app.get("/api/v1/health", response_model=HealthResponse, tags=["Meta"])
    async def health() -> HealthResponse:
        return HealthResponse(version=__version__)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List decks with a session in memory",
    )
    async def list_sessions() -> SessionListResponse:
        decks = api_service.list_sessions()
        return SessionListResponse(decks=decks, count=len(decks))

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/decks/{deck_id}/session",
        response_model=SessionResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Start a match session",
    )
    async def start_session(
        deck_id: str,
        body: StartSessionRequest,
    ) -> Union[SessionResponse, JSONResponse]:
        """
        Start a session for a deck, replacing any session it had.

        Omit `config` for the default 3x4 two-way grid.
        """
        return respond(api_service.start_session(deck_id, body))

    @app.get(
        "/api/v1/decks/{deck_id}/session",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get or restore a session",
    )
    async def get_session(deck_id: str) -> Union[SessionResponse, JSONResponse]:
        """Get the deck's session; a saved session is restored if needed."""
        return respond(api_service.get_session(deck_id))

    @app.delete(
        "/api/v1/decks/{deck_id}/session",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a session",
    )
    async def end_session(
        deck_id: str,
        clear_saved: Annotated[bool, Query(description="Also delete the saved copy")] = False,
    ) -> EndSessionResponse:
        success = api_service.end_session(deck_id, clear_saved=clear_saved)
        return EndSessionResponse(success=success, deck_id=deck_id)

    # =========================================================================
    # Game Loop Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/decks/{deck_id}/session/select",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Toggle a tile",
    )
    async def select_tile(
        deck_id: str,
        body: SelectTileRequest,
    ) -> Union[SessionResponse, JSONResponse]:
        """Unknown or matched tiles, and taps while paused, are ignored."""
        return respond(api_service.select_tile(deck_id, body.tile_id))

    @app.post(
        "/api/v1/decks/{deck_id}/session/clear",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Clear the selection",
    )
    async def clear_selection(deck_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.clear_selection(deck_id))

    @app.post(
        "/api/v1/decks/{deck_id}/session/match",
        response_model=MatchResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Process the selection",
    )
    async def process_match(deck_id: str) -> Union[MatchResponse, JSONResponse]:
        """
        Evaluate the selected tiles.

        A mismatch keeps the selection; call `/clear` once the wrong
        answer has been shown.
        """
        return respond(api_service.process_match(deck_id))

    @app.post(
        "/api/v1/decks/{deck_id}/session/pause",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
    )
    async def pause(deck_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.pause(deck_id))

    @app.post(
        "/api/v1/decks/{deck_id}/session/resume",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
    )
    async def resume(deck_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.resume(deck_id))

    @app.post(
        "/api/v1/decks/{deck_id}/session/rounds",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Start the next round",
    )
    async def new_round(
        deck_id: str,
        body: Optional[NewRoundRequest] = None,
    ) -> Union[SessionResponse, JSONResponse]:
        """Omit `priority_indices` to prioritize the cards missed this round."""
        return respond(api_service.new_round(deck_id, body))

    @app.get(
        "/api/v1/decks/{deck_id}/best-time",
        response_model=BestTimeResponse,
        tags=["Stats"],
    )
    async def best_time(deck_id: str) -> BestTimeResponse:
        return api_service.best_time(deck_id)

    return app


# For running directly: uvicorn tilematch.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
