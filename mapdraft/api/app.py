"""
FastAPI Application - Socket and REST interface for draft clients.

Endpoints:
    WS     /ws                               Event socket (see below)
    POST   /api/v1/sessions                  Create draft session
    GET    /api/v1/sessions                  List active sessions
    GET    /api/v1/sessions/{id}             Get session snapshot
    DELETE /api/v1/sessions/{id}             End session
    POST   /api/v1/sessions/{id}/join        Join as party B
    POST   /api/v1/sessions/{id}/toss        Coin toss
    POST   /api/v1/sessions/{id}/bans        Ban a map
    POST   /api/v1/sessions/{id}/picks       Pick a map
    POST   /api/v1/sessions/{id}/side        Choose sides

Socket protocol:
    Client frames:  {"event": "ban-map", "args": [sessionId, mapId], "ack": 7}
    Server frames:  {"event": "ack", "ack": 7, "payload": {...}}
                    {"event": "session-update", "payload": <snapshot>}

Creating or joining a session over the socket subscribes the connection to
the session's room and seats it as party A (creator) or B (joiner). The toss,
bans and picks sent on a socket act as that seat; the optional label argument
is only honored on the REST mirror. When the last member of a room leaves, the
session is removed. Mutations made over REST broadcast to the room as well.
Sessions nobody is connected to are swept once older than
MAPDRAFT_SESSION_MAX_AGE.
"""

from contextlib import asynccontextmanager
from typing import Union
import asyncio
import contextlib
import json
import logging
import os

from .. import __version__

# Environment configuration
MAPDRAFT_ENV = os.getenv("MAPDRAFT_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
ENFORCE_TURNS = os.getenv("MAPDRAFT_ENFORCE_TURNS", "true").strip().lower() not in {"0", "false", "no"}
SESSION_MAX_AGE = float(os.getenv("MAPDRAFT_SESSION_MAX_AGE", "3600"))
SWEEP_INTERVAL = float(os.getenv("MAPDRAFT_SWEEP_INTERVAL", "300"))

logger = logging.getLogger(__name__)


def create_app(service=None, rooms=None, sweep_interval=None, session_max_age=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)
        rooms: Optional RoomRegistry instance (creates new if not provided)
        sweep_interval: Seconds between stale-session sweeps; 0 disables
            (defaults to MAPDRAFT_SWEEP_INTERVAL)
        session_max_age: Age in seconds after which a session with no
            connected member is swept (defaults to MAPDRAFT_SESSION_MAX_AGE)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, WebSocket, WebSocketDisconnect
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from pydantic import ValidationError

    from ..session import EngineConfig, SessionManager, SessionStore
    from .rooms import RoomMember, RoomRegistry
    from .service import APIService
    from .schemas import (
        ActionAck,
        CreateSessionRequest,
        CreateSessionResponse,
        EndSessionResponse,
        ErrorCode,
        ErrorResponse,
        HealthResponse,
        InboundEvent,
        JoinSessionRequest,
        MapActionRequest,
        OutboundEvent,
        SelectSideRequest,
        SessionListResponse,
        SessionSnapshot,
        TossRequest,
        TossResponse,
    )

    if service is None:
        manager = SessionManager(
            store=SessionStore(),
            config=EngineConfig(enforce_turns=ENFORCE_TURNS),
        )
        service = APIService(manager=manager)
    api_service = service
    room_registry = rooms or RoomRegistry()

    def publish_update(session_id: str, snapshot: dict) -> None:
        room_registry.broadcast(
            session_id,
            OutboundEvent(event="session-update", payload=snapshot).to_wire(),
        )

    api_service.manager.subscribe(publish_update)

    interval = SWEEP_INTERVAL if sweep_interval is None else sweep_interval
    max_age = SESSION_MAX_AGE if session_max_age is None else session_max_age

    async def sweep_stale_sessions():
        # Sessions with a connected member are removed by group-empty cleanup instead
        while True:
            await asyncio.sleep(interval)
            api_service.manager.cleanup_stale_sessions(
                max_age, keep=room_registry.active_rooms()
            )

    @asynccontextmanager
    async def lifespan(app):
        logger.info("Map draft service starting (%s)", MAPDRAFT_ENV)
        sweeper = asyncio.create_task(sweep_stale_sessions()) if interval > 0 else None
        yield
        if sweeper is not None:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
        api_service.manager.unsubscribe(publish_update)
        api_service.manager.store.close()
        logger.info("Map draft service stopped")

    app = FastAPI(
        title="Map Draft API",
        description="""
Two-party map ban/pick coordination.

## Flow

1. Party A creates a session (`create-session`), party B joins (`join-session`)
2. Coin toss (`handle-toss`): single-map hands the first turn to B, multi-map to A
3. Alternating bans (`ban-map`) and picks (`select-map`)
4. Side selection (`select-side`)

Every accepted toss, ban, pick and side choice is broadcast to the session's
room as `session-update` with the full session snapshot.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `INVALID_CANDIDATE` | Map is not in this session's pool |
| `ALREADY_BANNED` | Map was banned earlier |
| `ALREADY_PICKED` | Map was picked earlier |
| `NOT_YOUR_TURN` | Acting party does not hold the turn |
| `ALREADY_TOSSED` | Coin toss already happened |
| `VALIDATION_ERROR` | Malformed arguments |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def status_for(error_code: ErrorCode) -> int:
        if error_code == ErrorCode.SESSION_NOT_FOUND:
            return 404
        if error_code in {ErrorCode.VALIDATION_ERROR, ErrorCode.UNKNOWN_EVENT}:
            return 400
        return 409

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_for(error.error_code),
            content=error.model_dump(mode="json"),
        )

    def respond(response):
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=CreateSessionResponse,
        tags=["Sessions"],
        summary="Create a new draft session",
    )
    async def create_session(body: CreateSessionRequest) -> CreateSessionResponse:
        """Create a session; the caller becomes party A."""
        return api_service.create_session(body)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionSnapshot,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session snapshot",
    )
    async def get_session(session_id: str) -> Union[SessionSnapshot, JSONResponse]:
        return respond(api_service.get_session(session_id))

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a draft session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        success = api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/join",
        response_model=SessionSnapshot,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Join a session as party B",
    )
    async def join_session(
        session_id: str,
        body: JoinSessionRequest,
    ) -> Union[SessionSnapshot, JSONResponse]:
        return respond(api_service.join_session(session_id, body))

    # =========================================================================
    # Draft Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/toss",
        response_model=TossResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Draft"],
        summary="Flip the coin",
    )
    async def toss(session_id: str, body: TossRequest) -> Union[TossResponse, JSONResponse]:
        return respond(api_service.toss(session_id, body))

    @app.post(
        "/api/v1/sessions/{session_id}/bans",
        response_model=ActionAck,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Draft"],
        summary="Ban a map",
    )
    async def ban_map(session_id: str, body: MapActionRequest) -> Union[ActionAck, JSONResponse]:
        return respond(api_service.ban_map(session_id, body))

    @app.post(
        "/api/v1/sessions/{session_id}/picks",
        response_model=ActionAck,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Draft"],
        summary="Pick a map",
    )
    async def select_map(session_id: str, body: MapActionRequest) -> Union[ActionAck, JSONResponse]:
        return respond(api_service.select_map(session_id, body))

    @app.post(
        "/api/v1/sessions/{session_id}/side",
        response_model=ActionAck,
        responses={404: {"model": ErrorResponse}},
        tags=["Draft"],
        summary="Choose sides",
    )
    async def select_side(session_id: str, body: SelectSideRequest) -> Union[ActionAck, JSONResponse]:
        return respond(api_service.select_side(session_id, body))

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    def leave_room(session_id: str, member: RoomMember) -> None:
        if room_registry.leave(session_id, member):
            api_service.disconnect_cleanup(session_id)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """
        Event socket.

        Messages from client: any event listed in the module docstring, plus
        `ping`. Messages from server: `ack`, `session-update`, `pong`, `error`.
        """
        await websocket.accept()
        member = RoomMember(websocket)
        sender = asyncio.create_task(member.run_sender())
        logger.info("A user connected: %s", member.member_id)

        try:
            while True:
                data = await websocket.receive_text()
                try:
                    inbound = InboundEvent.model_validate(json.loads(data))
                except (json.JSONDecodeError, ValidationError):
                    member.send(OutboundEvent(
                        event="error",
                        payload={"message": "Invalid event frame"},
                    ).to_wire())
                    continue

                if inbound.event == "ping":
                    member.send(OutboundEvent(event="pong", ack=inbound.ack).to_wire())
                    continue

                outcome = api_service.handle_event(inbound.event, inbound.args, seats=member.seats)
                if outcome.join_room:
                    room_registry.join(outcome.join_room, member)
                    if outcome.seat is not None:
                        member.seats[outcome.join_room] = outcome.seat
                if outcome.leave_room:
                    member.seats.pop(outcome.leave_room, None)
                    leave_room(outcome.leave_room, member)

                if inbound.ack is not None:
                    member.send(OutboundEvent(
                        event="ack",
                        ack=inbound.ack,
                        payload=outcome.payload,
                    ).to_wire())

        except WebSocketDisconnect:
            pass
        finally:
            logger.info("A user disconnected: %s", member.member_id)
            for session_id in room_registry.rooms_of(member):
                leave_room(session_id, member)
            member.close()
            with contextlib.suppress(asyncio.CancelledError):
                await sender

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            version=__version__,
            sessions=len(api_service.list_sessions()),
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Map Draft API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
            "socket": "/ws",
        }

    return app


# For running directly: uvicorn mapdraft.api.app:app
app = create_app()
