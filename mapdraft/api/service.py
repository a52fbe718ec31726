"""
API Service - Business logic layer between transport and engine.

The service:
1. Validates request arguments with the pydantic schemas
2. Calls the session engine
3. Turns engine results into acknowledgement payloads or ErrorResponse
4. Maps named socket events (positional args) onto the same calls

This layer is framework-agnostic; rooms and sockets stay in app.py.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel, ValidationError

from ..engine_core.action import ActionResult
from ..engine_core.state import PartyLabel
from ..session import SessionManager
from .schemas import (
    ActionAck,
    CreateSessionRequest,
    CreateSessionResponse,
    ErrorCode,
    ErrorResponse,
    JoinSessionRequest,
    MapActionRequest,
    SelectSideRequest,
    SessionSnapshot,
    TossRequest,
    TossResponse,
)


Seats = Optional[Mapping[str, PartyLabel]]


@dataclass
class EventOutcome:
    """
    Result of handling one socket event.

    The transport acknowledges with `payload` and applies the room changes.
    """
    payload: dict[str, Any]
    join_room: str | None = None
    leave_room: str | None = None
    seat: PartyLabel | None = None

    @property
    def ok(self) -> bool:
        return "error" not in self.payload


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        response = service.create_session(CreateSessionRequest(...))
        snapshot = service.join_session(session_id, JoinSessionRequest(name="Beta"))
        outcome = service.handle_event("ban-map", [session_id, 3, "B"])
    """
    manager: SessionManager = field(default_factory=SessionManager)

    def create_session(self, request: CreateSessionRequest) -> CreateSessionResponse:
        session_id = self.manager.create_session(request.match_format, request.creator_name)
        return CreateSessionResponse(session_id=session_id)

    def get_session(self, session_id: str) -> SessionSnapshot | ErrorResponse:
        session = self.manager.get_session(session_id)
        if session is None:
            return _not_found(session_id)
        return SessionSnapshot.model_validate(session.snapshot())

    def join_session(
        self,
        session_id: str,
        request: JoinSessionRequest,
    ) -> SessionSnapshot | ErrorResponse:
        result = self.manager.join_session(session_id, request.name)
        if not result.success:
            return _error_from_result(result)
        return SessionSnapshot.model_validate(result.new_state.snapshot())

    def toss(self, session_id: str, request: TossRequest) -> TossResponse | ErrorResponse:
        result = self.manager.handle_toss(session_id, request.call, request.caller)
        if not result.success:
            return _error_from_result(result)
        return TossResponse(result=result.coin, toss_winner=result.new_state.toss_winner)

    def ban_map(self, session_id: str, request: MapActionRequest) -> ActionAck | ErrorResponse:
        result = self.manager.ban_map(session_id, request.map_id, request.party)
        return ActionAck() if result.success else _error_from_result(result)

    def select_map(self, session_id: str, request: MapActionRequest) -> ActionAck | ErrorResponse:
        result = self.manager.select_map(session_id, request.map_id, request.party)
        return ActionAck() if result.success else _error_from_result(result)

    def select_side(self, session_id: str, request: SelectSideRequest) -> ActionAck | ErrorResponse:
        result = self.manager.select_side(session_id, request.party, request.side)
        return ActionAck() if result.success else _error_from_result(result)

    def end_session(self, session_id: str) -> bool:
        return self.manager.end_session(session_id)

    def list_sessions(self) -> list[str]:
        return self.manager.list_sessions()

    def disconnect_cleanup(self, session_id: str) -> bool:
        return self.manager.disconnect_cleanup(session_id)

    # =========================================================================
    # Socket events
    # =========================================================================

    def handle_event(
        self,
        event: str,
        args: list[Any],
        seats: Mapping[str, PartyLabel] | None = None,
    ) -> EventOutcome:
        """
        Handle one named event with positional arguments.

        Events:
            create-session (matchFormat, creatorName)
            join-session   (sessionId, name)
            handle-toss    (sessionId, call[, caller])
            ban-map        (sessionId, mapId[, party])
            select-map     (sessionId, mapId[, party])
            select-side    (sessionId, party, side)
            get-session    (sessionId)
            leave-session  (sessionId)

        `seats` maps session id -> the label a connection holds there. When
        it is given, the toss, bans and picks act as the seated label and a
        label argument is ignored; a connection without a seat acts as
        nobody. Without `seats` the label argument is trusted.
        """
        handler = self._get_event_handler(event)
        if handler is None:
            return EventOutcome(payload=_error(
                ErrorCode.UNKNOWN_EVENT, f"Unknown event: {event}"
            ).model_dump(mode="json"))

        try:
            return handler(list(args), seats)
        except (ValidationError, _ArgumentError) as exc:
            return EventOutcome(payload=_error(
                ErrorCode.VALIDATION_ERROR,
                f"Invalid arguments for {event}",
                details={"reason": str(exc)},
            ).model_dump(mode="json"))

    def _get_event_handler(self, event: str) -> Callable[..., EventOutcome] | None:
        handlers = {
            "create-session": self._on_create,
            "join-session": self._on_join,
            "handle-toss": self._on_toss,
            "ban-map": self._on_ban,
            "select-map": self._on_pick,
            "select-side": self._on_side,
            "get-session": self._on_get,
            "leave-session": self._on_leave,
        }
        return handlers.get(event)

    def _on_create(self, args: list[Any], seats: Seats) -> EventOutcome:
        match_format, creator_name = _unpack(args, 2)
        response = self.create_session(
            CreateSessionRequest(match_format=match_format, creator_name=creator_name)
        )
        return EventOutcome(
            payload=response.to_wire(),
            join_room=response.session_id,
            seat=PartyLabel.A,
        )

    def _on_join(self, args: list[Any], seats: Seats) -> EventOutcome:
        session_id, name = _unpack(args, 2)
        response = self.join_session(_session_id(session_id), JoinSessionRequest(name=name))
        if isinstance(response, ErrorResponse):
            return _outcome(response)
        return EventOutcome(payload=response.to_wire(), join_room=response.id, seat=PartyLabel.B)

    def _on_toss(self, args: list[Any], seats: Seats) -> EventOutcome:
        session_id, call, caller = _unpack(args, 2, 3)
        session_id = _session_id(session_id)
        if seats is not None:
            request = TossRequest(call=call, caller=seats.get(session_id))
        elif caller is None:
            request = TossRequest(call=call)
        else:
            request = TossRequest(call=call, caller=caller)
        return _outcome(self.toss(session_id, request))

    def _on_ban(self, args: list[Any], seats: Seats) -> EventOutcome:
        session_id, map_id, party = _unpack(args, 2, 3)
        session_id = _session_id(session_id)
        request = MapActionRequest(map_id=map_id, party=_acting_party(session_id, party, seats))
        return _outcome(self.ban_map(session_id, request))

    def _on_pick(self, args: list[Any], seats: Seats) -> EventOutcome:
        session_id, map_id, party = _unpack(args, 2, 3)
        session_id = _session_id(session_id)
        request = MapActionRequest(map_id=map_id, party=_acting_party(session_id, party, seats))
        return _outcome(self.select_map(session_id, request))

    def _on_side(self, args: list[Any], seats: Seats) -> EventOutcome:
        session_id, party, side = _unpack(args, 3)
        request = SelectSideRequest(party=party, side=side)
        return _outcome(self.select_side(_session_id(session_id), request))

    def _on_get(self, args: list[Any], seats: Seats) -> EventOutcome:
        (session_id,) = _unpack(args, 1)
        return _outcome(self.get_session(_session_id(session_id)))

    def _on_leave(self, args: list[Any], seats: Seats) -> EventOutcome:
        (session_id,) = _unpack(args, 1)
        session_id = _session_id(session_id)
        return EventOutcome(payload=ActionAck().to_wire(), leave_room=session_id)


# =============================================================================
# Helpers
# =============================================================================

class _ArgumentError(ValueError):
    pass


def _acting_party(session_id: str, claimed: Any, seats: Seats) -> Any:
    if seats is None:
        return claimed
    return seats.get(session_id)


def _unpack(args: list[Any], required: int, total: int | None = None) -> list[Any]:
    """Check the positional argument count and pad optional ones with None."""
    total = total or required
    if not required <= len(args) <= total:
        expected = str(required) if total == required else f"{required}-{total}"
        raise _ArgumentError(f"expected {expected} arguments, got {len(args)}")
    return list(args) + [None] * (total - len(args))


def _session_id(value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise _ArgumentError("session id must be a non-empty string")
    return value


def _error(code: ErrorCode, message: str, details: dict[str, Any] | None = None) -> ErrorResponse:
    return ErrorResponse(error=message, error_code=code, details=details)


def _not_found(session_id: str) -> ErrorResponse:
    return _error(ErrorCode.SESSION_NOT_FOUND, f"Session {session_id} not found")


def _error_from_result(result: ActionResult) -> ErrorResponse:
    return _error(ErrorCode.from_draft_error(result.error_code), result.error)


def _outcome(response: BaseModel) -> EventOutcome:
    if isinstance(response, ErrorResponse):
        return EventOutcome(payload=response.model_dump(mode="json"))
    return EventOutcome(payload=response.to_wire())
