"""
Pydantic Schemas for API - Request/response models for OpenAPI and the socket.

The session snapshot is camelCase on the wire (matchFormat, bannedOrder,
imageRef, ...). Every model also accepts snake_case field names on input.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has been cleaned up
- INVALID_CANDIDATE: Map id is not in the session's pool
- ALREADY_BANNED: Map was banned earlier
- ALREADY_PICKED: Map was picked earlier
- NOT_YOUR_TURN: Acting party does not hold the turn
- ALREADY_TOSSED: Coin toss already happened
- VALIDATION_ERROR: Arguments are malformed
- UNKNOWN_EVENT: Socket event name is not recognized
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..engine_core.action import DraftErrorCode
from ..engine_core.state import CoinFace, MatchFormat, PartyLabel, Side


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_CANDIDATE = "INVALID_CANDIDATE"
    ALREADY_BANNED = "ALREADY_BANNED"
    ALREADY_PICKED = "ALREADY_PICKED"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    ALREADY_TOSSED = "ALREADY_TOSSED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNKNOWN_EVENT = "UNKNOWN_EVENT"

    @classmethod
    def from_draft_error(cls, code: DraftErrorCode) -> "ErrorCode":
        mapping = {
            DraftErrorCode.NOT_FOUND: cls.SESSION_NOT_FOUND,
            DraftErrorCode.INVALID_CANDIDATE: cls.INVALID_CANDIDATE,
            DraftErrorCode.ALREADY_BANNED: cls.ALREADY_BANNED,
            DraftErrorCode.ALREADY_PICKED: cls.ALREADY_PICKED,
            DraftErrorCode.NOT_YOUR_TURN: cls.NOT_YOUR_TURN,
            DraftErrorCode.ALREADY_TOSSED: cls.ALREADY_TOSSED,
        }
        return mapping[code]


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Session snapshot
# =============================================================================

class CandidateInfo(_WireModel):
    """One map in the session's pool."""
    id: int
    name: str
    image_ref: str
    banned: bool = False


class PartyInfo(_WireModel):
    """One of the two parties."""
    name: str = ""
    side: Optional[Side] = None


class SessionSnapshot(_WireModel):
    """Full session state, as broadcast in `session-update`."""
    id: str
    match_format: MatchFormat
    candidates: list[CandidateInfo] = Field(default_factory=list)
    banned_order: list[int] = Field(default_factory=list)
    picked_order: list[int] = Field(default_factory=list)
    current_turn: Optional[PartyLabel] = None
    toss_winner: Optional[PartyLabel] = None
    toss_loser: Optional[PartyLabel] = None
    toss_completed: bool = False
    party_a: PartyInfo = Field(default_factory=PartyInfo)
    party_b: PartyInfo = Field(default_factory=PartyInfo)


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(_WireModel):
    """
    Request to create a new draft session.

    POST /api/v1/sessions
    """
    match_format: MatchFormat
    creator_name: str = Field(min_length=1)

    @field_validator("match_format", mode="before")
    @classmethod
    def _parse_format(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return MatchFormat.parse(value)
            except ValueError:
                return value
        return value


class JoinSessionRequest(_WireModel):
    """
    Request to join a session as party B.

    POST /api/v1/sessions/{id}/join
    """
    name: str = Field(min_length=1)


class TossRequest(_WireModel):
    """
    Coin toss call.

    POST /api/v1/sessions/{id}/toss
    """
    call: CoinFace
    caller: Optional[PartyLabel] = Field(PartyLabel.A, description="Party making the call; null is rejected when turns are enforced")

    @field_validator("call", mode="before")
    @classmethod
    def _parse_call(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("caller", mode="before")
    @classmethod
    def _parse_caller(cls, value: Any) -> Any:
        return _parse_label(value)


class MapActionRequest(_WireModel):
    """
    Ban or pick a map.

    POST /api/v1/sessions/{id}/bans
    POST /api/v1/sessions/{id}/picks
    """
    map_id: int
    party: Optional[PartyLabel] = Field(None, description="Acting party; required when turns are enforced")

    @field_validator("party", mode="before")
    @classmethod
    def _parse_party(cls, value: Any) -> Any:
        return _parse_label(value)


class SelectSideRequest(_WireModel):
    """
    Choose a side for a party.

    POST /api/v1/sessions/{id}/side
    """
    party: PartyLabel
    side: Side

    @field_validator("party", mode="before")
    @classmethod
    def _parse_party(cls, value: Any) -> Any:
        return _parse_label(value)

    @field_validator("side", mode="before")
    @classmethod
    def _parse_side(cls, value: Any) -> Any:
        return value.strip().capitalize() if isinstance(value, str) else value


def _parse_label(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return PartyLabel.parse(value)
        except ValueError:
            return value
    return value


# =============================================================================
# Response Models
# =============================================================================

class CreateSessionResponse(_WireModel):
    """Response to session creation."""
    session_id: str


class TossResponse(_WireModel):
    """Coin toss outcome."""
    result: CoinFace
    toss_winner: PartyLabel


class ActionAck(_WireModel):
    """Acknowledgement for an accepted ban, pick or side selection."""
    success: bool = True


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class SessionListResponse(BaseModel):
    """List of active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response when ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    service: str = "mapdraft"
    version: str
    sessions: int = 0


# =============================================================================
# Socket envelopes
# =============================================================================

class InboundEvent(BaseModel):
    """A frame received on /ws."""
    event: str = Field(min_length=1)
    args: list[Any] = Field(default_factory=list)
    ack: Optional[Union[int, str]] = None


class OutboundEvent(BaseModel):
    """A frame sent on /ws: an acknowledgement or a broadcast."""
    event: str
    ack: Optional[Union[int, str]] = None
    payload: Any = None

    def to_wire(self) -> dict[str, Any]:
        # Only top-level keys are optional; payload nulls are part of the snapshot
        frame: dict[str, Any] = {"event": self.event}
        if self.ack is not None:
            frame["ack"] = self.ack
        if self.payload is not None:
            frame["payload"] = self.payload
        return frame
