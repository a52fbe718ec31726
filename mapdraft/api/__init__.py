"""
API Module - Client interface.

Exposes the draft engine to remote parties:
1. Event socket with per-session rooms and `session-update` broadcasts
2. REST mirror of the same operations

All state is session-scoped. No user accounts.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    JoinSessionRequest,
    TossRequest,
    MapActionRequest,
    SelectSideRequest,
    # Responses
    CreateSessionResponse,
    SessionSnapshot,
    TossResponse,
    ActionAck,
    ErrorResponse,
    ErrorCode,
    # Shared
    CandidateInfo,
    PartyInfo,
)
from .rooms import RoomMember, RoomRegistry
from .service import APIService, EventOutcome
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "JoinSessionRequest",
    "TossRequest",
    "MapActionRequest",
    "SelectSideRequest",
    # Responses
    "CreateSessionResponse",
    "SessionSnapshot",
    "TossResponse",
    "ActionAck",
    "ErrorResponse",
    "ErrorCode",
    # Shared
    "CandidateInfo",
    "PartyInfo",
    # Transport
    "RoomMember",
    "RoomRegistry",
    # Service
    "APIService",
    "EventOutcome",
    "create_app",
]
