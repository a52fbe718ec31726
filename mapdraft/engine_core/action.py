"""
Action System - Actions, payloads, and results.

Actions represent the mutating draft operations:
1. Joining a session
2. The coin toss
3. Bans and picks
4. Side selection

All session changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .state import CoinFace, PartyLabel, Side


class ActionType(Enum):
    """Types of actions in the system."""
    JOIN = "join"
    TOSS = "toss"
    BAN = "ban"
    PICK = "pick"
    SELECT_SIDE = "select_side"


class DraftErrorCode(str, Enum):
    """Protocol errors. None of them change session state."""
    NOT_FOUND = "NotFound"
    INVALID_CANDIDATE = "InvalidCandidate"
    ALREADY_BANNED = "AlreadyBanned"
    ALREADY_PICKED = "AlreadyPicked"
    NOT_YOUR_TURN = "NotYourTurn"
    ALREADY_TOSSED = "AlreadyTossed"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields.
    Validation happens in the reducer.
    """
    party: PartyLabel | None = None
    party_name: str | None = None
    candidate_id: int | None = None
    call: CoinFace | None = None
    side: Side | None = None

    # Drawn by the engine, not the caller
    coin: CoinFace | None = None


@dataclass
class Action:
    """
    A complete action to be applied to a session.

    Applied atomically by the reducer: either the whole effect lands
    or the session is left untouched.
    """
    action_type: ActionType
    payload: ActionPayload

    @classmethod
    def join(cls, party_name: str) -> Action:
        """Factory for the second party joining."""
        return cls(
            action_type=ActionType.JOIN,
            payload=ActionPayload(party=PartyLabel.B, party_name=party_name),
        )

    @classmethod
    def toss(
        cls,
        call: CoinFace,
        coin: CoinFace,
        caller: PartyLabel | None = PartyLabel.A,
    ) -> Action:
        """
        Factory for the coin toss; `coin` is the face the engine drew.

        A None caller is an unidentified requester.
        """
        return cls(
            action_type=ActionType.TOSS,
            payload=ActionPayload(party=caller, call=call, coin=coin),
        )

    @classmethod
    def ban(cls, candidate_id: int, party: PartyLabel | None = None) -> Action:
        """Factory for banning a map."""
        return cls(
            action_type=ActionType.BAN,
            payload=ActionPayload(party=party, candidate_id=candidate_id),
        )

    @classmethod
    def pick(cls, candidate_id: int, party: PartyLabel | None = None) -> Action:
        """Factory for picking a map."""
        return cls(
            action_type=ActionType.PICK,
            payload=ActionPayload(party=party, candidate_id=candidate_id),
        )

    @classmethod
    def select_side(cls, party: PartyLabel, side: Side) -> Action:
        """Factory for side selection."""
        return cls(
            action_type=ActionType.SELECT_SIDE,
            payload=ActionPayload(party=party, side=side),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New session (if succeeded)
    - Error and code (if failed)
    - Human-readable changes (for logging)
    """
    success: bool
    new_state: Any | None = None  # DraftSession
    error: str | None = None
    error_code: DraftErrorCode | None = None

    state_changes: list[str] = field(default_factory=list)

    # Set by the toss
    coin: CoinFace | None = None

    @classmethod
    def failure(cls, error: str, error_code: DraftErrorCode) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def not_found(cls, session_id: str) -> ActionResult:
        return cls.failure(f"Session {session_id} not found", DraftErrorCode.NOT_FOUND)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        coin: CoinFace | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            coin=coin,
        )
