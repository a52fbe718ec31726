"""
Engine Core - Draft session state and the rules that mutate it.

The engine is the runtime that:
1. Models a session (candidates, parties, toss and turn bookkeeping)
2. Validates actions against the session
3. Applies actions atomically via the reducer
"""

from .state import (
    Candidate,
    CoinFace,
    DraftSession,
    MatchFormat,
    Party,
    PartyLabel,
    Side,
)
from .action import Action, ActionType, ActionPayload, ActionResult, DraftErrorCode
from .reducer import Reducer, apply_action

__all__ = [
    "Candidate",
    "CoinFace",
    "DraftSession",
    "MatchFormat",
    "Party",
    "PartyLabel",
    "Side",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "DraftErrorCode",
    "Reducer",
    "apply_action",
]
