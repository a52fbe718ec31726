"""
Draft State - The session aggregate and its parts.

Design principles:
- The session is the aggregate root: candidates, ban/pick order, turn and toss
  bookkeeping, and both parties live on one object
- Mutated only by the reducer, and only on a clone
- Serializable: snapshot() is the wire shape every participant receives
"""

from __future__ import annotations
from dataclasses import dataclass, field
from copy import deepcopy
from enum import Enum
from typing import Any
import time


class MatchFormat(str, Enum):
    """Match format; drives who acts first after the toss."""
    SINGLE_MAP = "single-map"
    MULTI_MAP = "multi-map"

    @classmethod
    def parse(cls, value: str | MatchFormat) -> MatchFormat:
        """Parse a format, accepting the best-of aliases used by clients."""
        if isinstance(value, MatchFormat):
            return value
        normalized = str(value).strip().lower()
        aliases = {
            "bo1": cls.SINGLE_MAP,
            "bo3": cls.MULTI_MAP,
            "bo5": cls.MULTI_MAP,
        }
        if normalized in aliases:
            return aliases[normalized]
        return cls(normalized)


class PartyLabel(str, Enum):
    """One of the two parties in a session."""
    A = "A"
    B = "B"

    @property
    def other(self) -> PartyLabel:
        return PartyLabel.B if self is PartyLabel.A else PartyLabel.A

    @classmethod
    def parse(cls, value: str | PartyLabel) -> PartyLabel:
        """Parse a label; accepts "TeamA"/"teamB" style names too."""
        if isinstance(value, PartyLabel):
            return value
        normalized = str(value).strip()
        if normalized.lower().startswith("team"):
            normalized = normalized[4:]
        return cls(normalized.upper())


class Side(str, Enum):
    """Side a party plays on the selected venue."""
    ATTACKERS = "Attackers"
    DEFENDERS = "Defenders"

    @property
    def complement(self) -> Side:
        return Side.DEFENDERS if self is Side.ATTACKERS else Side.ATTACKERS

    @classmethod
    def parse(cls, value: str | Side) -> Side:
        if isinstance(value, Side):
            return value
        return cls(str(value).strip().capitalize())


class CoinFace(str, Enum):
    """Coin toss outcome (and a party's call)."""
    HEADS = "heads"
    TAILS = "tails"

    @classmethod
    def parse(cls, value: str | CoinFace) -> CoinFace:
        if isinstance(value, CoinFace):
            return value
        return cls(str(value).strip().lower())


@dataclass
class Candidate:
    """
    One venue in a session's draw pool.

    Note: `banned` flips once, from False to True, during the ban phase.
    """
    id: int
    name: str
    image_ref: str
    banned: bool = False

    def snapshot(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "imageRef": self.image_ref,
            "banned": self.banned,
        }


@dataclass
class Party:
    """A participant in the draft."""
    name: str = ""
    side: Side | None = None

    def snapshot(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "side": self.side.value if self.side else None,
        }


@dataclass
class DraftSession:
    """
    Complete draft state for one session.

    Invariants held by the reducer:
    - candidates never changes length; only `banned` flags change
    - an id is in at most one of banned_order / picked_order, at most once
    - current_turn is None until the toss, then always a label
    - party sides are both None or complementary
    """
    id: str
    match_format: MatchFormat
    candidates: list[Candidate] = field(default_factory=list)
    banned_order: list[int] = field(default_factory=list)
    picked_order: list[int] = field(default_factory=list)
    current_turn: PartyLabel | None = None
    toss_winner: PartyLabel | None = None
    toss_loser: PartyLabel | None = None
    toss_completed: bool = False
    party_a: Party = field(default_factory=Party)
    party_b: Party = field(default_factory=Party)

    # Bookkeeping, not part of the wire shape
    created_at: float = field(default_factory=time.time)

    def get_candidate(self, candidate_id: int) -> Candidate | None:
        """Get a pool member by id."""
        for candidate in self.candidates:
            if candidate.id == candidate_id:
                return candidate
        return None

    def get_party(self, label: PartyLabel) -> Party:
        return self.party_a if label is PartyLabel.A else self.party_b

    def snapshot(self) -> dict[str, Any]:
        """Serialize to the plain keyed record broadcast to participants."""
        return {
            "id": self.id,
            "matchFormat": self.match_format.value,
            "candidates": [c.snapshot() for c in self.candidates],
            "bannedOrder": list(self.banned_order),
            "pickedOrder": list(self.picked_order),
            "currentTurn": self.current_turn.value if self.current_turn else None,
            "tossWinner": self.toss_winner.value if self.toss_winner else None,
            "tossLoser": self.toss_loser.value if self.toss_loser else None,
            "tossCompleted": self.toss_completed,
            "partyA": self.party_a.snapshot(),
            "partyB": self.party_b.snapshot(),
        }

    def clone(self) -> DraftSession:
        """Deep copy the session."""
        return deepcopy(self)
