"""
Session Manager - The draft session engine.

LIFECYCLE:
1. A party creates a session -> pool drawn, party A named, no turn yet
2. The other party joins -> party B named
3. Coin toss -> winner recorded, first turn assigned from the match format
4. Alternating bans and picks -> currentTurn flips after each one
5. Side selection -> complementary sides for A and B
6. Communication group empties -> session removed

Every operation either applies its whole effect or none of it. Accepted
mutations (toss, ban, pick, side) publish a full snapshot to listeners,
which the transport fans out as `session-update`.
"""

from __future__ import annotations
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
import logging
import random
import secrets
import time

from ..engine_core.action import Action, ActionResult
from ..engine_core.reducer import Reducer
from ..engine_core.state import (
    CoinFace,
    DraftSession,
    MatchFormat,
    Party,
    PartyLabel,
    Side,
)
from ..maps.pool import DEFAULT_DRAW_SIZE, generate_pool
from .store import SessionStore

logger = logging.getLogger(__name__)

SessionListener = Callable[[str, dict[str, Any]], None]


@dataclass(frozen=True)
class EngineConfig:
    """Engine-level settings."""
    pool_draw_size: int = DEFAULT_DRAW_SIZE
    enforce_turns: bool = True


def _new_session_id() -> str:
    return secrets.token_hex(16)


class SessionManager:
    """
    Manages draft sessions.

    Responsibilities:
    - Create sessions and draw their map pools
    - Route every mutation through the reducer under the session's lock
    - Publish snapshots after accepted mutations
    - Remove sessions when their group empties

    Usage:
        manager = SessionManager(store=SessionStore())
        session_id = manager.create_session("multi-map", "Alpha")
        manager.join_session(session_id, "Beta")
        manager.handle_toss(session_id, "heads")
    """

    def __init__(
        self,
        store: SessionStore | None = None,
        config: EngineConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.store = store if store is not None else SessionStore()
        self.config = config or EngineConfig()
        self.reducer = Reducer(enforce_turns=self.config.enforce_turns)
        self._rng = rng or secrets.SystemRandom()
        self._listeners: list[SessionListener] = []

    # =========================================================================
    # Listeners
    # =========================================================================

    def subscribe(self, listener: SessionListener) -> None:
        """Register a callable receiving (session_id, snapshot) after each accepted mutation."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _publish(self, session: DraftSession) -> None:
        snapshot = session.snapshot()
        # The mutation is already stored; a failing listener must not undo the ack
        for listener in list(self._listeners):
            try:
                listener(session.id, snapshot)
            except Exception:
                logger.exception("Listener failed for session %s", session.id)

    # =========================================================================
    # Operations
    # =========================================================================

    def create_session(self, match_format: MatchFormat | str, creator_name: str) -> str:
        """
        Create a new draft session.

        Args:
            match_format: single-map or multi-map (bo1/bo3/bo5 accepted)
            creator_name: Name for party A

        Returns:
            The new session id
        """
        fmt = MatchFormat.parse(match_format)
        candidates = generate_pool(draw_size=self.config.pool_draw_size, rng=self._rng)

        while True:
            session = DraftSession(
                id=_new_session_id(),
                match_format=fmt,
                candidates=candidates,
                party_a=Party(name=creator_name),
                party_b=Party(name=""),
            )
            if self.store.add(session):
                break

        logger.info("Session created: %s (%s)", session.id, fmt.value)
        return session.id

    def join_session(self, session_id: str, joiner_name: str) -> ActionResult:
        """
        Name party B and return the session.

        A second join renames party B; there is no broadcast.
        """
        return self._dispatch(session_id, Action.join(joiner_name), publish=False)

    def handle_toss(
        self,
        session_id: str,
        call: CoinFace | str,
        caller: PartyLabel | str | None = PartyLabel.A,
    ) -> ActionResult:
        """
        Flip a fair coin against the caller's call.

        The result's `coin` is the drawn face; `new_state.toss_winner`
        is the winner. Accepted once per session. With turns enforced,
        a None caller is rejected.
        """
        action = Action.toss(
            call=CoinFace.parse(call),
            coin=self._flip(),
            caller=_label_or_none(caller),
        )
        return self._dispatch(session_id, action)

    def ban_map(
        self,
        session_id: str,
        candidate_id: int,
        party: PartyLabel | str | None = None,
    ) -> ActionResult:
        """Ban a map from the session's pool."""
        return self._dispatch(session_id, Action.ban(candidate_id, _label_or_none(party)))

    def select_map(
        self,
        session_id: str,
        candidate_id: int,
        party: PartyLabel | str | None = None,
    ) -> ActionResult:
        """Pick a map from the session's pool."""
        return self._dispatch(session_id, Action.pick(candidate_id, _label_or_none(party)))

    def select_side(
        self,
        session_id: str,
        party: PartyLabel | str,
        side: Side | str,
    ) -> ActionResult:
        """Set a party's side; the other party gets the complement."""
        action = Action.select_side(PartyLabel.parse(party), Side.parse(side))
        return self._dispatch(session_id, action)

    def disconnect_cleanup(self, session_id: str) -> bool:
        """
        Remove a session whose communication group became empty.

        Returns True if a session was removed.
        """
        removed = self.store.remove(session_id) is not None
        if removed:
            logger.info("Session removed: %s (group empty)", session_id)
        return removed

    # =========================================================================
    # Reads and housekeeping
    # =========================================================================

    def get_session(self, session_id: str) -> DraftSession | None:
        """Get a session by ID."""
        return self.store.get(session_id)

    def list_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return self.store.ids()

    def end_session(self, session_id: str) -> bool:
        """Remove a session explicitly."""
        removed = self.store.remove(session_id) is not None
        if removed:
            logger.info("Session ended: %s", session_id)
        return removed

    def cleanup_stale_sessions(
        self,
        max_age_seconds: float = 3600,
        keep: set[str] | None = None,
        now: float | None = None,
    ) -> list[str]:
        """
        Remove sessions older than max_age_seconds.

        Sessions in `keep` (e.g. ones with connected members) are left alone.
        Returns the removed ids.
        """
        current_time = now if now is not None else time.time()
        keep = keep or set()
        stale = [
            session.id for session in self.store.sessions()
            if session.id not in keep and current_time - session.created_at > max_age_seconds
        ]
        for session_id in stale:
            self.store.remove(session_id)
        if stale:
            logger.info("Removed %d stale session(s)", len(stale))
        return stale

    # =========================================================================
    # Helpers
    # =========================================================================

    def _flip(self) -> CoinFace:
        return CoinFace.HEADS if self._rng.random() < 0.5 else CoinFace.TAILS

    def _dispatch(self, session_id: str, action: Action, publish: bool = True) -> ActionResult:
        with self.store.locked(session_id) as session:
            if session is None:
                return ActionResult.not_found(session_id)

            result = self.reducer.apply(session, action)
            if not result.success:
                logger.debug(
                    "Rejected %s on %s: %s",
                    action.action_type.value, session_id, result.error_code.value,
                )
                return result

            self.store.replace(result.new_state)
            for change in result.state_changes:
                logger.info("[%s] %s", session_id, change)
            if publish:
                self._publish(result.new_state)
            return result


def _label_or_none(party: PartyLabel | str | None) -> PartyLabel | None:
    if party is None:
        return None
    return PartyLabel.parse(party)
