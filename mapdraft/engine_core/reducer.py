"""
Reducer - Applies actions to a draft session.

The reducer is the single point of session mutation.
All session changes must go through apply_action().

Design principles:
- (session, action) -> new session; the input session is never touched
- Validates before applying
- Returns ActionResult with success/failure
"""

from __future__ import annotations
from dataclasses import dataclass

from .state import DraftSession, MatchFormat, PartyLabel
from .action import Action, ActionType, ActionResult, DraftErrorCode


@dataclass
class Reducer:
    """
    Reducer applies actions to a session.

    Stateless - all state is in DraftSession.
    `enforce_turns` makes currentTurn authoritative for bans and picks.
    """
    enforce_turns: bool = True

    def apply(self, state: DraftSession, action: Action) -> ActionResult:
        """
        Apply an action to the session.

        Returns ActionResult with a new session or an error.
        """
        validation = self._validate_action(state, action)
        if validation:
            return validation

        handler = self._get_handler(action.action_type)
        return handler(state.clone(), action)

    def _validate_action(self, state: DraftSession, action: Action) -> ActionResult | None:
        """
        Validate that an action is legal in the current state.

        Returns a failure result if invalid, None if valid.
        """
        payload = action.payload

        if action.action_type == ActionType.TOSS:
            if state.toss_completed:
                return ActionResult.failure(
                    "Coin toss already completed", DraftErrorCode.ALREADY_TOSSED
                )
            if self.enforce_turns and payload.party is None:
                return ActionResult.failure(
                    "Only a seated party can call the toss", DraftErrorCode.NOT_YOUR_TURN
                )
            return None

        if action.action_type not in {ActionType.BAN, ActionType.PICK}:
            return None

        candidate = state.get_candidate(payload.candidate_id)
        if candidate is None:
            return ActionResult.failure(
                f"Map {payload.candidate_id} is not in this session's pool",
                DraftErrorCode.INVALID_CANDIDATE,
            )
        if candidate.banned:
            return ActionResult.failure(
                f"{candidate.name} is already banned", DraftErrorCode.ALREADY_BANNED
            )
        if candidate.id in state.picked_order:
            return ActionResult.failure(
                f"{candidate.name} is already picked", DraftErrorCode.ALREADY_PICKED
            )

        # Nobody holds the turn before the toss
        if state.current_turn is None:
            return ActionResult.failure(
                "Coin toss has not happened yet", DraftErrorCode.NOT_YOUR_TURN
            )
        if self.enforce_turns and payload.party != state.current_turn:
            actor = payload.party.value if payload.party else "unknown party"
            return ActionResult.failure(
                f"Not {actor}'s turn", DraftErrorCode.NOT_YOUR_TURN
            )

        return None

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.JOIN: self._handle_join,
            ActionType.TOSS: self._handle_toss,
            ActionType.BAN: self._handle_ban,
            ActionType.PICK: self._handle_pick,
            ActionType.SELECT_SIDE: self._handle_select_side,
        }
        return handlers[action_type]

    def _handle_join(self, state: DraftSession, action: Action) -> ActionResult:
        """Handle the second party joining. A repeat join renames party B."""
        state.party_b.name = action.payload.party_name or ""
        return ActionResult.success_with_state(
            state,
            changes=[f"{state.party_b.name} joined"],
        )

    def _handle_toss(self, state: DraftSession, action: Action) -> ActionResult:
        """Handle the coin toss."""
        caller = action.payload.party or PartyLabel.A
        coin = action.payload.coin
        won = action.payload.call == coin

        state.toss_winner = caller if won else caller.other
        state.toss_loser = state.toss_winner.other

        # First turn depends only on the format, not on who won
        if state.match_format == MatchFormat.SINGLE_MAP:
            state.current_turn = PartyLabel.B
        else:
            state.current_turn = PartyLabel.A
        state.toss_completed = True

        return ActionResult.success_with_state(
            state,
            changes=[
                f"Coin landed {coin.value}; {state.toss_winner.value} won the toss, "
                f"{state.current_turn.value} acts first"
            ],
            coin=coin,
        )

    def _handle_ban(self, state: DraftSession, action: Action) -> ActionResult:
        """Handle a ban."""
        candidate = state.get_candidate(action.payload.candidate_id)
        actor = state.current_turn

        candidate.banned = True
        state.banned_order.append(candidate.id)
        state.current_turn = actor.other

        return ActionResult.success_with_state(
            state,
            changes=[f"{actor.value} banned {candidate.name}"],
        )

    def _handle_pick(self, state: DraftSession, action: Action) -> ActionResult:
        """Handle a pick."""
        candidate = state.get_candidate(action.payload.candidate_id)
        actor = state.current_turn

        state.picked_order.append(candidate.id)
        state.current_turn = actor.other

        return ActionResult.success_with_state(
            state,
            changes=[f"{actor.value} picked {candidate.name}"],
        )

    def _handle_select_side(self, state: DraftSession, action: Action) -> ActionResult:
        """Handle side selection; the other party always gets the complement."""
        party = action.payload.party
        side = action.payload.side

        state.get_party(party).side = side
        state.get_party(party.other).side = side.complement

        return ActionResult.success_with_state(
            state,
            changes=[f"{party.value} chose {side.value}"],
        )


def apply_action(state: DraftSession, action: Action, enforce_turns: bool = True) -> ActionResult:
    """Convenience function to apply an action."""
    reducer = Reducer(enforce_turns=enforce_turns)
    return reducer.apply(state, action)
