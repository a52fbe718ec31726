"""
Pytest fixtures for Map Draft tests.
"""

import random

import pytest

from ..engine_core.state import DraftSession, MatchFormat, Party, PartyLabel
from ..maps.catalog import MAP_CATALOG
from ..session import EngineConfig, SessionManager, SessionStore


class FixedCoinRandom(random.Random):
    """
    Seeded Random whose random() always returns `value`.

    The engine flips heads when random() < 0.5. Shuffles draw from
    random() as well, so every pool from this source has the same order.
    """

    def __init__(self, value: float, seed: int = 1234):
        self._value = value
        super().__init__(seed)

    def random(self) -> float:
        return self._value


HEADS = 0.1
TAILS = 0.9


@pytest.fixture
def store() -> SessionStore:
    """A fresh session table per test."""
    return SessionStore()


@pytest.fixture
def manager(store: SessionStore) -> SessionManager:
    """Engine whose coin always lands heads."""
    return SessionManager(store=store, rng=FixedCoinRandom(HEADS))


@pytest.fixture
def tails_manager(store: SessionStore) -> SessionManager:
    """Engine whose coin always lands tails."""
    return SessionManager(store=store, rng=FixedCoinRandom(TAILS))


@pytest.fixture
def permissive_manager(store: SessionStore) -> SessionManager:
    """Engine with turn enforcement switched off."""
    return SessionManager(
        store=store,
        config=EngineConfig(enforce_turns=False),
        rng=FixedCoinRandom(HEADS),
    )


@pytest.fixture
def multi_map_session(manager: SessionManager) -> str:
    """A joined multi-map session, toss not yet done."""
    session_id = manager.create_session("multi-map", "Alpha")
    manager.join_session(session_id, "Beta")
    return session_id


@pytest.fixture
def tossed_session(manager: SessionManager, multi_map_session: str) -> str:
    """A multi-map session after the toss; A holds the turn."""
    manager.handle_toss(multi_map_session, "heads")
    return multi_map_session


@pytest.fixture
def draft_session() -> DraftSession:
    """A bare session over the first seven catalog maps, toss done, A to act."""
    return DraftSession(
        id="test_session",
        match_format=MatchFormat.MULTI_MAP,
        candidates=[definition.to_candidate() for definition in MAP_CATALOG[:7]],
        current_turn=PartyLabel.A,
        toss_winner=PartyLabel.A,
        toss_loser=PartyLabel.B,
        toss_completed=True,
        party_a=Party(name="Alpha"),
        party_b=Party(name="Beta"),
    )
