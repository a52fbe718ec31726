"""
Tests for the session engine.

Tests:
- Session lifecycle (create, join, cleanup)
- Toss scenarios per match format
- Ban/pick turn flow and invariants
- Broadcast listeners
- Per-session serialization under threads
"""

import threading

import pytest

from ..engine_core.action import DraftErrorCode
from ..engine_core.state import CoinFace, MatchFormat, PartyLabel, Side
from ..session import SessionManager
from ..session import manager as manager_module
from .conftest import FixedCoinRandom, HEADS


class TestCreateAndJoin:
    """Tests for session creation and joining."""

    def test_create_session(self, manager):
        session_id = manager.create_session("multi-map", "Alpha")
        session = manager.get_session(session_id)

        assert session.match_format == MatchFormat.MULTI_MAP
        assert len(session.candidates) == 7
        assert session.party_a.name == "Alpha"
        assert session.party_b.name == ""
        assert session.current_turn is None
        assert not session.toss_completed
        assert session.party_a.side is None and session.party_b.side is None

    def test_session_id_is_128_bit_hex(self, manager):
        session_id = manager.create_session("single-map", "Alpha")
        assert len(session_id) == 32
        int(session_id, 16)

    def test_create_accepts_best_of_alias(self, manager):
        session_id = manager.create_session("bo1", "Alpha")
        assert manager.get_session(session_id).match_format == MatchFormat.SINGLE_MAP

    def test_create_retries_on_id_collision(self, manager, monkeypatch):
        ids = iter(["dup", "dup", "fresh"])
        monkeypatch.setattr(manager_module, "_new_session_id", lambda: next(ids))

        assert manager.create_session("multi-map", "Alpha") == "dup"
        assert manager.create_session("multi-map", "Gamma") == "fresh"
        assert manager.get_session("dup").party_a.name == "Alpha"

    def test_join_returns_snapshot(self, manager):
        session_id = manager.create_session("multi-map", "Alpha")
        result = manager.join_session(session_id, "Beta")

        assert result.success
        assert result.new_state.party_b.name == "Beta"
        assert manager.get_session(session_id).party_b.name == "Beta"

    def test_second_join_renames(self, manager, multi_map_session):
        manager.join_session(multi_map_session, "Gamma")
        assert manager.get_session(multi_map_session).party_b.name == "Gamma"

    def test_join_unknown_session(self, manager):
        """No phantom session is created."""
        before = manager.list_sessions()
        result = manager.join_session("missing", "Beta")

        assert result.error_code == DraftErrorCode.NOT_FOUND
        assert manager.list_sessions() == before
        assert manager.get_session("missing") is None


class TestToss:
    """Tests for the coin toss."""

    def test_multi_map_heads_call_heads(self, manager, multi_map_session):
        result = manager.handle_toss(multi_map_session, "heads")

        assert result.coin == CoinFace.HEADS
        session = manager.get_session(multi_map_session)
        assert session.toss_winner == PartyLabel.A
        assert session.toss_loser == PartyLabel.B
        assert session.current_turn == PartyLabel.A

    def test_multi_map_heads_call_tails_draw(self, tails_manager):
        """Multi-map hands A the first turn even when A loses the toss."""
        session_id = tails_manager.create_session("multi-map", "Alpha")
        tails_manager.join_session(session_id, "Beta")
        result = tails_manager.handle_toss(session_id, "heads")

        assert result.coin == CoinFace.TAILS
        session = tails_manager.get_session(session_id)
        assert session.toss_winner == PartyLabel.B
        assert session.current_turn == PartyLabel.A

    @pytest.mark.parametrize("call", ["heads", "tails"])
    def test_single_map_turn_is_b(self, manager, call):
        session_id = manager.create_session("single-map", "Alpha")
        manager.handle_toss(session_id, call)
        assert manager.get_session(session_id).current_turn == PartyLabel.B

    def test_second_toss_rejected(self, manager, tossed_session):
        before = manager.get_session(tossed_session).snapshot()
        result = manager.handle_toss(tossed_session, "tails")

        assert result.error_code == DraftErrorCode.ALREADY_TOSSED
        assert manager.get_session(tossed_session).snapshot() == before

    def test_toss_with_explicit_caller(self, manager, multi_map_session):
        manager.handle_toss(multi_map_session, "heads", caller="B")
        assert manager.get_session(multi_map_session).toss_winner == PartyLabel.B

    def test_toss_without_caller_rejected(self, manager, multi_map_session):
        result = manager.handle_toss(multi_map_session, "heads", caller=None)

        assert result.error_code == DraftErrorCode.NOT_YOUR_TURN
        assert not manager.get_session(multi_map_session).toss_completed

    def test_toss_unknown_session(self, manager):
        assert manager.handle_toss("missing", "heads").error_code == DraftErrorCode.NOT_FOUND


class TestBanAndPick:
    """Tests for the ban/pick phase."""

    def test_ban_twice(self, manager, tossed_session):
        map_id = manager.get_session(tossed_session).candidates[0].id

        first = manager.ban_map(tossed_session, map_id, "A")
        second = manager.ban_map(tossed_session, map_id, "B")

        assert first.success
        assert second.error_code == DraftErrorCode.ALREADY_BANNED

    def test_pick_banned_map(self, manager, tossed_session):
        map_id = manager.get_session(tossed_session).candidates[0].id
        manager.ban_map(tossed_session, map_id, "A")

        result = manager.select_map(tossed_session, map_id, "B")
        assert result.error_code == DraftErrorCode.ALREADY_BANNED

    def test_invalid_candidate(self, manager, tossed_session):
        in_pool = {c.id for c in manager.get_session(tossed_session).candidates}
        outside = next(i for i in range(1, 12) if i not in in_pool)

        result = manager.ban_map(tossed_session, outside, "A")
        assert result.error_code == DraftErrorCode.INVALID_CANDIDATE

    def test_wrong_turn(self, manager, tossed_session):
        map_id = manager.get_session(tossed_session).candidates[0].id
        result = manager.ban_map(tossed_session, map_id, "B")

        assert result.error_code == DraftErrorCode.NOT_YOUR_TURN
        assert not manager.get_session(tossed_session).candidates[0].banned

    def test_ban_before_toss(self, manager, multi_map_session):
        map_id = manager.get_session(multi_map_session).candidates[0].id
        result = manager.ban_map(multi_map_session, map_id, "A")
        assert result.error_code == DraftErrorCode.NOT_YOUR_TURN

    def test_permissive_mode_ignores_party(self, permissive_manager):
        session_id = permissive_manager.create_session("multi-map", "Alpha")
        permissive_manager.handle_toss(session_id, "heads")
        map_id = permissive_manager.get_session(session_id).candidates[0].id

        result = permissive_manager.ban_map(session_id, map_id)
        assert result.success
        assert permissive_manager.get_session(session_id).current_turn == PartyLabel.B

    def test_full_draft_keeps_invariants(self, manager, tossed_session):
        """Bans and picks alternate; turn flips each time; lists stay disjoint."""
        candidates = [c.id for c in manager.get_session(tossed_session).candidates]
        plan = [
            ("ban", candidates[0]), ("ban", candidates[1]),
            ("pick", candidates[2]), ("pick", candidates[3]),
            ("ban", candidates[4]), ("ban", candidates[5]),
            ("pick", candidates[6]),
        ]

        for kind, map_id in plan:
            before = manager.get_session(tossed_session).current_turn
            operation = manager.ban_map if kind == "ban" else manager.select_map
            result = operation(tossed_session, map_id, before)

            assert result.success
            session = manager.get_session(tossed_session)
            assert session.current_turn == before.other
            assert len(session.candidates) == 7
            assert len(set(session.banned_order)) == len(session.banned_order)
            assert len(set(session.picked_order)) == len(session.picked_order)
            assert not set(session.banned_order) & set(session.picked_order)

        session = manager.get_session(tossed_session)
        assert session.banned_order == [candidates[i] for i in (0, 1, 4, 5)]
        assert session.picked_order == [candidates[i] for i in (2, 3, 6)]
        assert set(session.banned_order) | set(session.picked_order) == set(candidates)


class TestSelectSide:
    """Tests for side selection."""

    @pytest.mark.parametrize("party", ["A", "B"])
    @pytest.mark.parametrize("side", ["Attackers", "Defenders"])
    def test_select_then_read(self, manager, multi_map_session, party, side):
        result = manager.select_side(multi_map_session, party, side)
        assert result.success

        session = manager.get_session(multi_map_session)
        chosen = Side(side)
        label = PartyLabel(party)
        assert session.get_party(label).side == chosen
        assert session.get_party(label.other).side == chosen.complement

    def test_select_side_unknown_session(self, manager):
        result = manager.select_side("missing", "A", "Attackers")
        assert result.error_code == DraftErrorCode.NOT_FOUND


class TestListeners:
    """Tests for session-update publication."""

    @pytest.fixture
    def updates(self, manager):
        received = []
        manager.subscribe(lambda session_id, snapshot: received.append((session_id, snapshot)))
        return received

    def test_create_and_join_do_not_publish(self, manager, updates):
        session_id = manager.create_session("multi-map", "Alpha")
        manager.join_session(session_id, "Beta")
        assert updates == []

    def test_accepted_mutations_publish_snapshot(self, manager, updates, multi_map_session):
        manager.handle_toss(multi_map_session, "heads")
        map_id = manager.get_session(multi_map_session).candidates[0].id
        manager.ban_map(multi_map_session, map_id, "A")
        manager.select_side(multi_map_session, "A", "Attackers")

        assert [sid for sid, _ in updates] == [multi_map_session] * 3
        last = updates[-1][1]
        assert last["bannedOrder"] == [map_id]
        assert last["partyA"]["side"] == "Attackers"
        assert last["partyB"]["side"] == "Defenders"

    def test_rejections_do_not_publish(self, manager, tossed_session, updates):
        manager.ban_map(tossed_session, 999, "A")
        manager.handle_toss(tossed_session, "heads")
        manager.ban_map("missing", 1, "A")
        assert updates == []

    def test_failing_listener_does_not_fail_the_mutation(self, manager, tossed_session):
        received = []

        def broken(session_id, snapshot):
            raise RuntimeError("socket gone")

        manager.subscribe(broken)
        manager.subscribe(lambda session_id, snapshot: received.append(session_id))
        map_id = manager.get_session(tossed_session).candidates[0].id

        result = manager.ban_map(tossed_session, map_id, "A")

        assert result.success
        assert manager.get_session(tossed_session).banned_order == [map_id]
        # Listeners after the broken one still run
        assert received == [tossed_session]

    def test_unsubscribe(self, manager, multi_map_session):
        received = []

        def listener(session_id, snapshot):
            received.append(session_id)

        manager.subscribe(listener)
        manager.unsubscribe(listener)
        manager.handle_toss(multi_map_session, "heads")
        assert received == []


class TestCleanup:
    """Tests for session removal."""

    def test_disconnect_cleanup(self, manager, multi_map_session):
        assert manager.disconnect_cleanup(multi_map_session)
        assert manager.get_session(multi_map_session) is None
        assert not manager.disconnect_cleanup(multi_map_session)

    def test_sessions_are_isolated(self, manager, tossed_session):
        other = manager.create_session("multi-map", "Gamma")
        before = manager.get_session(other).snapshot()

        manager.ban_map(tossed_session, 999, "A")
        manager.disconnect_cleanup(tossed_session)

        assert manager.get_session(other).snapshot() == before

    def test_stale_cleanup(self, manager):
        old = manager.create_session("multi-map", "Alpha")
        kept = manager.create_session("multi-map", "Beta")
        created = manager.get_session(old).created_at

        removed = manager.cleanup_stale_sessions(60, keep={kept}, now=created + 120)

        assert removed == [old]
        assert manager.get_session(kept) is not None

    def test_end_session(self, manager, multi_map_session):
        assert manager.end_session(multi_map_session)
        assert multi_map_session not in manager.list_sessions()


class TestConcurrency:
    """Operations on one session never interleave."""

    def test_parallel_bans_of_same_map(self, store):
        engine = SessionManager(store=store, rng=FixedCoinRandom(HEADS))
        session_id = engine.create_session("multi-map", "Alpha")
        engine.handle_toss(session_id, "heads")
        map_id = engine.get_session(session_id).candidates[0].id

        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(engine.ban_map(session_id, map_id, "A"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sum(1 for r in results if r.success) == 1
        session = engine.get_session(session_id)
        assert session.banned_order == [map_id]
        assert session.current_turn == PartyLabel.B
