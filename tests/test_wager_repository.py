"""
Tests for WagerRepository transitions and UserStatsRepository bookkeeping.
"""

import threading

import pytest

from services import error_codes
from tests.conftest import ALICE_ID, BOB_ID, CREATOR_ID, OUTSIDER_ID, TEST_GUILD_ID, TEST_GUILD_ID_SECONDARY

NOW = 1_700_000_000


def _insert_wager(repo, guild_id=TEST_GUILD_ID, created_at=NOW, **overrides):
    """Insert a 100-base wager: A stakes 100 to win 150, B stakes 150 to win 100."""
    params = dict(
        creator_id=CREATOR_ID,
        category="game",
        description="Test wager",
        base_amount=100,
        side_a_description="Away",
        side_a_odds=2.5,
        side_a_stake=100,
        side_a_to_win=150,
        side_b_description="Home",
        side_b_odds=1.5,
        side_b_stake=150,
        side_b_to_win=100,
        guild_id=guild_id,
        created_at=created_at,
    )
    params.update(overrides)
    return repo.create_wager(**params)


def _activate(repo, wager_id):
    assert repo.join_side_atomic(wager_id, ALICE_ID, "A", NOW)["success"]
    result = repo.join_side_atomic(wager_id, BOB_ID, "B", NOW)
    assert result["activated"] is True


class TestCreateAndRead:
    def test_create_stores_pending_wager(self, wager_repository):
        wager_id = _insert_wager(wager_repository, home_team="Bears", away_team="Packers")

        row = wager_repository.get_wager(wager_id)
        assert row["status"] == "pending"
        assert row["side_a_stake"] == 100
        assert row["side_b_to_win"] == 100
        assert row["side_a_user_id"] is None
        assert row["home_team"] == "Bears"
        assert row["guild_id"] == TEST_GUILD_ID

    def test_missing_wager_returns_none(self, wager_repository):
        assert wager_repository.get_wager(999) is None

    def test_lookup_by_message_id(self, wager_repository):
        wager_id = _insert_wager(wager_repository)
        wager_repository.update_wager_message(wager_id, 55, 777)

        row = wager_repository.get_wager_by_message_id(777)
        assert row["wager_id"] == wager_id
        assert row["channel_id"] == 55

    def test_joined_display_names(self, wager_repository, user_stats_repository):
        user_stats_repository.upsert_user(CREATOR_ID, "Creator")
        wager_id = _insert_wager(wager_repository)
        wager_repository.join_side_atomic(wager_id, ALICE_ID, "A", NOW, display_name="Alice")

        row = wager_repository.get_wager(wager_id)
        assert row["creator_name"] == "Creator"
        assert row["side_a_name"] == "Alice"
        assert row["side_b_name"] is None


class TestJoinSide:
    def test_first_join_keeps_wager_pending(self, wager_repository):
        wager_id = _insert_wager(wager_repository)

        result = wager_repository.join_side_atomic(wager_id, ALICE_ID, "A", NOW)

        assert result == {"success": True, "activated": False}
        assert wager_repository.get_wager(wager_id)["status"] == "pending"

    def test_second_join_activates(self, wager_repository):
        wager_id = _insert_wager(wager_repository)
        wager_repository.join_side_atomic(wager_id, ALICE_ID, "A", NOW)

        result = wager_repository.join_side_atomic(wager_id, BOB_ID, "B", NOW + 5)

        assert result["activated"] is True
        row = wager_repository.get_wager(wager_id)
        assert row["status"] == "active"
        assert row["activated_at"] == NOW + 5

    def test_taken_side_is_rejected(self, wager_repository):
        wager_id = _insert_wager(wager_repository)
        wager_repository.join_side_atomic(wager_id, ALICE_ID, "A", NOW)

        result = wager_repository.join_side_atomic(wager_id, BOB_ID, "A", NOW)

        assert result["success"] is False
        assert result["reason"] == error_codes.SIDE_TAKEN
        assert wager_repository.get_wager(wager_id)["side_a_user_id"] == ALICE_ID

    def test_same_user_cannot_take_both_sides(self, wager_repository):
        wager_id = _insert_wager(wager_repository)
        wager_repository.join_side_atomic(wager_id, ALICE_ID, "A", NOW)

        result = wager_repository.join_side_atomic(wager_id, ALICE_ID, "B", NOW)

        assert result["reason"] == error_codes.SELF_WAGER
        assert wager_repository.get_wager(wager_id)["status"] == "pending"

    def test_creator_may_take_a_side(self, wager_repository):
        wager_id = _insert_wager(wager_repository)
        assert wager_repository.join_side_atomic(wager_id, CREATOR_ID, "B", NOW)["success"]

    def test_join_active_wager_is_not_pending(self, wager_repository):
        wager_id = _insert_wager(wager_repository)
        _activate(wager_repository, wager_id)

        result = wager_repository.join_side_atomic(wager_id, OUTSIDER_ID, "A", NOW)
        assert result["reason"] == error_codes.NOT_PENDING

    def test_join_missing_wager(self, wager_repository):
        assert wager_repository.join_side_atomic(404, ALICE_ID, "A", NOW)["reason"] == error_codes.NOT_FOUND

    def test_invalid_side_raises(self, wager_repository):
        wager_id = _insert_wager(wager_repository)
        with pytest.raises(ValueError):
            wager_repository.join_side_atomic(wager_id, ALICE_ID, "C", NOW)

    def test_concurrent_joins_activate_exactly_once(self, wager_repository):
        """Two users racing for opposite sides produce a single activation."""
        for _ in range(5):
            wager_id = _insert_wager(wager_repository)
            barrier = threading.Barrier(2)
            results = {}

            def join(user_id, side):
                barrier.wait()
                results[user_id] = wager_repository.join_side_atomic(wager_id, user_id, side, NOW)

            threads = [
                threading.Thread(target=join, args=(ALICE_ID, "A")),
                threading.Thread(target=join, args=(BOB_ID, "B")),
            ]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            assert all(r["success"] for r in results.values())
            assert sum(1 for r in results.values() if r["activated"]) == 1
            assert wager_repository.get_wager(wager_id)["status"] == "active"

    def test_concurrent_joins_same_side_one_winner(self, wager_repository):
        wager_id = _insert_wager(wager_repository)
        barrier = threading.Barrier(2)
        results = []

        def join(user_id):
            barrier.wait()
            results.append(wager_repository.join_side_atomic(wager_id, user_id, "A", NOW))

        threads = [threading.Thread(target=join, args=(uid,)) for uid in (ALICE_ID, BOB_ID)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(r["success"] for r in results) == [False, True]
        loser = next(r for r in results if not r["success"])
        assert loser["reason"] == error_codes.SIDE_TAKEN


class TestResolve:
    def test_resolve_records_stats_from_persisted_stakes(self, wager_repository, user_stats_repository):
        """Favorite (stake 150, to-win 100) wins."""
        wager_id = _insert_wager(wager_repository)
        _activate(wager_repository, wager_id)

        result = wager_repository.resolve_wager_atomic(wager_id, "B", NOW + 60)

        assert result["success"] is True
        assert result["winner_id"] == BOB_ID
        assert result["loser_id"] == ALICE_ID

        row = wager_repository.get_wager(wager_id)
        assert row["status"] == "resolved"
        assert row["winning_side"] == "B"
        assert row["resolved_at"] == NOW + 60

        winner = user_stats_repository.get_user_stats(BOB_ID)
        assert winner["wins"] == 1
        assert winner["total_wagers"] == 1
        assert winner["total_staked"] == 150
        assert winner["total_returned"] == 100
        assert winner["net_profit"] == 100

        loser = user_stats_repository.get_user_stats(ALICE_ID)
        assert loser["losses"] == 1
        assert loser["total_staked"] == 100
        assert loser["total_lost"] == 100
        assert loser["net_profit"] == -100

    def test_resolve_pending_wager_is_not_active(self, wager_repository, user_stats_repository):
        wager_id = _insert_wager(wager_repository)

        result = wager_repository.resolve_wager_atomic(wager_id, "A", NOW)

        assert result["reason"] == error_codes.NOT_ACTIVE
        assert wager_repository.get_wager(wager_id)["status"] == "pending"

    def test_second_resolve_does_not_double_pay(self, wager_repository, user_stats_repository):
        wager_id = _insert_wager(wager_repository)
        _activate(wager_repository, wager_id)
        wager_repository.resolve_wager_atomic(wager_id, "A", NOW)

        again = wager_repository.resolve_wager_atomic(wager_id, "A", NOW)

        assert again["reason"] == error_codes.NOT_ACTIVE
        assert user_stats_repository.get_user_stats(ALICE_ID)["wins"] == 1

    def test_resolve_missing_wager(self, wager_repository):
        assert wager_repository.resolve_wager_atomic(404, "A", NOW)["reason"] == error_codes.NOT_FOUND

    def test_resolve_clears_consensus_state(self, wager_repository, consensus_repository):
        wager_id = _insert_wager(wager_repository)
        _activate(wager_repository, wager_id)
        consensus_repository.cast_vote_atomic(wager_id, ALICE_ID, "A", NOW)
        consensus_repository.create_request_atomic(wager_id, ALICE_ID, "resolve", "A", NOW, 86400)

        wager_repository.resolve_wager_atomic(wager_id, "A", NOW)

        assert consensus_repository.get_votes(wager_id) == {}
        assert consensus_repository.get_active_request(wager_id, NOW) is None

    def test_require_votes_commits_when_votes_agree(self, wager_repository, consensus_repository):
        wager_id = _insert_wager(wager_repository)
        _activate(wager_repository, wager_id)
        consensus_repository.cast_vote_atomic(wager_id, ALICE_ID, "B", NOW)
        consensus_repository.cast_vote_atomic(wager_id, BOB_ID, "B", NOW)

        result = wager_repository.resolve_wager_atomic(wager_id, "B", NOW, require_votes=True)

        assert result["success"] is True
        assert wager_repository.get_wager(wager_id)["winning_side"] == "B"

    def test_require_votes_rejects_switched_vote(self, wager_repository, consensus_repository, user_stats_repository):
        """A participant who moved to cancel after the tally blocks the resolve."""
        wager_id = _insert_wager(wager_repository)
        _activate(wager_repository, wager_id)
        consensus_repository.cast_vote_atomic(wager_id, ALICE_ID, "cancel", NOW)
        consensus_repository.cast_vote_atomic(wager_id, BOB_ID, "A", NOW)

        result = wager_repository.resolve_wager_atomic(wager_id, "A", NOW, require_votes=True)

        assert result["reason"] == error_codes.VOTE_CHANGED
        assert wager_repository.get_wager(wager_id)["status"] == "active"
        assert user_stats_repository.get_user_stats(ALICE_ID)["total_wagers"] == 0
        assert consensus_repository.get_votes(wager_id) == {ALICE_ID: "cancel", BOB_ID: "A"}

    def test_require_votes_rejects_missing_vote(self, wager_repository, consensus_repository):
        wager_id = _insert_wager(wager_repository)
        _activate(wager_repository, wager_id)
        consensus_repository.cast_vote_atomic(wager_id, BOB_ID, "A", NOW)

        result = wager_repository.resolve_wager_atomic(wager_id, "A", NOW, require_votes=True)

        assert result["reason"] == error_codes.VOTE_CHANGED

    def test_require_votes_on_closed_wager_is_not_active(self, wager_repository):
        wager_id = _insert_wager(wager_repository)
        _activate(wager_repository, wager_id)
        wager_repository.resolve_wager_atomic(wager_id, "A", NOW)

        result = wager_repository.resolve_wager_atomic(wager_id, "A", NOW, require_votes=True)

        assert result["reason"] == error_codes.NOT_ACTIVE


class TestCancel:
    def test_creator_cancels_pending(self, wager_repository):
        wager_id = _insert_wager(wager_repository)

        assert wager_repository.cancel_pending_atomic(wager_id, CREATOR_ID, NOW)["success"]

        row = wager_repository.get_wager(wager_id)
        assert row["status"] == "cancelled"
        assert row["cancelled_at"] == NOW
        assert row["resolved_at"] is None

    def test_joined_participant_cancels_pending(self, wager_repository):
        wager_id = _insert_wager(wager_repository)
        wager_repository.join_side_atomic(wager_id, ALICE_ID, "A", NOW)

        assert wager_repository.cancel_pending_atomic(wager_id, ALICE_ID, NOW)["success"]

    def test_outsider_cannot_cancel(self, wager_repository):
        wager_id = _insert_wager(wager_repository)

        result = wager_repository.cancel_pending_atomic(wager_id, OUTSIDER_ID, NOW)

        assert result["reason"] == error_codes.UNAUTHORIZED
        assert wager_repository.get_wager(wager_id)["status"] == "pending"

    def test_cancel_pending_on_active_is_not_pending(self, wager_repository):
        wager_id = _insert_wager(wager_repository)
        _activate(wager_repository, wager_id)

        result = wager_repository.cancel_pending_atomic(wager_id, CREATOR_ID, NOW)
        assert result["reason"] == error_codes.NOT_PENDING

    def test_cancel_active_leaves_stats_untouched(self, wager_repository, user_stats_repository):
        wager_id = _insert_wager(wager_repository)
        _activate(wager_repository, wager_id)

        assert wager_repository.cancel_active_atomic(wager_id, NOW)["success"]

        assert wager_repository.get_wager(wager_id)["status"] == "cancelled"
        assert user_stats_repository.get_user_stats(ALICE_ID)["total_wagers"] == 0

    def test_cancel_active_on_pending_is_not_active(self, wager_repository):
        wager_id = _insert_wager(wager_repository)
        assert wager_repository.cancel_active_atomic(wager_id, NOW)["reason"] == error_codes.NOT_ACTIVE

    def test_cancel_active_require_votes(self, wager_repository, consensus_repository):
        wager_id = _insert_wager(wager_repository)
        _activate(wager_repository, wager_id)
        consensus_repository.cast_vote_atomic(wager_id, ALICE_ID, "cancel", NOW)
        consensus_repository.cast_vote_atomic(wager_id, BOB_ID, "B", NOW)

        result = wager_repository.cancel_active_atomic(wager_id, NOW, require_votes=True)
        assert result["reason"] == error_codes.VOTE_CHANGED
        assert wager_repository.get_wager(wager_id)["status"] == "active"

        consensus_repository.cast_vote_atomic(wager_id, BOB_ID, "cancel", NOW)

        assert wager_repository.cancel_active_atomic(wager_id, NOW, require_votes=True)["success"]
        assert consensus_repository.get_votes(wager_id) == {}


class TestListings:
    def test_active_and_pending_excludes_closed(self, wager_repository):
        pending = _insert_wager(wager_repository, created_at=NOW)
        active = _insert_wager(wager_repository, created_at=NOW + 1)
        _activate(wager_repository, active)
        closed = _insert_wager(wager_repository, created_at=NOW + 2)
        wager_repository.cancel_pending_atomic(closed, CREATOR_ID, NOW)

        ids = [row["wager_id"] for row in wager_repository.get_active_and_pending()]
        assert ids == [active, pending]

    def test_active_and_pending_filters_by_guild_and_limit(self, wager_repository):
        _insert_wager(wager_repository, guild_id=TEST_GUILD_ID)
        _insert_wager(wager_repository, guild_id=TEST_GUILD_ID)
        _insert_wager(wager_repository, guild_id=TEST_GUILD_ID_SECONDARY)

        assert len(wager_repository.get_active_and_pending(TEST_GUILD_ID)) == 2
        assert len(wager_repository.get_active_and_pending(TEST_GUILD_ID, limit=1)) == 1
        assert len(wager_repository.get_active_and_pending()) == 3

    def test_user_history_only_resolved_newest_first(self, wager_repository):
        first = _insert_wager(wager_repository)
        _activate(wager_repository, first)
        wager_repository.resolve_wager_atomic(first, "A", NOW + 10)
        second = _insert_wager(wager_repository)
        _activate(wager_repository, second)
        wager_repository.resolve_wager_atomic(second, "B", NOW + 20)
        open_one = _insert_wager(wager_repository)
        _activate(wager_repository, open_one)

        ids = [row["wager_id"] for row in wager_repository.get_user_history(ALICE_ID)]
        assert ids == [second, first]
        assert wager_repository.get_user_history(OUTSIDER_ID) == []
        assert len(wager_repository.get_user_history(BOB_ID, limit=1)) == 1


class TestUserStatsRepository:
    def test_upsert_keeps_name_when_none_given(self, user_stats_repository):
        user_stats_repository.upsert_user(ALICE_ID, "Alice")
        user_stats_repository.upsert_user(ALICE_ID, None)

        assert user_stats_repository.get_user_stats(ALICE_ID)["display_name"] == "Alice"

    def test_upsert_refreshes_name(self, user_stats_repository):
        user_stats_repository.upsert_user(ALICE_ID, "Alice")
        user_stats_repository.upsert_user(ALICE_ID, "Alice2")

        assert user_stats_repository.get_user_stats(ALICE_ID)["display_name"] == "Alice2"

    def test_leaderboard_orders_by_net_profit_and_skips_idle_users(
        self, wager_repository, user_stats_repository
    ):
        user_stats_repository.upsert_user(OUTSIDER_ID, "Idle")
        wager_id = _insert_wager(wager_repository)
        _activate(wager_repository, wager_id)
        wager_repository.resolve_wager_atomic(wager_id, "A", NOW)

        board = user_stats_repository.get_leaderboard(10)

        assert [row["user_id"] for row in board] == [ALICE_ID, BOB_ID]
        assert board[0]["net_profit"] == 150
        assert board[1]["net_profit"] == -150
