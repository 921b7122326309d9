"""
Tests for WagerStatsService: stats, leaderboard, and history.
"""

from services.wager_stats_service import WagerStatsService
from tests.conftest import ALICE_ID, BOB_ID, CREATOR_ID, OUTSIDER_ID


def _play(create_wager, wager_service, winner, side_a=ALICE_ID, side_b=BOB_ID, **overrides):
    wager = create_wager(**overrides)
    wager_service.join_side(wager.wager_id, side_a, "A", display_name="Alice" if side_a == ALICE_ID else None)
    wager_service.join_side(wager.wager_id, side_b, "B", display_name="Bob" if side_b == BOB_ID else None)
    assert wager_service.resolve(wager.wager_id, winner).success
    return wager


class TestUserStats:
    def test_unknown_user_gets_zeroed_stats(self, wager_stats_service):
        stats = wager_stats_service.get_user_stats(OUTSIDER_ID)

        assert stats.user_id == OUTSIDER_ID
        assert stats.total_wagers == 0
        assert stats.win_rate == 0.0
        assert stats.average_stake == 0.0

    def test_stats_accumulate(self, wager_stats_service, create_wager, wager_service):
        _play(create_wager, wager_service, "A")  # Alice +150
        _play(create_wager, wager_service, "B")  # Alice -100

        stats = wager_stats_service.get_user_stats(ALICE_ID)

        assert stats.display_name == "Alice"
        assert stats.total_wagers == 2
        assert stats.wins == 1
        assert stats.losses == 1
        assert stats.win_rate == 50.0
        assert stats.total_staked == 200
        assert stats.total_returned == 150
        assert stats.total_lost == 100
        assert stats.net_profit == 50
        assert stats.net_profit == stats.total_returned - stats.total_lost

    def test_pot_is_zero_sum(self, wager_stats_service, create_wager, wager_service):
        _play(create_wager, wager_service, "B", side_a_odds="+300", side_b_odds="-150")

        alice = wager_stats_service.get_user_stats(ALICE_ID)
        bob = wager_stats_service.get_user_stats(BOB_ID)
        assert alice.net_profit + bob.net_profit == 0


class TestLeaderboard:
    def test_orders_by_net_profit(self, wager_stats_service, create_wager, wager_service):
        _play(create_wager, wager_service, "A")
        _play(create_wager, wager_service, "A", side_a=CREATOR_ID, side_b=OUTSIDER_ID, base_amount=10)

        board = wager_stats_service.get_leaderboard()

        assert [s.user_id for s in board] == [ALICE_ID, CREATOR_ID, OUTSIDER_ID, BOB_ID]
        assert board[0].net_profit == 150

    def test_respects_configured_size(self, user_stats_repository, wager_repository, create_wager, wager_service):
        service = WagerStatsService(user_stats_repository, wager_repository, leaderboard_size=1)
        _play(create_wager, wager_service, "A")

        assert len(service.get_leaderboard()) == 1
        assert len(service.get_leaderboard(limit=5)) == 2

    def test_empty_when_nothing_resolved(self, wager_stats_service, create_wager):
        create_wager()
        assert wager_stats_service.get_leaderboard() == []


class TestHistory:
    def test_history_entries_from_each_side(self, wager_stats_service, create_wager, wager_service):
        wager = _play(create_wager, wager_service, "B")

        alice_entry = wager_stats_service.get_user_history(ALICE_ID)[0]
        assert alice_entry.wager.wager_id == wager.wager_id
        assert alice_entry.user_side == "A"
        assert alice_entry.won is False
        assert alice_entry.profit == -100
        assert alice_entry.opponent_id == BOB_ID
        assert alice_entry.opponent_name == "Bob"

        bob_entry = wager_stats_service.get_user_history(BOB_ID)[0]
        assert bob_entry.won is True
        assert bob_entry.profit == 100
        assert bob_entry.opponent_name == "Alice"

    def test_history_skips_open_wagers_and_honours_limit(
        self, user_stats_repository, wager_repository, create_wager, wager_service, active_wager
    ):
        _play(create_wager, wager_service, "A")
        _play(create_wager, wager_service, "A")
        service = WagerStatsService(user_stats_repository, wager_repository, history_limit=1)

        assert len(service.get_user_history(ALICE_ID)) == 1
        entries = service.get_user_history(ALICE_ID, limit=10)
        assert len(entries) == 2
        assert active_wager.wager_id not in {e.wager.wager_id for e in entries}

    def test_no_history(self, wager_stats_service):
        assert wager_stats_service.get_user_history(OUTSIDER_ID) == []
