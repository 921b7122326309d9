"""
Read-side service for user stats, the leaderboard, and wager history.
"""

from config import WAGER_HISTORY_LIMIT, WAGER_LEADERBOARD_SIZE
from domain.models.wager import HistoryEntry, UserStats, Wager, other_side
from repositories.interfaces import IUserStatsRepository, IWagerRepository
from services.interfaces import IWagerStatsService


class WagerStatsService(IWagerStatsService):
    def __init__(
        self,
        user_stats_repo: IUserStatsRepository,
        wager_repo: IWagerRepository,
        history_limit: int | None = None,
        leaderboard_size: int | None = None,
    ):
        self.user_stats_repo = user_stats_repo
        self.wager_repo = wager_repo
        self.history_limit = history_limit if history_limit is not None else WAGER_HISTORY_LIMIT
        self.leaderboard_size = leaderboard_size if leaderboard_size is not None else WAGER_LEADERBOARD_SIZE

    def get_user_stats(self, user_id: int) -> UserStats:
        """Stats for a user; zeroes if they have never wagered."""
        row = self.user_stats_repo.get_user_stats(user_id)
        return UserStats.from_row(row) if row else UserStats(user_id=user_id)

    def get_leaderboard(self, limit: int | None = None) -> list[UserStats]:
        """Users with at least one resolved wager, best net profit first."""
        rows = self.user_stats_repo.get_leaderboard(limit or self.leaderboard_size)
        return [UserStats.from_row(row) for row in rows]

    def get_user_history(self, user_id: int, limit: int | None = None) -> list[HistoryEntry]:
        """
        Resolved wagers for a user, most recent first.

        Profit comes from the stakes persisted at creation: the winner's
        to-win amount, or minus the loser's stake.
        """
        entries = []
        for row in self.wager_repo.get_user_history(user_id, limit or self.history_limit):
            wager = Wager.from_row(row)
            user_side = wager.side_of(user_id)
            if user_side is None:
                continue
            own = wager.side(user_side)
            opponent = wager.side(other_side(user_side))
            won = wager.winning_side == user_side
            entries.append(
                HistoryEntry(
                    wager=wager,
                    user_side=user_side,
                    won=won,
                    profit=own.to_win if won else -own.stake,
                    opponent_id=opponent.user_id,
                    opponent_name=opponent.display_name,
                )
            )
        return entries
