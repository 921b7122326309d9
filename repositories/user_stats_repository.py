"""
Repository for users and their aggregate wagering statistics.
"""

from repositories.base_repository import BaseRepository
from repositories.interfaces import IUserStatsRepository


def record_wager_result(cursor, user_id: int, won: bool, staked: float, profit: float) -> None:
    """
    Apply one resolved wager to a user's stats using an open cursor.

    Meant to run inside the resolution transaction so both participants
    are updated together with the wager status.

    Args:
        cursor: Cursor inside an active transaction
        user_id: Participant to update
        won: Whether the participant won
        staked: The participant's persisted stake
        profit: Winnings if won, otherwise the negative stake
    """
    cursor.execute("INSERT OR IGNORE INTO users (user_id) VALUES (?)", (user_id,))
    if won:
        cursor.execute(
            """
            UPDATE users
            SET total_wagers = total_wagers + 1,
                wins = wins + 1,
                total_staked = total_staked + ?,
                total_returned = total_returned + ?,
                net_profit = net_profit + ?,
                updated_at = CURRENT_TIMESTAMP
            WHERE user_id = ?
            """,
            (staked, profit, profit, user_id),
        )
    else:
        cursor.execute(
            """
            UPDATE users
            SET total_wagers = total_wagers + 1,
                losses = losses + 1,
                total_staked = total_staked + ?,
                total_lost = total_lost + ?,
                net_profit = net_profit + ?,
                updated_at = CURRENT_TIMESTAMP
            WHERE user_id = ?
            """,
            (staked, abs(profit), profit, user_id),
        )


def upsert_user_with_cursor(cursor, user_id: int, display_name: str | None) -> None:
    """Create the user row or refresh its display name using an open cursor."""
    cursor.execute(
        """
        INSERT INTO users (user_id, display_name)
        VALUES (?, ?)
        ON CONFLICT(user_id) DO UPDATE SET
            display_name = COALESCE(excluded.display_name, users.display_name),
            updated_at = CURRENT_TIMESTAMP
        """,
        (user_id, display_name),
    )


class UserStatsRepository(BaseRepository, IUserStatsRepository):
    """
    Handles the users table: identity (display name) and running stats.

    Stats are only ever incremented by a resolution commit; nothing here
    rewrites past results.
    """

    def upsert_user(self, user_id: int, display_name: str | None) -> None:
        with self.connection() as conn:
            upsert_user_with_cursor(conn.cursor(), user_id, display_name)

    def get_user_stats(self, user_id: int) -> dict | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM users WHERE user_id = ?", (user_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_leaderboard(self, limit: int = 10) -> list[dict]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM users
                WHERE total_wagers > 0
                ORDER BY net_profit DESC, wins DESC, user_id ASC
                LIMIT ?
                """,
                (limit,),
            )
            return [dict(row) for row in cursor.fetchall()]
