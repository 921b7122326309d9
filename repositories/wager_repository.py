"""
Repository for wagers and their lifecycle transitions.
"""

from __future__ import annotations

from repositories.base_repository import BaseRepository, logger
from repositories.interfaces import IWagerRepository
from repositories.user_stats_repository import record_wager_result, upsert_user_with_cursor
from services import error_codes

_WAGER_SELECT = """
    SELECT w.*,
           uc.display_name AS creator_name,
           ua.display_name AS side_a_name,
           ub.display_name AS side_b_name
    FROM wagers w
    LEFT JOIN users uc ON w.creator_id = uc.user_id
    LEFT JOIN users ua ON w.side_a_user_id = ua.user_id
    LEFT JOIN users ub ON w.side_b_user_id = ub.user_id
"""


def clear_consensus_state(cursor, wager_id: int) -> None:
    """Drop outstanding requests and votes for a wager that just closed."""
    cursor.execute("DELETE FROM consensus_requests WHERE wager_id = ?", (wager_id,))
    cursor.execute("DELETE FROM consensus_votes WHERE wager_id = ?", (wager_id,))


def votes_agree(cursor, wager, choice: str) -> bool:
    """True when both participants' stored votes equal choice."""
    cursor.execute(
        "SELECT user_id, choice FROM consensus_votes WHERE wager_id = ?",
        (wager["wager_id"],),
    )
    votes = {row["user_id"]: row["choice"] for row in cursor.fetchall()}
    return all(
        votes.get(wager[column]) == choice for column in ("side_a_user_id", "side_b_user_id")
    )


class WagerRepository(BaseRepository, IWagerRepository):
    """
    Handles CRUD and state transitions for the wagers table.

    Every transition runs in a single atomic_transaction() guarded by a
    conditional UPDATE on the expected status, so concurrent callers
    cannot both apply it.
    """

    VALID_SIDES = {"A", "B"}
    VALID_STATUSES = {"pending", "active", "resolved", "cancelled"}

    def create_wager(
        self,
        creator_id: int,
        category: str,
        description: str,
        base_amount: float,
        side_a_description: str,
        side_a_odds: float,
        side_a_stake: float,
        side_a_to_win: float,
        side_b_description: str,
        side_b_odds: float,
        side_b_stake: float,
        side_b_to_win: float,
        guild_id: int | None = None,
        channel_id: int | None = None,
        home_team: str | None = None,
        away_team: str | None = None,
        player_name: str | None = None,
        details: str | None = None,
        created_at: int | None = None,
    ) -> int:
        """Insert a pending wager with precomputed stakes and return its ID."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("INSERT OR IGNORE INTO users (user_id) VALUES (?)", (creator_id,))
            cursor.execute(
                """
                INSERT INTO wagers (
                    guild_id, creator_id, category, description, base_amount,
                    side_a_description, side_a_odds, side_a_stake, side_a_to_win,
                    side_b_description, side_b_odds, side_b_stake, side_b_to_win,
                    status, channel_id, home_team, away_team, player_name, details,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 'pending', ?, ?, ?, ?, ?, ?)
                """,
                (
                    self.normalize_guild_id(guild_id),
                    creator_id,
                    category,
                    description,
                    base_amount,
                    side_a_description,
                    side_a_odds,
                    side_a_stake,
                    side_a_to_win,
                    side_b_description,
                    side_b_odds,
                    side_b_stake,
                    side_b_to_win,
                    channel_id,
                    home_team,
                    away_team,
                    player_name,
                    details,
                    created_at,
                ),
            )
            return cursor.lastrowid

    def get_wager(self, wager_id: int) -> dict | None:
        """Get a wager by ID, with creator and participant display names."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f"{_WAGER_SELECT} WHERE w.wager_id = ?", (wager_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_wager_by_message_id(self, message_id: int) -> dict | None:
        """Find the wager rendered in a given Discord message."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f"{_WAGER_SELECT} WHERE w.message_id = ?", (message_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def update_wager_message(self, wager_id: int, channel_id: int | None, message_id: int) -> None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE wagers SET channel_id = COALESCE(?, channel_id), message_id = ? WHERE wager_id = ?",
                (channel_id, message_id, wager_id),
            )

    def get_active_and_pending(self, guild_id: int | None = None, limit: int | None = None) -> list[dict]:
        """
        Get open wagers, newest first.

        Args:
            guild_id: Restrict to one guild (None for all guilds)
            limit: Maximum rows to return (None for no limit)
        """
        query = f"{_WAGER_SELECT} WHERE w.status IN ('pending', 'active')"
        params: list = []
        if guild_id is not None:
            query += " AND w.guild_id = ?"
            params.append(self.normalize_guild_id(guild_id))
        query += " ORDER BY w.created_at DESC, w.wager_id DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, tuple(params))
            return [dict(row) for row in cursor.fetchall()]

    def get_user_history(self, user_id: int, limit: int = 20) -> list[dict]:
        """Get resolved wagers a user took part in, most recently resolved first."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                {_WAGER_SELECT}
                WHERE (w.side_a_user_id = ? OR w.side_b_user_id = ?)
                  AND w.status = 'resolved'
                ORDER BY w.resolved_at DESC, w.wager_id DESC
                LIMIT ?
                """,
                (user_id, user_id, limit),
            )
            return [dict(row) for row in cursor.fetchall()]

    def join_side_atomic(
        self,
        wager_id: int,
        user_id: int,
        side: str,
        now: int,
        display_name: str | None = None,
    ) -> dict:
        """
        Take a side of a pending wager, activating it when both sides are filled.

        Both the side fill and the activation are conditional updates inside
        one transaction, so two users racing for the two sides produce exactly
        one activation and two users racing for one side produce one winner.

        Returns:
            {"success": True, "activated": bool} or a failed outcome with
            reason not_found / not_pending / side_taken / self_wager
        """
        if side not in self.VALID_SIDES:
            raise ValueError(f"Invalid side: {side}")
        column = "side_a_user_id" if side == "A" else "side_b_user_id"
        other_column = "side_b_user_id" if side == "A" else "side_a_user_id"

        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT status, {column} AS taken_by, {other_column} AS other_user FROM wagers WHERE wager_id = ?",
                (wager_id,),
            )
            row = cursor.fetchone()
            if not row:
                return self.outcome_fail(error_codes.NOT_FOUND, "Wager not found.")
            if row["status"] != "pending":
                return self.outcome_fail(
                    error_codes.NOT_PENDING, f"Wager #{wager_id} is no longer open ({row['status']})."
                )
            if row["taken_by"] is not None:
                return self.outcome_fail(error_codes.SIDE_TAKEN, f"Side {side} is already taken.")
            if row["other_user"] == user_id:
                return self.outcome_fail(error_codes.SELF_WAGER, "You can't take both sides of a wager.")

            upsert_user_with_cursor(cursor, user_id, display_name)
            cursor.execute(
                f"UPDATE wagers SET {column} = ? WHERE wager_id = ? AND {column} IS NULL",
                (user_id, wager_id),
            )
            if cursor.rowcount == 0:
                return self.outcome_fail(error_codes.SIDE_TAKEN, f"Side {side} is already taken.")

            cursor.execute(
                """
                UPDATE wagers
                SET status = 'active', activated_at = ?
                WHERE wager_id = ? AND status = 'pending'
                  AND side_a_user_id IS NOT NULL AND side_b_user_id IS NOT NULL
                """,
                (now, wager_id),
            )
            activated = cursor.rowcount == 1

        if activated:
            logger.info(f"Wager #{wager_id} activated by user {user_id} taking side {side}")
        return {"success": True, "activated": activated}

    def resolve_wager_atomic(
        self, wager_id: int, winning_side: str, now: int, require_votes: bool = False
    ) -> dict:
        """
        Resolve an active wager and record stats for both participants.

        Status change, both stat updates and the cleanup of consensus state
        commit together or not at all. Stakes come from the wager row as
        persisted at creation.

        With require_votes, both participants' stored votes are re-read under
        the write lock and must still name winning_side. A vote changed after
        the caller tallied the pool fails with vote_changed.

        Returns:
            {"success": True, "winner_id", "loser_id", "winner_stake",
             "winner_to_win", "loser_stake"} or a failed outcome with reason
            not_found / not_active / vote_changed
        """
        if winning_side not in self.VALID_SIDES:
            raise ValueError(f"Invalid side: {winning_side}")

        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM wagers WHERE wager_id = ?", (wager_id,))
            wager = cursor.fetchone()
            if not wager:
                return self.outcome_fail(error_codes.NOT_FOUND, "Wager not found.")
            if require_votes and wager["status"] == "active" and not votes_agree(cursor, wager, winning_side):
                return self.outcome_fail(
                    error_codes.VOTE_CHANGED, f"Votes on wager #{wager_id} no longer agree on {winning_side}."
                )

            cursor.execute(
                """
                UPDATE wagers
                SET status = 'resolved', winning_side = ?, resolved_at = ?
                WHERE wager_id = ? AND status = 'active'
                """,
                (winning_side, now, wager_id),
            )
            if cursor.rowcount == 0:
                return self.outcome_fail(
                    error_codes.NOT_ACTIVE, f"Wager #{wager_id} is not active ({wager['status']})."
                )

            win, lose = ("a", "b") if winning_side == "A" else ("b", "a")
            winner_id = wager[f"side_{win}_user_id"]
            loser_id = wager[f"side_{lose}_user_id"]
            winner_stake = wager[f"side_{win}_stake"]
            winner_to_win = wager[f"side_{win}_to_win"]
            loser_stake = wager[f"side_{lose}_stake"]

            record_wager_result(cursor, winner_id, won=True, staked=winner_stake, profit=winner_to_win)
            record_wager_result(cursor, loser_id, won=False, staked=loser_stake, profit=-loser_stake)
            clear_consensus_state(cursor, wager_id)

        logger.info(f"Wager #{wager_id} resolved: side {winning_side} wins ({winner_id} over {loser_id})")
        return {
            "success": True,
            "winner_id": winner_id,
            "loser_id": loser_id,
            "winner_stake": winner_stake,
            "winner_to_win": winner_to_win,
            "loser_stake": loser_stake,
        }

    def cancel_pending_atomic(self, wager_id: int, requester_id: int, now: int) -> dict:
        """
        Cancel a wager that has not been activated yet.

        Only the creator or a user who already joined a side may cancel.
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT status, creator_id, side_a_user_id, side_b_user_id FROM wagers WHERE wager_id = ?",
                (wager_id,),
            )
            wager = cursor.fetchone()
            if not wager:
                return self.outcome_fail(error_codes.NOT_FOUND, "Wager not found.")
            if wager["status"] != "pending":
                return self.outcome_fail(
                    error_codes.NOT_PENDING, f"Wager #{wager_id} is not pending ({wager['status']})."
                )
            allowed = {wager["creator_id"], wager["side_a_user_id"], wager["side_b_user_id"]}
            if requester_id not in allowed:
                return self.outcome_fail(
                    error_codes.UNAUTHORIZED, "Only the creator or a participant can cancel this wager."
                )

            cursor.execute(
                "UPDATE wagers SET status = 'cancelled', cancelled_at = ? WHERE wager_id = ? AND status = 'pending'",
                (now, wager_id),
            )
            if cursor.rowcount == 0:
                return self.outcome_fail(error_codes.NOT_PENDING, f"Wager #{wager_id} is not pending.")

        logger.info(f"Pending wager #{wager_id} cancelled by {requester_id}")
        return {"success": True}

    def cancel_active_atomic(self, wager_id: int, now: int, require_votes: bool = False) -> dict:
        """
        Cancel an active wager after both participants agreed. No stats change.

        With require_votes, both stored votes must still be cancel under the
        write lock, otherwise the outcome fails with vote_changed.
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            if require_votes:
                cursor.execute(
                    "SELECT wager_id, status, side_a_user_id, side_b_user_id FROM wagers WHERE wager_id = ?",
                    (wager_id,),
                )
                wager = cursor.fetchone()
                if wager and wager["status"] == "active" and not votes_agree(cursor, wager, "cancel"):
                    return self.outcome_fail(
                        error_codes.VOTE_CHANGED, f"Votes on wager #{wager_id} no longer agree on cancel."
                    )
            cursor.execute(
                "UPDATE wagers SET status = 'cancelled', cancelled_at = ? WHERE wager_id = ? AND status = 'active'",
                (now, wager_id),
            )
            if cursor.rowcount == 0:
                cursor.execute("SELECT status FROM wagers WHERE wager_id = ?", (wager_id,))
                row = cursor.fetchone()
                if not row:
                    return self.outcome_fail(error_codes.NOT_FOUND, "Wager not found.")
                return self.outcome_fail(
                    error_codes.NOT_ACTIVE, f"Wager #{wager_id} is not active ({row['status']})."
                )
            clear_consensus_state(cursor, wager_id)

        logger.info(f"Active wager #{wager_id} cancelled by agreement")
        return {"success": True}
