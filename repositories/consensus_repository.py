"""
Repository for consensus requests and per-wager vote pools.
"""

from repositories.base_repository import BaseRepository, logger
from repositories.interfaces import IConsensusRepository
from services import error_codes


class ConsensusRepository(BaseRepository, IConsensusRepository):
    """
    Data access for the two consensus paths on an active wager.

    Vote pools live in consensus_votes (one row per participant, replaced on
    re-vote). Formal proposals live in consensus_requests with one
    confirmation flag per side. An expired request is treated as absent.
    """

    VALID_KINDS = {"resolve", "cancel"}
    VALID_CHOICES = {"A", "B", "cancel"}

    @staticmethod
    def _participant_side(wager, user_id: int) -> str | None:
        if wager["side_a_user_id"] == user_id:
            return "A"
        if wager["side_b_user_id"] == user_id:
            return "B"
        return None

    def create_request_atomic(
        self,
        wager_id: int,
        proposer_id: int,
        kind: str,
        proposed_winner: str | None,
        now: int,
        ttl_seconds: int,
    ) -> dict:
        """
        Open a resolve/cancel request with the proposer's side pre-confirmed.

        Expired requests for the wager are dropped first; an unexpired one
        still outstanding rejects the new request.

        Returns:
            {"success": True, "request_id": int} or a failed outcome with
            reason not_found / not_active / unauthorized / duplicate_request
        """
        if kind not in self.VALID_KINDS:
            raise ValueError(f"Invalid request kind: {kind}")
        if kind == "resolve" and proposed_winner not in ("A", "B"):
            raise ValueError(f"Invalid proposed winner: {proposed_winner}")
        if kind == "cancel":
            proposed_winner = None

        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT status, side_a_user_id, side_b_user_id FROM wagers WHERE wager_id = ?",
                (wager_id,),
            )
            wager = cursor.fetchone()
            if not wager:
                return self.outcome_fail(error_codes.NOT_FOUND, "Wager not found.")
            if wager["status"] != "active":
                return self.outcome_fail(
                    error_codes.NOT_ACTIVE, f"Wager #{wager_id} is not active ({wager['status']})."
                )
            proposer_side = self._participant_side(wager, proposer_id)
            if proposer_side is None:
                return self.outcome_fail(
                    error_codes.UNAUTHORIZED, "Only the two participants can propose an outcome."
                )

            cursor.execute(
                "DELETE FROM consensus_requests WHERE wager_id = ? AND expires_at <= ?",
                (wager_id, now),
            )
            cursor.execute(
                "SELECT request_id FROM consensus_requests WHERE wager_id = ? AND expires_at > ?",
                (wager_id, now),
            )
            existing = cursor.fetchone()
            if existing:
                return self.outcome_fail(
                    error_codes.DUPLICATE_REQUEST,
                    f"Wager #{wager_id} already has an open request (#{existing['request_id']}).",
                )

            cursor.execute(
                """
                INSERT INTO consensus_requests (
                    wager_id, kind, proposer_id, proposed_winner,
                    side_a_confirmed, side_b_confirmed, created_at, expires_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    wager_id,
                    kind,
                    proposer_id,
                    proposed_winner,
                    1 if proposer_side == "A" else 0,
                    1 if proposer_side == "B" else 0,
                    now,
                    now + ttl_seconds,
                ),
            )
            request_id = cursor.lastrowid

        logger.info(f"Consensus request #{request_id} ({kind}) opened on wager #{wager_id} by {proposer_id}")
        return {"success": True, "request_id": request_id}

    def get_request(self, request_id: int) -> dict | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM consensus_requests WHERE request_id = ?", (request_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_request_by_message_id(self, message_id: int) -> dict | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM consensus_requests WHERE message_id = ?", (message_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_active_request(self, wager_id: int, now: int) -> dict | None:
        """Get the unexpired request for a wager, if any."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM consensus_requests
                WHERE wager_id = ? AND expires_at > ?
                ORDER BY created_at DESC, request_id DESC
                LIMIT 1
                """,
                (wager_id, now),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def update_request_message(self, request_id: int, channel_id: int | None, message_id: int) -> None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE consensus_requests
                SET channel_id = COALESCE(?, channel_id), message_id = ?
                WHERE request_id = ?
                """,
                (channel_id, message_id, request_id),
            )

    def confirm_request_atomic(self, request_id: int, user_id: int, now: int) -> dict:
        """
        Record a participant's confirmation of a request.

        Does not apply the outcome; the caller commits once both flags are set.
        A request that was already committed has been deleted, so a repeat
        confirmation reports not_found.

        Returns:
            {"success": True, "request": dict, "both_confirmed": bool} or a
            failed outcome with reason not_found / not_active / unauthorized
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM consensus_requests WHERE request_id = ?", (request_id,))
            request = cursor.fetchone()
            if not request or request["expires_at"] <= now:
                return self.outcome_fail(error_codes.NOT_FOUND, "Request not found or expired.")

            cursor.execute(
                "SELECT status, side_a_user_id, side_b_user_id FROM wagers WHERE wager_id = ?",
                (request["wager_id"],),
            )
            wager = cursor.fetchone()
            if not wager or wager["status"] != "active":
                return self.outcome_fail(error_codes.NOT_ACTIVE, "This wager is no longer active.")
            side = self._participant_side(wager, user_id)
            if side is None:
                return self.outcome_fail(
                    error_codes.UNAUTHORIZED, "Only the two participants can confirm this request."
                )

            column = "side_a_confirmed" if side == "A" else "side_b_confirmed"
            cursor.execute(
                f"UPDATE consensus_requests SET {column} = 1 WHERE request_id = ?",
                (request_id,),
            )
            cursor.execute("SELECT * FROM consensus_requests WHERE request_id = ?", (request_id,))
            updated = dict(cursor.fetchone())

        both = bool(updated["side_a_confirmed"]) and bool(updated["side_b_confirmed"])
        return {"success": True, "request": updated, "both_confirmed": both}

    def cast_vote_atomic(self, wager_id: int, user_id: int, choice: str, now: int) -> dict:
        """
        Place a participant's vote, replacing any earlier vote they held.

        Returns:
            {"success": True, "votes": {user_id: choice}, "side_a_user_id",
             "side_b_user_id"} or a failed outcome with reason not_found /
            not_active / unauthorized
        """
        if choice not in self.VALID_CHOICES:
            raise ValueError(f"Invalid vote choice: {choice}")

        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT status, side_a_user_id, side_b_user_id FROM wagers WHERE wager_id = ?",
                (wager_id,),
            )
            wager = cursor.fetchone()
            if not wager:
                return self.outcome_fail(error_codes.NOT_FOUND, "Wager not found.")
            if wager["status"] != "active":
                return self.outcome_fail(
                    error_codes.NOT_ACTIVE, f"Wager #{wager_id} is not active ({wager['status']})."
                )
            if self._participant_side(wager, user_id) is None:
                return self.outcome_fail(
                    error_codes.UNAUTHORIZED, "Only the two participants can vote on this wager."
                )

            cursor.execute(
                """
                INSERT INTO consensus_votes (wager_id, user_id, choice, cast_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(wager_id, user_id) DO UPDATE SET
                    choice = excluded.choice,
                    cast_at = excluded.cast_at
                """,
                (wager_id, user_id, choice, now),
            )
            cursor.execute(
                "SELECT user_id, choice FROM consensus_votes WHERE wager_id = ?",
                (wager_id,),
            )
            votes = {row["user_id"]: row["choice"] for row in cursor.fetchall()}

        return {
            "success": True,
            "votes": votes,
            "side_a_user_id": wager["side_a_user_id"],
            "side_b_user_id": wager["side_b_user_id"],
        }

    def get_votes(self, wager_id: int) -> dict[int, str]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT user_id, choice FROM consensus_votes WHERE wager_id = ?",
                (wager_id,),
            )
            return {row["user_id"]: row["choice"] for row in cursor.fetchall()}

    def purge_expired_requests(self, now: int) -> int:
        """Delete expired requests. Returns the number removed."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM consensus_requests WHERE expires_at <= ?", (now,))
            removed = cursor.rowcount
        if removed:
            logger.info(f"Purged {removed} expired consensus request(s)")
        return removed
