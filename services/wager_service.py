"""
Wager lifecycle: creation, joining sides, and the terminal transitions.

States run pending -> active -> resolved | cancelled, with a direct
pending -> cancelled for wagers nobody has matched yet. Resolving or
cancelling an active wager is only reached through ConsensusService.
"""

import logging
import time
from dataclasses import dataclass

from config import WAGER_MAX_AMOUNT
from domain.models.wager import (
    VALID_CATEGORIES,
    VALID_SIDES,
    Settlement,
    Wager,
)
from domain.services.odds_converter import normalize_odds
from domain.services.stake_balancer import compute_balanced_stakes
from repositories.interfaces import IUserStatsRepository, IWagerRepository
from services import error_codes
from services.interfaces import IWagerService
from services.result import Result

logger = logging.getLogger("wager_bot.services.wager")

MAX_DESCRIPTION_LENGTH = 200
MAX_SIDE_LENGTH = 100


@dataclass
class JoinResult:
    """Result of taking a side."""

    wager: Wager
    activated: bool


class WagerService(IWagerService):
    """
    Orchestrates wager creation and state transitions.

    Stakes are balanced once at creation and persisted; every later step
    reads them back from the store.
    """

    def __init__(
        self,
        wager_repo: IWagerRepository,
        user_stats_repo: IUserStatsRepository,
        max_amount: float | None = None,
    ):
        self.wager_repo = wager_repo
        self.user_stats_repo = user_stats_repo
        self.max_amount = max_amount if max_amount is not None else WAGER_MAX_AMOUNT

    def create_wager(
        self,
        creator_id: int,
        category: str,
        description: str,
        base_amount: float,
        side_a_description: str,
        side_b_description: str,
        side_a_odds: str | None = None,
        side_b_odds: str | None = None,
        guild_id: int | None = None,
        channel_id: int | None = None,
        creator_name: str | None = None,
        home_team: str | None = None,
        away_team: str | None = None,
        player_name: str | None = None,
        details: str | None = None,
    ) -> Result[Wager]:
        """
        Create a pending wager with balanced stakes.

        Odds accept American ("+150", "-200") or decimal ("2.5") input; a
        missing or invalid value falls back to even odds.

        Args:
            creator_id: Discord ID of the creator (not bound to a side)
            category: "game", "prop" or "future"
            description: What the wager is about
            base_amount: Amount the underdog puts up
            side_a_description: Label for side A
            side_b_description: Label for side B
            side_a_odds: Raw odds input for side A
            side_b_odds: Raw odds input for side B

        Returns:
            Result with the stored Wager
        """
        if category not in VALID_CATEGORIES:
            return Result.fail(f"Unknown category: {category}", code=error_codes.VALIDATION_ERROR)

        description = (description or "").strip()
        side_a_description = (side_a_description or "").strip()
        side_b_description = (side_b_description or "").strip()
        if not description or not side_a_description or not side_b_description:
            return Result.fail(
                "A wager needs a description and a label for both sides.",
                code=error_codes.VALIDATION_ERROR,
            )
        if len(description) > MAX_DESCRIPTION_LENGTH:
            return Result.fail(
                f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters.",
                code=error_codes.VALIDATION_ERROR,
            )
        if len(side_a_description) > MAX_SIDE_LENGTH or len(side_b_description) > MAX_SIDE_LENGTH:
            return Result.fail(
                f"Side labels must be at most {MAX_SIDE_LENGTH} characters.",
                code=error_codes.VALIDATION_ERROR,
            )

        if base_amount is None or base_amount <= 0:
            return Result.fail("Amount must be positive.", code=error_codes.INVALID_AMOUNT)
        if base_amount > self.max_amount:
            return Result.fail(
                f"Amount cannot exceed {self.max_amount:,.2f}.", code=error_codes.INVALID_AMOUNT
            )

        odds_a = normalize_odds(side_a_odds)
        odds_b = normalize_odds(side_b_odds)
        split = compute_balanced_stakes(base_amount, odds_a, odds_b)
        if split.stake_a <= 0 or split.stake_b <= 0:
            return Result.fail(
                "Amount is too small for these odds.", code=error_codes.INVALID_AMOUNT
            )

        self.user_stats_repo.upsert_user(creator_id, creator_name)
        wager_id = self.wager_repo.create_wager(
            creator_id=creator_id,
            category=category,
            description=description,
            base_amount=round(base_amount, 2),
            side_a_description=side_a_description,
            side_a_odds=odds_a,
            side_a_stake=split.stake_a,
            side_a_to_win=split.to_win_a,
            side_b_description=side_b_description,
            side_b_odds=odds_b,
            side_b_stake=split.stake_b,
            side_b_to_win=split.to_win_b,
            guild_id=guild_id,
            channel_id=channel_id,
            home_team=home_team,
            away_team=away_team,
            player_name=player_name,
            details=details,
            created_at=int(time.time()),
        )
        logger.info(
            f"Wager #{wager_id} created by {creator_id}: {category} base={base_amount} "
            f"A@{odds_a} B@{odds_b}"
        )
        return Result.ok(self.get_wager(wager_id))

    def attach_message(self, wager_id: int, channel_id: int | None, message_id: int) -> None:
        """Record the Discord message that renders the wager."""
        self.wager_repo.update_wager_message(wager_id, channel_id, message_id)

    def join_side(
        self,
        wager_id: int,
        user_id: int,
        side: str,
        display_name: str | None = None,
    ) -> Result[JoinResult]:
        """Take an open side; the wager activates when both sides are filled."""
        if side not in VALID_SIDES:
            return Result.fail(f"Invalid side: {side}", code=error_codes.VALIDATION_ERROR)

        outcome = self.wager_repo.join_side_atomic(
            wager_id, user_id, side, int(time.time()), display_name=display_name
        )
        if not outcome["success"]:
            logger.debug(f"Join rejected for {user_id} on wager #{wager_id}: {outcome['reason']}")
            return Result.from_outcome(outcome)

        return Result.ok(JoinResult(wager=self.get_wager(wager_id), activated=outcome["activated"]))

    def resolve(self, wager_id: int, winning_side: str, require_votes: bool = False) -> Result[Settlement]:
        """
        Resolve an active wager and apply both participants' stats.

        Only called on a consensus commit. With require_votes, both stored
        votes must still name winning_side when the write lock is taken.
        """
        if winning_side not in VALID_SIDES:
            return Result.fail(f"Invalid side: {winning_side}", code=error_codes.VALIDATION_ERROR)

        outcome = self.wager_repo.resolve_wager_atomic(
            wager_id, winning_side, int(time.time()), require_votes=require_votes
        )
        if not outcome["success"]:
            return Result.from_outcome(outcome)

        return Result.ok(
            Settlement(
                wager_id=wager_id,
                winning_side=winning_side,
                winner_id=outcome["winner_id"],
                loser_id=outcome["loser_id"],
                winner_stake=outcome["winner_stake"],
                winner_to_win=outcome["winner_to_win"],
                loser_stake=outcome["loser_stake"],
            )
        )

    def cancel_pending(self, wager_id: int, requester_id: int) -> Result[Wager]:
        """Cancel a wager nobody has matched yet (creator or a joined user only)."""
        outcome = self.wager_repo.cancel_pending_atomic(wager_id, requester_id, int(time.time()))
        if not outcome["success"]:
            return Result.from_outcome(outcome)
        return Result.ok(self.get_wager(wager_id))

    def cancel_active(self, wager_id: int, require_votes: bool = False) -> Result[Wager]:
        """Cancel an active wager after both participants agreed. Stats are untouched."""
        outcome = self.wager_repo.cancel_active_atomic(wager_id, int(time.time()), require_votes=require_votes)
        if not outcome["success"]:
            return Result.from_outcome(outcome)
        return Result.ok(self.get_wager(wager_id))

    def get_wager(self, wager_id: int) -> Wager | None:
        row = self.wager_repo.get_wager(wager_id)
        return Wager.from_row(row) if row else None

    def get_wager_by_message_id(self, message_id: int) -> Wager | None:
        row = self.wager_repo.get_wager_by_message_id(message_id)
        return Wager.from_row(row) if row else None

    def list_active_and_pending(self, guild_id: int | None = None, limit: int | None = None) -> list[Wager]:
        return [Wager.from_row(row) for row in self.wager_repo.get_active_and_pending(guild_id, limit)]
