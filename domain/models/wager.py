"""
Wager domain models.
"""

from dataclasses import dataclass

from domain.services.stake_balancer import SIDE_A, SIDE_B

# Wager status values (pending -> active -> resolved | cancelled)
STATUS_PENDING = "pending"
STATUS_ACTIVE = "active"
STATUS_RESOLVED = "resolved"
STATUS_CANCELLED = "cancelled"

VALID_STATUSES = {STATUS_PENDING, STATUS_ACTIVE, STATUS_RESOLVED, STATUS_CANCELLED}
VALID_SIDES = {SIDE_A, SIDE_B}
VALID_CATEGORIES = {"game", "prop", "future"}

# Consensus request kinds and vote choices
KIND_RESOLVE = "resolve"
KIND_CANCEL = "cancel"
VOTE_CANCEL = "cancel"
VALID_VOTE_CHOICES = {SIDE_A, SIDE_B, VOTE_CANCEL}


def other_side(side: str) -> str:
    """Return the opposite side label."""
    return SIDE_B if side == SIDE_A else SIDE_A


@dataclass
class WagerSide:
    """One side of a wager."""

    description: str
    odds: float
    stake: float
    to_win: float
    user_id: int | None = None
    display_name: str | None = None

    @property
    def is_open(self) -> bool:
        return self.user_id is None


@dataclass
class Wager:
    """
    A two-sided wager between two users.

    Stakes are computed once at creation and read from here afterwards.
    """

    wager_id: int
    creator_id: int
    category: str
    description: str
    base_amount: float
    side_a: WagerSide
    side_b: WagerSide
    status: str = STATUS_PENDING
    winning_side: str | None = None
    guild_id: int = 0
    channel_id: int | None = None
    message_id: int | None = None
    home_team: str | None = None
    away_team: str | None = None
    player_name: str | None = None
    details: str | None = None
    created_at: int | None = None
    activated_at: int | None = None
    resolved_at: int | None = None
    cancelled_at: int | None = None
    creator_name: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> "Wager":
        """Build a Wager from a wagers table row (optionally joined with user names)."""
        return cls(
            wager_id=row["wager_id"],
            creator_id=row["creator_id"],
            category=row["category"],
            description=row["description"],
            base_amount=row["base_amount"],
            side_a=WagerSide(
                description=row["side_a_description"],
                odds=row["side_a_odds"],
                stake=row["side_a_stake"],
                to_win=row["side_a_to_win"],
                user_id=row["side_a_user_id"],
                display_name=row.get("side_a_name"),
            ),
            side_b=WagerSide(
                description=row["side_b_description"],
                odds=row["side_b_odds"],
                stake=row["side_b_stake"],
                to_win=row["side_b_to_win"],
                user_id=row["side_b_user_id"],
                display_name=row.get("side_b_name"),
            ),
            status=row["status"],
            winning_side=row["winning_side"],
            guild_id=row["guild_id"],
            channel_id=row["channel_id"],
            message_id=row["message_id"],
            home_team=row["home_team"],
            away_team=row["away_team"],
            player_name=row["player_name"],
            details=row["details"],
            created_at=row["created_at"],
            activated_at=row["activated_at"],
            resolved_at=row["resolved_at"],
            cancelled_at=row["cancelled_at"],
            creator_name=row.get("creator_name"),
        )

    def side(self, label: str) -> WagerSide:
        if label not in VALID_SIDES:
            raise ValueError(f"Invalid side: {label}")
        return self.side_a if label == SIDE_A else self.side_b

    @property
    def participant_ids(self) -> set[int]:
        return {uid for uid in (self.side_a.user_id, self.side_b.user_id) if uid is not None}

    def side_of(self, user_id: int) -> str | None:
        """Return the side a user has joined, or None."""
        if self.side_a.user_id == user_id:
            return SIDE_A
        if self.side_b.user_id == user_id:
            return SIDE_B
        return None

    @property
    def total_pot(self) -> float:
        return round(self.side_a.stake + self.side_b.stake, 2)


@dataclass
class ConsensusRequest:
    """A proposed resolution or cancellation awaiting the counterpart's confirmation."""

    request_id: int
    wager_id: int
    kind: str
    proposer_id: int
    proposed_winner: str | None
    side_a_confirmed: bool
    side_b_confirmed: bool
    created_at: int
    expires_at: int
    channel_id: int | None = None
    message_id: int | None = None

    @classmethod
    def from_row(cls, row: dict) -> "ConsensusRequest":
        return cls(
            request_id=row["request_id"],
            wager_id=row["wager_id"],
            kind=row["kind"],
            proposer_id=row["proposer_id"],
            proposed_winner=row["proposed_winner"],
            side_a_confirmed=bool(row["side_a_confirmed"]),
            side_b_confirmed=bool(row["side_b_confirmed"]),
            created_at=row["created_at"],
            expires_at=row["expires_at"],
            channel_id=row["channel_id"],
            message_id=row["message_id"],
        )

    @property
    def both_confirmed(self) -> bool:
        return self.side_a_confirmed and self.side_b_confirmed

    def is_expired(self, now: int) -> bool:
        return self.expires_at <= now


@dataclass
class UserStats:
    """Aggregate wagering statistics for a user."""

    user_id: int
    display_name: str | None = None
    total_wagers: int = 0
    wins: int = 0
    losses: int = 0
    total_staked: float = 0.0
    total_returned: float = 0.0
    total_lost: float = 0.0
    net_profit: float = 0.0

    @classmethod
    def from_row(cls, row: dict) -> "UserStats":
        return cls(
            user_id=row["user_id"],
            display_name=row["display_name"],
            total_wagers=row["total_wagers"],
            wins=row["wins"],
            losses=row["losses"],
            total_staked=row["total_staked"],
            total_returned=row["total_returned"],
            total_lost=row["total_lost"],
            net_profit=row["net_profit"],
        )

    @property
    def win_rate(self) -> float:
        """Win percentage (0-100) over resolved wagers."""
        if self.total_wagers == 0:
            return 0.0
        return self.wins / self.total_wagers * 100

    @property
    def average_stake(self) -> float:
        if self.total_wagers == 0:
            return 0.0
        return self.total_staked / self.total_wagers


@dataclass
class Settlement:
    """Outcome of a resolution commit, read from the persisted stakes."""

    wager_id: int
    winning_side: str
    winner_id: int
    loser_id: int
    winner_stake: float
    winner_to_win: float
    loser_stake: float

    @property
    def total_pot(self) -> float:
        return round(self.winner_stake + self.loser_stake, 2)

    @property
    def winner_return(self) -> float:
        """Stake back plus winnings."""
        return round(self.winner_stake + self.winner_to_win, 2)


@dataclass
class HistoryEntry:
    """A resolved wager from one participant's point of view."""

    wager: Wager
    user_side: str
    won: bool
    profit: float
    opponent_id: int | None = None
    opponent_name: str | None = None
