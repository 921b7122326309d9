"""
Service layer interfaces (ABCs).

These abstract base classes define the contracts for the wager services.
Command handlers depend on these, which keeps them easy to mock in tests.

Usage:
    class MyService(IMyService):
        def my_method(self, param: str) -> Result[dict]:
            ...
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from domain.models.wager import HistoryEntry, Settlement, UserStats, Wager
    from domain.models.wager_action import WagerAction
    from services.consensus_service import ConsensusStatus, ProposalResult
    from services.result import Result
    from services.wager_service import JoinResult


class IWagerService(ABC):
    """Interface for the wager lifecycle."""

    @abstractmethod
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
    ) -> "Result[Wager]":
        """Create a pending wager with stakes balanced from the odds."""
        ...

    @abstractmethod
    def attach_message(self, wager_id: int, channel_id: int | None, message_id: int) -> None: ...

    @abstractmethod
    def join_side(
        self, wager_id: int, user_id: int, side: str, display_name: str | None = None
    ) -> "Result[JoinResult]":
        """Take an open side of a pending wager."""
        ...

    @abstractmethod
    def resolve(
        self, wager_id: int, winning_side: str, require_votes: bool = False
    ) -> "Result[Settlement]": ...

    @abstractmethod
    def cancel_pending(self, wager_id: int, requester_id: int) -> "Result[Wager]": ...

    @abstractmethod
    def cancel_active(self, wager_id: int, require_votes: bool = False) -> "Result[Wager]": ...

    @abstractmethod
    def get_wager(self, wager_id: int) -> "Wager | None": ...

    @abstractmethod
    def get_wager_by_message_id(self, message_id: int) -> "Wager | None": ...

    @abstractmethod
    def list_active_and_pending(self, guild_id: int | None = None, limit: int | None = None) -> "list[Wager]": ...


class IConsensusService(ABC):
    """Interface for two-party resolution and cancellation."""

    @abstractmethod
    def propose_resolution(self, wager_id: int, user_id: int, winning_side: str) -> "Result[ProposalResult]": ...

    @abstractmethod
    def propose_cancellation(self, wager_id: int, user_id: int) -> "Result[ProposalResult]": ...

    @abstractmethod
    def cast_vote(self, wager_id: int, user_id: int, choice: str) -> "Result[ConsensusStatus]":
        """Vote A, B or cancel; commits when both participants agree."""
        ...

    @abstractmethod
    def confirm_request(self, request_id: int, user_id: int) -> "Result[ConsensusStatus]": ...

    @abstractmethod
    def purge_expired_requests(self) -> int: ...

    @abstractmethod
    def dispatch(self, action: "WagerAction", user_id: int, display_name: str | None = None) -> "Result": ...


class IWagerStatsService(ABC):
    """Interface for stats, leaderboard and history reads."""

    @abstractmethod
    def get_user_stats(self, user_id: int) -> "UserStats": ...

    @abstractmethod
    def get_leaderboard(self, limit: int | None = None) -> "list[UserStats]": ...

    @abstractmethod
    def get_user_history(self, user_id: int, limit: int | None = None) -> "list[HistoryEntry]": ...
