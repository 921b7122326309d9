"""
Abstract repository interfaces for data access.

These interfaces define the contracts implemented by concrete repositories.
"""

from abc import ABC, abstractmethod


class IUserStatsRepository(ABC):
    """Repository for users and their aggregate wagering stats."""

    @abstractmethod
    def upsert_user(self, user_id: int, display_name: str | None) -> None:
        """Create the user row or refresh its display name."""
        ...

    @abstractmethod
    def get_user_stats(self, user_id: int) -> dict | None: ...

    @abstractmethod
    def get_leaderboard(self, limit: int = 10) -> list[dict]:
        """Users with at least one resolved wager, ordered by net profit."""
        ...


class IWagerRepository(ABC):
    """Repository for wagers and their lifecycle transitions."""

    @abstractmethod
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
        """Insert a pending wager and return its ID."""
        ...

    @abstractmethod
    def get_wager(self, wager_id: int) -> dict | None: ...

    @abstractmethod
    def get_wager_by_message_id(self, message_id: int) -> dict | None: ...

    @abstractmethod
    def update_wager_message(self, wager_id: int, channel_id: int | None, message_id: int) -> None: ...

    @abstractmethod
    def get_active_and_pending(self, guild_id: int | None = None, limit: int | None = None) -> list[dict]: ...

    @abstractmethod
    def get_user_history(self, user_id: int, limit: int = 20) -> list[dict]: ...

    @abstractmethod
    def join_side_atomic(
        self, wager_id: int, user_id: int, side: str, now: int, display_name: str | None = None
    ) -> dict:
        """Fill a side and activate the wager if both sides are now taken."""
        ...

    @abstractmethod
    def resolve_wager_atomic(
        self, wager_id: int, winning_side: str, now: int, require_votes: bool = False
    ) -> dict:
        """Resolve an active wager and record stats for both participants."""
        ...

    @abstractmethod
    def cancel_pending_atomic(self, wager_id: int, requester_id: int, now: int) -> dict: ...

    @abstractmethod
    def cancel_active_atomic(self, wager_id: int, now: int, require_votes: bool = False) -> dict: ...


class IConsensusRepository(ABC):
    """Repository for consensus requests and persisted vote pools."""

    @abstractmethod
    def create_request_atomic(
        self,
        wager_id: int,
        proposer_id: int,
        kind: str,
        proposed_winner: str | None,
        now: int,
        ttl_seconds: int,
    ) -> dict: ...

    @abstractmethod
    def get_request(self, request_id: int) -> dict | None: ...

    @abstractmethod
    def get_request_by_message_id(self, message_id: int) -> dict | None: ...

    @abstractmethod
    def get_active_request(self, wager_id: int, now: int) -> dict | None: ...

    @abstractmethod
    def update_request_message(self, request_id: int, channel_id: int | None, message_id: int) -> None: ...

    @abstractmethod
    def confirm_request_atomic(self, request_id: int, user_id: int, now: int) -> dict: ...

    @abstractmethod
    def cast_vote_atomic(self, wager_id: int, user_id: int, choice: str, now: int) -> dict: ...

    @abstractmethod
    def get_votes(self, wager_id: int) -> dict[int, str]: ...

    @abstractmethod
    def purge_expired_requests(self, now: int) -> int: ...
