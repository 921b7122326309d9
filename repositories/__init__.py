"""
Repository layer for data access abstraction.
"""

from repositories.base_repository import BaseRepository
from repositories.consensus_repository import ConsensusRepository
from repositories.interfaces import (
    IConsensusRepository,
    IUserStatsRepository,
    IWagerRepository,
)
from repositories.user_stats_repository import UserStatsRepository
from repositories.wager_repository import WagerRepository

__all__ = [
    "BaseRepository",
    "UserStatsRepository",
    "WagerRepository",
    "ConsensusRepository",
    "IUserStatsRepository",
    "IWagerRepository",
    "IConsensusRepository",
]
