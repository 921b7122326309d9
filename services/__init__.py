"""
Application services layer.

Services orchestrate business operations using repositories and domain services.
"""

from services.consensus_service import ConsensusService, ConsensusStatus, ProposalResult
from services.interfaces import IConsensusService, IWagerService, IWagerStatsService

# Result type for consistent error handling
from services.result import Result
from services.wager_service import JoinResult, WagerService
from services.wager_stats_service import WagerStatsService

__all__ = [
    # Concrete services
    "WagerService",
    "ConsensusService",
    "WagerStatsService",
    # Service results
    "Result",
    "JoinResult",
    "ProposalResult",
    "ConsensusStatus",
    # Interfaces
    "IWagerService",
    "IConsensusService",
    "IWagerStatsService",
]
