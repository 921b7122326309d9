"""
Domain models - pure data structures representing wagering entities.
"""

from domain.models.wager import ConsensusRequest, HistoryEntry, Settlement, UserStats, Wager, WagerSide
from domain.models.wager_action import CastVote, Confirm, JoinSide, WagerAction

__all__ = [
    "Wager",
    "WagerSide",
    "ConsensusRequest",
    "UserStats",
    "Settlement",
    "HistoryEntry",
    "JoinSide",
    "CastVote",
    "Confirm",
    "WagerAction",
]
