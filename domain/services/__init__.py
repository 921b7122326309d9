"""
Domain services containing pure business logic.
"""

from domain.services.odds_converter import format_odds, normalize_odds
from domain.services.stake_balancer import StakeSplit, compute_balanced_stakes

__all__ = ["normalize_odds", "format_odds", "StakeSplit", "compute_balanced_stakes"]
