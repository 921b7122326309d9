"""
Balanced stake computation for head-to-head wagers.

Each side's payout if it wins equals exactly what the other side staked,
so the pot is peer-to-peer with no house edge.
"""

from dataclasses import dataclass

SIDE_A = "A"
SIDE_B = "B"


@dataclass(frozen=True)
class StakeSplit:
    """Stakes and potential winnings for both sides of a wager."""

    stake_a: float
    to_win_a: float
    stake_b: float
    to_win_b: float
    underdog: str | None  # None when the odds are equal

    @property
    def total_pot(self) -> float:
        return round(self.stake_a + self.stake_b, 2)

    def stake_for(self, side: str) -> float:
        return self.stake_a if side == SIDE_A else self.stake_b

    def to_win_for(self, side: str) -> float:
        return self.to_win_a if side == SIDE_A else self.to_win_b


def compute_balanced_stakes(base_amount: float, odds_a: float, odds_b: float) -> StakeSplit:
    """
    Split a base amount into a balanced two-sided pot.

    The underdog (higher decimal odds) stakes the base amount and stands to
    win base * (odds - 1). The favorite stakes that same amount and stands
    to win the underdog's stake. With equal odds both sides stake the base
    amount for an even pot.

    Example:
        base 100, A @ 2.5, B @ 1.5 -> A stakes 100 to win 150,
        B stakes 150 to win 100, pot 250.

    Args:
        base_amount: Amount the underdog puts up (must be positive)
        odds_a: Decimal odds for side A
        odds_b: Decimal odds for side B

    Returns:
        StakeSplit with amounts rounded to cents

    Raises:
        ValueError: If base_amount is not positive
    """
    if base_amount <= 0:
        raise ValueError("Base amount must be positive.")

    base = round(float(base_amount), 2)

    if odds_a == odds_b:
        return StakeSplit(stake_a=base, to_win_a=base, stake_b=base, to_win_b=base, underdog=None)

    underdog = SIDE_A if odds_a > odds_b else SIDE_B
    underdog_odds = max(odds_a, odds_b)

    # Round once here; every other amount is derived from these two values
    underdog_stake = base
    underdog_to_win = round(base * (underdog_odds - 1), 2)
    favorite_stake = underdog_to_win
    favorite_to_win = underdog_stake

    if underdog == SIDE_A:
        return StakeSplit(
            stake_a=underdog_stake,
            to_win_a=underdog_to_win,
            stake_b=favorite_stake,
            to_win_b=favorite_to_win,
            underdog=SIDE_A,
        )
    return StakeSplit(
        stake_a=favorite_stake,
        to_win_a=favorite_to_win,
        stake_b=underdog_stake,
        to_win_b=underdog_to_win,
        underdog=SIDE_B,
    )
