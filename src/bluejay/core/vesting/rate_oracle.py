"""
Supply-driven redemption rate.

Vesting progress is the reward token's total supply as a fraction of the
vesting cap, truncated to whole percentage points. A supply change smaller
than 1% of the cap therefore does not change any redeemable amount.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from .. import config
from .interfaces import RewardTokenService

logger = logging.getLogger(__name__)

PERCENT_SCALE = 100


class RedemptionRateOracle:
    """
    Computes the vesting completion rate from the reward token's live supply.

    Nothing is cached: every call reads the current total supply.
    """

    def __init__(self, reward_token: RewardTokenService, supply_cap: int | None = None):
        if supply_cap is None:
            supply_cap = config.get_supply_cap_base_units(reward_token.decimals)
        if supply_cap <= 0:
            raise ValueError("Supply cap must be a positive number of base units.")
        self.reward_token = reward_token
        self.supply_cap = supply_cap

    def compute_redemption_percent(self) -> int:
        """Whole-percent vesting completion in [0, 100]."""
        supply = self.reward_token.get_total_supply()
        if supply >= self.supply_cap:
            return PERCENT_SCALE
        if supply <= 0:
            return 0
        return supply * PERCENT_SCALE // self.supply_cap

    def compute_redemption_rate(self) -> Decimal:
        """Vesting completion as an exact fraction in [0, 1]."""
        return Decimal(self.compute_redemption_percent()) / PERCENT_SCALE

    def vested_amount(self, amount_total: int) -> int:
        """floor(amount_total * percent / 100) for the current supply."""
        return amount_total * self.compute_redemption_percent() // PERCENT_SCALE
