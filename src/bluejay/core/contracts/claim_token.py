"""
eBLU claim token.

A non-transferable ERC20 issued by the owner to employees. Holding eBLU is the
proof of entitlement checked when a vesting schedule is created; the ledger
only ever reads balances from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..exceptions import TokenError
from .erc20 import ERC20Token

logger = logging.getLogger(__name__)


@dataclass
class ClaimToken(ERC20Token):
    """Owner-minted, non-transferable entitlement token."""

    name: str = "eBLU"
    symbol: str = "eBLU"

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        raise TokenError(f"{self.symbol}: token is non-transferable")

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        raise TokenError(f"{self.symbol}: token is non-transferable")

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        raise TokenError(f"{self.symbol}: token is non-transferable")

    def burn_from_holder(self, caller: str, holder: str, amount: int) -> bool:
        """
        Burn a holder's claim tokens (owner only), e.g. when an employee leaves.

        Raises:
            TokenError: If caller is not owner or the holder lacks balance
        """
        self._require_owner(caller)
        self._validate_amount(amount)
        self._burn(self._normalize(holder), amount)
        return True
