"""
Token service protocols consumed by the vesting ledger.

The ledger only needs a balance lookup from the claim token and supply,
balance and transfer from the reward token, so it depends on these protocols
rather than on the concrete token contracts.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ClaimTokenService(Protocol):
    """Entitlement token; read only at schedule creation."""

    def balance_of(self, account: str) -> int:
        """Claim-token balance of account in base units."""
        ...


@runtime_checkable
class RewardTokenService(Protocol):
    """Token paid out on redemption; its total supply drives vesting."""

    decimals: int

    def get_total_supply(self) -> int:
        """Current total supply in base units."""
        ...

    def balance_of(self, account: str) -> int:
        """Reward-token balance of account in base units."""
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Move amount from sender to recipient; False or an exception signals failure."""
        ...
