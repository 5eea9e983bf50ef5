"""
Bluejay token contracts.

This module provides the in-memory token contracts the vesting ledger runs
against:
- ERC20: fungible token standard
- ClaimToken: non-transferable eBLU entitlement token
- RewardToken: BLU reward token with minter roles
"""

from .claim_token import ClaimToken
from .erc20 import ERC20Token, TokenEvent, ZERO_ADDRESS
from .reward_token import MINTER_ROLE, RewardToken

__all__ = [
    "ERC20Token",
    "TokenEvent",
    "ZERO_ADDRESS",
    "ClaimToken",
    "RewardToken",
    "MINTER_ROLE",
]
