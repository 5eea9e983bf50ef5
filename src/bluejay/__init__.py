"""
Bluejay - Supply-Driven Employee Token Vesting

Holders of the non-transferable claim token (eBLU) redeem the Bluejay reward
token (BLU) as the reward token's total supply grows toward its vesting cap.

Main Components:
- Contracts: in-memory ERC20 reference tokens (claim token, reward token)
- Vesting: schedule store, supply-driven rate oracle and redemption ledger
- CLI: operator commands against a persisted deployment
"""

__version__ = "0.1.0"
__author__ = "Bluejay Finance Team"

__all__ = []
