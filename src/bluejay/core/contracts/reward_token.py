"""
BLU reward token.

ERC20 with role-based minting. The owner administers roles; any address
holding MINTER_ROLE may mint. The reward token's total supply is what drives
vesting progress.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from .. import config
from ..exceptions import TokenError
from ..logging_config import short_address
from .erc20 import ERC20Token

logger = logging.getLogger(__name__)

# 32-byte role id, sha3_256 of the role name
MINTER_ROLE = "0x" + hashlib.sha3_256(b"MINTER_ROLE").hexdigest()


@dataclass
class RewardToken(ERC20Token):
    """Bluejay reward token with minter roles and one-time initialization."""

    name: str = "Bluejay Token"
    symbol: str = "BLU"

    # Role assignments: role -> set of addresses
    roles: dict[str, set[str]] = field(default_factory=dict)
    initialized: bool = False

    # Audit log
    role_changes: list = field(default_factory=list)

    def initialize(self, caller: str, initial_supply: int | None = None) -> bool:
        """
        One-time setup: caller becomes owner (if none) and minter, and receives the initial supply.

        Args:
            caller: Deployer address
            initial_supply: Base units to mint; defaults to the configured initial supply

        Raises:
            TokenError: If already initialized, or an owner is set and caller is not it
        """
        if self.initialized:
            raise TokenError(f"{self.symbol}: already initialized")
        if self.owner:
            self._require_owner(caller)
        caller_norm = self._normalize(caller)
        self._validate_address(caller_norm, "initializer")
        if not self.owner:
            self.owner = caller_norm
        self.initialized = True
        self.roles.setdefault(MINTER_ROLE, set()).add(caller_norm)

        if initial_supply is None:
            initial_supply = config.to_base_units(config.REWARD_INITIAL_SUPPLY, self.decimals)
        if initial_supply:
            self.mint(caller_norm, caller_norm, initial_supply)
        return True

    # ==================== Roles ====================

    def grant_role(self, caller: str, role: str, account: str) -> bool:
        """Grant a role to an address (owner only)."""
        self._require_owner(caller)
        account_norm = self._normalize(account)
        self._validate_address(account_norm, "account")
        self.roles.setdefault(role, set()).add(account_norm)
        self._record_role_change("grant", role, account_norm, caller)
        return True

    def revoke_role(self, caller: str, role: str, account: str) -> bool:
        """Revoke a role from an address (owner only)."""
        self._require_owner(caller)
        account_norm = self._normalize(account)
        self.roles.get(role, set()).discard(account_norm)
        self._record_role_change("revoke", role, account_norm, caller)
        return True

    def has_role(self, role: str, account: str) -> bool:
        return self._normalize(account) in self.roles.get(role, set())

    def _record_role_change(self, action: str, role: str, account_norm: str, caller: str) -> None:
        self.role_changes.append({
            "action": action,
            "role": role,
            "address": account_norm,
            "admin": self._normalize(caller),
            "timestamp": time.time(),
        })
        logger.info(
            "Role %s", "granted" if action == "grant" else "revoked",
            extra={
                "event": f"reward_token.role_{action}",
                "role": role,
                "address": short_address(account_norm),
            }
        )

    def _require_minter(self, caller: str) -> None:
        if not self.has_role(MINTER_ROLE, caller):
            raise TokenError(f"{self.symbol}: caller is missing {MINTER_ROLE}")

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["roles"] = {role: sorted(members) for role, members in self.roles.items()}
        data["initialized"] = self.initialized
        data["role_changes"] = [dict(change) for change in self.role_changes]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RewardToken":
        token = super().from_dict(data)
        token.roles = {role: set(members) for role, members in data.get("roles", {}).items()}
        token.initialized = data.get("initialized", False)
        token.role_changes = [dict(change) for change in data.get("role_changes", [])]
        return token
