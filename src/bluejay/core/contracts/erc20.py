"""
In-memory ERC20 token.

Base for both Bluejay tokens: the eBLU claim token and the BLU reward token.
Callers pass the acting address explicitly (the `sender`, `minter` or
`caller` argument) instead of relying on an implicit message sender.

Checks applied to every state change:
- amounts are non-negative integers no larger than 2**256 - 1
- recipients and spenders are never the zero address
- balances and allowances never go negative
- a recipient hook that raises reverts the credit it was notified about
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar

from ..exceptions import TokenError
from ..logging_config import short_address

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40

# hook(from_address, amount), run after tokens are credited to the hook's owner
ReceiveHook = Callable[[str, int], None]


@dataclass
class TokenEvent:
    """Transfer or Approval log entry."""

    event_type: str
    from_address: str
    to_address: str
    value: int
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "from_address": self.from_address,
            "to_address": self.to_address,
            "value": self.value,
            "timestamp": self.timestamp,
        }


@dataclass
class ERC20Token:
    """
    Fungible token with owner administration.

    Beyond ERC20 itself: owner-gated minting (subclasses may widen who can
    mint), holder burning, pausing, an optional supply cap and per-account
    receive hooks. State round-trips through to_dict()/from_dict(); hooks
    and the event log are runtime-only.
    """

    name: str
    symbol: str
    decimals: int = 18
    total_supply: int = 0
    address: str = ""
    owner: str = ""
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)
    events: list[TokenEvent] = field(default_factory=list)
    # 0 means uncapped
    max_supply: int = 0
    paused: bool = False
    receive_hooks: dict[str, ReceiveHook] = field(default_factory=dict, repr=False)

    UINT256_MAX: ClassVar[int] = 2**256 - 1

    def __post_init__(self) -> None:
        if not self.address:
            seed = f"{self.symbol}:{self.name}:{time.time_ns()}".encode()
            self.address = "0x" + hashlib.sha3_256(seed).digest()[-20:].hex()
        self.address = self._normalize(self.address)
        self.owner = self._normalize(self.owner)

    # ==================== Views ====================

    def balance_of(self, account: str) -> int:
        return self.balances.get(self._normalize(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        """Amount spender may still move out of owner's balance."""
        return self.allowances.get(self._normalize(owner), {}).get(self._normalize(spender), 0)

    def get_total_supply(self) -> int:
        """Current total supply in base units."""
        return self.total_supply

    # ==================== Transfers ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Move amount from sender to recipient.

        Raises:
            TokenError: If paused, the amount is invalid or the balance is short
        """
        self._require_not_paused()
        self._validate_amount(amount)
        self._move(self._normalize(sender), self._normalize(recipient), amount)
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set spender's allowance over owner's balance to amount."""
        self._require_not_paused()
        owner_norm = self._normalize(owner)
        spender_norm = self._normalize(spender)
        self._validate_address(spender_norm, "spender")
        self._validate_amount(amount)

        self.allowances.setdefault(owner_norm, {})[spender_norm] = amount
        self.events.append(TokenEvent("Approval", owner_norm, spender_norm, amount))
        return True

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        """
        Move amount out of from_addr using spender's allowance.

        An allowance of UINT256_MAX is treated as unlimited and never decremented.
        """
        self._require_not_paused()
        self._validate_amount(amount)
        spender_norm = self._normalize(spender)
        from_norm = self._normalize(from_addr)

        granted = self.allowance(from_norm, spender_norm)
        if granted < amount:
            raise TokenError(f"ERC20: insufficient allowance ({granted} < {amount})")

        unlimited = granted == self.UINT256_MAX
        if not unlimited:
            self.allowances[from_norm][spender_norm] = granted - amount
        try:
            self._move(from_norm, self._normalize(to_addr), amount)
        except Exception:
            if not unlimited:
                self.allowances[from_norm][spender_norm] = granted
            raise
        return True

    def register_receive_hook(self, account: str, hook: ReceiveHook | None) -> None:
        """Install (or clear, with None) the callback run when account is credited."""
        account_norm = self._normalize(account)
        if hook is None:
            self.receive_hooks.pop(account_norm, None)
        else:
            self.receive_hooks[account_norm] = hook

    # ==================== Supply ====================

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """
        Create amount new tokens for `to`.

        Raises:
            TokenError: If minter may not mint, or the supply cap would be exceeded
        """
        self._require_not_paused()
        self._require_minter(minter)
        to_norm = self._normalize(to)
        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)

        new_supply = self.total_supply + amount
        if self.max_supply and new_supply > self.max_supply:
            raise TokenError(f"ERC20: mint would exceed max supply ({new_supply} > {self.max_supply})")

        self.total_supply = new_supply
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self.events.append(TokenEvent("Transfer", ZERO_ADDRESS, to_norm, amount))
        logger.info(
            "%s minted",
            self.symbol,
            extra={
                "event": "erc20.mint",
                "token": self.symbol,
                "to": short_address(to_norm),
                "amount": amount,
                "new_supply": new_supply,
            }
        )
        return True

    def burn(self, holder: str, amount: int) -> bool:
        """Destroy amount of holder's own tokens."""
        self._require_not_paused()
        self._validate_amount(amount)
        self._burn(self._normalize(holder), amount)
        return True

    def _burn(self, holder_norm: str, amount: int) -> None:
        balance = self.balances.get(holder_norm, 0)
        if balance < amount:
            raise TokenError(f"ERC20: burn amount exceeds balance ({amount} > {balance})")
        self.balances[holder_norm] = balance - amount
        self.total_supply -= amount
        self.events.append(TokenEvent("Transfer", holder_norm, ZERO_ADDRESS, amount))
        logger.info(
            "%s burned",
            self.symbol,
            extra={
                "event": "erc20.burn",
                "token": self.symbol,
                "from": short_address(holder_norm),
                "amount": amount,
                "new_supply": self.total_supply,
            }
        )

    # ==================== Administration ====================

    def pause(self, caller: str) -> bool:
        self._require_owner(caller)
        self.paused = True
        return True

    def unpause(self, caller: str) -> bool:
        self._require_owner(caller)
        self.paused = False
        return True

    def transfer_ownership(self, caller: str, new_owner: str) -> bool:
        self._require_owner(caller)
        new_owner_norm = self._normalize(new_owner)
        self._validate_address(new_owner_norm, "new owner")
        self.owner = new_owner_norm
        return True

    # ==================== Internals ====================

    def _move(self, from_norm: str, to_norm: str, amount: int) -> None:
        """Debit, credit, log and notify; a failing hook reverts all of it."""
        self._validate_address(to_norm, "recipient")
        available = self.balances.get(from_norm, 0)
        if available < amount:
            raise TokenError(f"ERC20: transfer amount exceeds balance ({amount} > {available})")

        self.balances[from_norm] = available - amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        event = TokenEvent("Transfer", from_norm, to_norm, amount)
        self.events.append(event)
        logger.debug(
            "%s transfer",
            self.symbol,
            extra={
                "event": "erc20.transfer",
                "token": self.symbol,
                "from": short_address(from_norm),
                "to": short_address(to_norm),
                "amount": amount,
            }
        )

        hook = self.receive_hooks.get(to_norm)
        if hook is None:
            return
        try:
            hook(from_norm, amount)
        except Exception:
            self.balances[to_norm] -= amount
            self.balances[from_norm] += amount
            self.events.remove(event)
            logger.warning(
                "%s transfer reverted by recipient hook",
                self.symbol,
                extra={
                    "event": "erc20.transfer_reverted",
                    "token": self.symbol,
                    "to": short_address(to_norm),
                    "amount": amount,
                }
            )
            raise

    def _normalize(self, address: str) -> str:
        return address.lower()

    def _validate_address(self, address: str, role: str) -> None:
        if not address or address == ZERO_ADDRESS:
            raise TokenError(f"ERC20: {role} is zero address")

    def _validate_amount(self, amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise TokenError("ERC20: amount must be an integer")
        if amount < 0:
            raise TokenError("ERC20: amount cannot be negative")
        if amount > self.UINT256_MAX:
            raise TokenError("ERC20: amount exceeds uint256")

    def _require_owner(self, caller: str) -> None:
        if self._normalize(caller) != self.owner:
            raise TokenError("ERC20: caller is not owner")

    def _require_minter(self, caller: str) -> None:
        """Owner-only by default; RewardToken checks MINTER_ROLE instead."""
        self._require_owner(caller)

    def _require_not_paused(self) -> None:
        if self.paused:
            raise TokenError("ERC20: token is paused")

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self.total_supply,
            "address": self.address,
            "owner": self.owner,
            "balances": dict(self.balances),
            "allowances": {owner: dict(spenders) for owner, spenders in self.allowances.items()},
            "max_supply": self.max_supply,
            "paused": self.paused,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ERC20Token":
        token = cls(
            name=data["name"],
            symbol=data["symbol"],
            decimals=data.get("decimals", 18),
            total_supply=int(data.get("total_supply", 0)),
            address=data.get("address", ""),
            owner=data.get("owner", ""),
            max_supply=int(data.get("max_supply", 0)),
            paused=data.get("paused", False),
        )
        token.balances = {account: int(value) for account, value in data.get("balances", {}).items()}
        token.allowances = {
            owner: {spender: int(value) for spender, value in spenders.items()}
            for owner, spenders in data.get("allowances", {}).items()
        }
        return token
