"""
Vesting schedule record.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class VestingSchedule:
    """
    A redeemer's fixed entitlement, released as reward-token supply grows.

    amount_total is set once at construction; redeemed only ever grows.
    """

    schedule_id: str
    redeemer: str
    revocable: bool
    amount_total: int
    index: int
    redeemed: int = 0
    revoked: bool = False
    created_at: float = field(default_factory=time.time)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "amount_total" and "amount_total" in self.__dict__:
            raise AttributeError("amount_total is immutable once the schedule exists")
        super().__setattr__(name, value)

    @property
    def outstanding(self) -> int:
        """Entitlement not yet paid out (0 once revoked)."""
        if self.revoked:
            return 0
        return self.amount_total - self.redeemed

    def to_dict(self) -> dict[str, Any]:
        return {
            "schedule_id": self.schedule_id,
            "redeemer": self.redeemer,
            "revocable": self.revocable,
            "amount_total": self.amount_total,
            "index": self.index,
            "redeemed": self.redeemed,
            "revoked": self.revoked,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VestingSchedule":
        return cls(
            schedule_id=data["schedule_id"],
            redeemer=data["redeemer"],
            revocable=bool(data["revocable"]),
            amount_total=int(data["amount_total"]),
            index=int(data["index"]),
            redeemed=int(data.get("redeemed", 0)),
            revoked=bool(data.get("revoked", False)),
            created_at=float(data.get("created_at", 0.0)),
        )
