"""
Vesting ledger events, kept for off-ledger indexers and reconciliation.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

SCHEDULE_CREATED = "ScheduleCreated"
REDEMPTION_ATTEMPTED = "RedemptionAttempted"
REDEEMED = "Redeemed"
RELEASED = "Released"
REVOKED = "Revoked"
WITHDRAWN = "Withdrawn"

EVENT_TYPES = (
    SCHEDULE_CREATED,
    REDEMPTION_ATTEMPTED,
    REDEEMED,
    RELEASED,
    REVOKED,
    WITHDRAWN,
)


@dataclass
class VestingEvent:
    """Represents a vesting ledger event."""

    event_type: str
    redeemer: str
    amount: int
    schedule_id: str = ""
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "redeemer": self.redeemer,
            "amount": self.amount,
            "schedule_id": self.schedule_id,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VestingEvent":
        return cls(
            event_type=data["event_type"],
            redeemer=data["redeemer"],
            amount=int(data["amount"]),
            schedule_id=data.get("schedule_id", ""),
            timestamp=float(data.get("timestamp", 0.0)),
        )
