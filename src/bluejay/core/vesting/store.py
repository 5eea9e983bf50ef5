"""
Schedule store for the vesting ledger.

Holds every schedule ever created, keyed by its identifier, together with the
per-holder schedule counts, the creation-ordered list of identifiers and the
outstanding total across non-revoked schedules. Schedules are never removed.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Iterator

from ..exceptions import ScheduleNotFoundError
from .schedule import VestingSchedule

logger = logging.getLogger(__name__)


def compute_schedule_id(holder: str, index: int) -> str:
    """
    Deterministic schedule identifier for the index-th schedule of holder.

    sha3_256 over the 20 address bytes left-padded to 32, followed by the
    index as a 32-byte big-endian integer.

    Raises:
        ValueError: If the index is negative or holder is not a 20-byte hex address
    """
    if index < 0:
        raise ValueError("Schedule index cannot be negative.")
    digits = holder.lower()
    if digits.startswith("0x"):
        digits = digits[2:]
    try:
        address = bytes.fromhex(digits)
    except ValueError as exc:
        raise ValueError(f"Holder {holder!r} is not a hex address.") from exc
    if len(address) != 20:
        raise ValueError(f"Holder {holder!r} is not a 20-byte address.")
    payload = address.rjust(32, b"\0") + index.to_bytes(32, "big")
    return "0x" + hashlib.sha3_256(payload).hexdigest()


class ScheduleStore:
    """Presence-checked schedule storage with per-holder enumeration."""

    def __init__(self) -> None:
        self._schedules: dict[str, VestingSchedule] = {}
        self._holder_counts: dict[str, int] = {}
        self._schedule_ids: list[str] = []
        self._total_outstanding = 0

    # ==================== Lookups ====================

    def get(self, schedule_id: str) -> VestingSchedule | None:
        return self._schedules.get(schedule_id.lower())

    def require(self, schedule_id: str) -> VestingSchedule:
        schedule = self.get(schedule_id)
        if schedule is None:
            raise ScheduleNotFoundError(schedule_id)
        return schedule

    def __contains__(self, schedule_id: str) -> bool:
        return schedule_id.lower() in self._schedules

    def __len__(self) -> int:
        return len(self._schedule_ids)

    def __iter__(self) -> Iterator[VestingSchedule]:
        for schedule_id in self._schedule_ids:
            yield self._schedules[schedule_id]

    def holder_count(self, holder: str) -> int:
        return self._holder_counts.get(holder.lower(), 0)

    def next_id_for_holder(self, holder: str) -> str:
        return compute_schedule_id(holder, self.holder_count(holder))

    def get_by_holder_and_index(self, holder: str, index: int) -> VestingSchedule:
        return self.require(compute_schedule_id(holder, index))

    def last_for_holder(self, holder: str) -> VestingSchedule | None:
        count = self.holder_count(holder)
        if count == 0:
            return None
        return self.get(compute_schedule_id(holder, count - 1))

    def id_at_index(self, index: int) -> str:
        if not 0 <= index < len(self._schedule_ids):
            raise IndexError(f"Schedule index {index} out of bounds ({len(self._schedule_ids)} schedules)")
        return self._schedule_ids[index]

    @property
    def schedule_ids(self) -> tuple[str, ...]:
        return tuple(self._schedule_ids)

    def schedules_for_holder(self, holder: str) -> list[VestingSchedule]:
        return [
            self._schedules[compute_schedule_id(holder, index)]
            for index in range(self.holder_count(holder))
        ]

    # ==================== Mutation ====================

    @property
    def total_outstanding(self) -> int:
        return self._total_outstanding

    def add(self, schedule: VestingSchedule) -> None:
        """
        Insert a newly created schedule at its holder's next index.

        Raises:
            ValueError: If the schedule's index or identifier does not match the holder's next slot
        """
        holder = schedule.redeemer.lower()
        expected_index = self.holder_count(holder)
        if schedule.index != expected_index:
            raise ValueError(
                f"Schedule index {schedule.index} does not match next index {expected_index} for {holder}"
            )
        expected_id = compute_schedule_id(holder, expected_index)
        if schedule.schedule_id != expected_id:
            raise ValueError(f"Schedule id {schedule.schedule_id} does not match derived id {expected_id}")

        self._schedules[expected_id] = schedule
        self._schedule_ids.append(expected_id)
        self._holder_counts[holder] = expected_index + 1
        self._total_outstanding += schedule.amount_total

    def adjust_outstanding(self, delta: int) -> int:
        """Apply delta to the outstanding total; it can never go negative."""
        new_total = self._total_outstanding + delta
        if new_total < 0:
            raise ValueError(
                f"Outstanding total would become negative ({self._total_outstanding} + {delta})"
            )
        self._total_outstanding = new_total
        return new_total

    def recompute_outstanding(self) -> int:
        """Sum of amount_total - redeemed over non-revoked schedules."""
        return sum(schedule.outstanding for schedule in self)

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        return {
            "schedules": [schedule.to_dict() for schedule in self],
            "total_outstanding": self._total_outstanding,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScheduleStore":
        """
        Rebuild a store, replaying schedules in creation order.

        Raises:
            ValueError: If the persisted outstanding total disagrees with the schedules
        """
        store = cls()
        for entry in data.get("schedules", []):
            schedule = VestingSchedule.from_dict(entry)
            store.add(schedule)
        store._total_outstanding = store.recompute_outstanding()

        persisted = data.get("total_outstanding")
        if persisted is not None and int(persisted) != store._total_outstanding:
            raise ValueError(
                f"Persisted outstanding total {persisted} does not match schedules "
                f"({store._total_outstanding})"
            )
        return store
