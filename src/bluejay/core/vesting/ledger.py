"""
Bluejay Vesting Ledger

Creates vesting schedules for eBLU holders and pays out BLU as the reward
token's total supply grows toward the vesting cap.

Payout ordering:
- Every mutating operation holds the ledger lock and a non-reentrant guard;
  a payout hook calling back into a mutating operation raises ReentrancyError
- Bookkeeping (redeemed, outstanding total) is committed before the reward
  token transfer
- A failed transfer restores the bookkeeping and raises TransferFailedError,
  so callers never observe a partial commit
"""

from __future__ import annotations

import hashlib
import logging
import time
from contextlib import contextmanager
from dataclasses import replace
from threading import RLock
from typing import Any, Iterator

from ..exceptions import (
    AlreadyClaimedError,
    InsufficientEntitlementError,
    InsufficientFundsError,
    InsufficientVestedError,
    ReentrancyError,
    ScheduleNotFoundError,
    ScheduleNotRevocableError,
    ScheduleRevokedError,
    TransferFailedError,
    UnauthorizedError,
)
from ..logging_config import short_address
from . import events as ev
from .events import VestingEvent
from .interfaces import ClaimTokenService, RewardTokenService
from .rate_oracle import RedemptionRateOracle
from .schedule import VestingSchedule
from .store import ScheduleStore, compute_schedule_id

logger = logging.getLogger(__name__)


def _is_amount(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class VestingLedger:
    """
    Supply-driven vesting and redemption engine.

    Mutating operations take the calling address explicitly; the ledger owner
    is the administrator authorized to create and revoke schedules.
    """

    def __init__(
        self,
        claim_token: ClaimTokenService,
        reward_token: RewardTokenService,
        owner: str,
        store: ScheduleStore | None = None,
        oracle: RedemptionRateOracle | None = None,
        address: str = "",
    ):
        if not owner:
            raise ValueError("Ledger owner address cannot be empty.")
        self.claim_token = claim_token
        self.reward_token = reward_token
        self.owner = owner.lower()
        self.store = store if store is not None else ScheduleStore()
        self.oracle = oracle if oracle is not None else RedemptionRateOracle(reward_token)
        if not address:
            addr_hash = hashlib.sha3_256(f"vesting{self.owner}{time.time()}".encode()).digest()
            address = f"0x{addr_hash[-20:].hex()}"
        self.address = address.lower()
        self.events: list[VestingEvent] = []
        self._lock = RLock()
        self._entered = False
        logger.info(
            "VestingLedger initialized",
            extra={
                "event": "vesting.ledger_initialized",
                "address": short_address(self.address),
                "owner": short_address(self.owner),
                "supply_cap": self.oracle.supply_cap,
            }
        )

    # ==================== Guards ====================

    @contextmanager
    def _non_reentrant(self, operation: str) -> Iterator[None]:
        with self._lock:
            if self._entered:
                logger.error(
                    "Reentrant ledger call rejected",
                    extra={"event": "vesting.reentrancy_blocked", "operation": operation},
                )
                raise ReentrancyError(f"Reentrant call to {operation} rejected")
            self._entered = True
            try:
                yield
            finally:
                self._entered = False

    def _require_owner(self, caller: str) -> None:
        if caller.lower() != self.owner:
            raise UnauthorizedError(
                "Caller is not the ledger owner",
                details={"caller": caller.lower()},
            )

    def _require_redeemer_or_owner(self, caller: str, schedule: VestingSchedule) -> None:
        caller_norm = caller.lower()
        if caller_norm not in (schedule.redeemer, self.owner):
            raise UnauthorizedError(
                "Only the redeemer or the ledger owner can release vested tokens",
                details={"caller": caller_norm, "schedule_id": schedule.schedule_id},
            )

    def _require_active(self, schedule_id: str) -> VestingSchedule:
        schedule = self.store.require(schedule_id)
        if schedule.revoked:
            raise ScheduleRevokedError(schedule.schedule_id)
        return schedule

    # ==================== Views ====================

    def compute_redemption_amount(self, schedule_id: str) -> int:
        """
        Total amount vested for a schedule at the current reward-token supply.

        This is floor(amount_total * percent / 100) and includes whatever has
        already been redeemed. Revoked schedules report 0.

        Raises:
            ScheduleNotFoundError: If the schedule was never created
        """
        schedule = self.store.require(schedule_id)
        if schedule.revoked:
            return 0
        return self.oracle.vested_amount(schedule.amount_total)

    def compute_releasable_amount(self, schedule_id: str) -> int:
        """Vested but not yet redeemed amount; never negative."""
        schedule = self.store.require(schedule_id)
        if schedule.revoked:
            return 0
        return max(0, self.oracle.vested_amount(schedule.amount_total) - schedule.redeemed)

    def get_vesting_schedules_count_by_redeemer(self, redeemer: str) -> int:
        return self.store.holder_count(redeemer)

    def get_vesting_schedule(self, schedule_id: str) -> VestingSchedule:
        """Copy of the schedule record; raises ScheduleNotFoundError if unknown."""
        return replace(self.store.require(schedule_id))

    def get_vesting_schedule_by_address_and_index(self, holder: str, index: int) -> VestingSchedule:
        return replace(self.store.get_by_holder_and_index(holder, index))

    def get_last_vesting_schedule_for_holder(self, holder: str) -> VestingSchedule:
        schedule = self.store.last_for_holder(holder)
        if schedule is None:
            raise ScheduleNotFoundError(
                compute_schedule_id(holder, 0),
                details={"holder": holder.lower()},
            )
        return replace(schedule)

    def compute_vesting_schedule_id_for_address_and_index(self, holder: str, index: int) -> str:
        return compute_schedule_id(holder, index)

    def compute_next_vesting_schedule_id_for_holder(self, holder: str) -> str:
        return self.store.next_id_for_holder(holder)

    def get_vesting_schedules_total_amount(self) -> int:
        return self.store.total_outstanding

    def get_vesting_schedules_count(self) -> int:
        return len(self.store)

    def get_vesting_id_at_index(self, index: int) -> str:
        return self.store.id_at_index(index)

    def get_withdrawable_amount(self) -> int:
        """Reward tokens held by the ledger beyond what schedules still owe."""
        balance = self.reward_token.balance_of(self.address)
        return max(0, balance - self.store.total_outstanding)

    def get_reward_token(self) -> RewardTokenService:
        return self.reward_token

    def get_claim_token(self) -> ClaimTokenService:
        return self.claim_token

    def get_events(self, event_type: str | None = None) -> list[VestingEvent]:
        if event_type is None:
            return list(self.events)
        return [event for event in self.events if event.event_type == event_type]

    # ==================== Schedule Creation ====================

    def create_vesting_schedule(
        self, caller: str, redeemer: str, revocable: bool, amount: int
    ) -> str:
        """
        Create a schedule at the redeemer's next index (owner only).

        The redeemer must already hold at least `amount` claim tokens.

        Returns:
            The new schedule identifier

        Raises:
            UnauthorizedError: If caller is not the owner
            InsufficientEntitlementError: If amount is not positive or the claim balance is too low
        """
        with self._non_reentrant("create_vesting_schedule"):
            self._require_owner(caller)
            if not redeemer:
                raise ValueError("Redeemer address cannot be empty.")
            redeemer_norm = redeemer.lower()

            if not _is_amount(amount) or amount <= 0:
                raise InsufficientEntitlementError(
                    "Vesting amount must be a positive integer",
                    details={"amount": amount},
                )
            claim_balance = self.claim_token.balance_of(redeemer_norm)
            if claim_balance < amount:
                raise InsufficientEntitlementError(
                    f"Redeemer holds {claim_balance} claim tokens, schedule needs {amount}",
                    details={"redeemer": redeemer_norm, "balance": claim_balance, "amount": amount},
                )

            index = self.store.holder_count(redeemer_norm)
            schedule = VestingSchedule(
                schedule_id=compute_schedule_id(redeemer_norm, index),
                redeemer=redeemer_norm,
                revocable=bool(revocable),
                amount_total=amount,
                index=index,
            )
            self.store.add(schedule)
            self._emit(ev.SCHEDULE_CREATED, schedule, amount)

            logger.info(
                "Vesting schedule %s created for %s",
                schedule.schedule_id[:18],
                short_address(redeemer_norm),
                extra={
                    "event": "vesting.schedule_created",
                    "schedule_id": schedule.schedule_id,
                    "index": index,
                    "amount": amount,
                    "revocable": schedule.revocable,
                }
            )
            return schedule.schedule_id

    # ==================== Release / Redeem ====================

    def release(self, caller: str, schedule_id: str, amount: int) -> int:
        """
        Pay `amount` of the vested, unredeemed entitlement to the redeemer.

        Returns:
            The amount released

        Raises:
            ScheduleNotFoundError, ScheduleRevokedError, UnauthorizedError,
            InsufficientVestedError, TransferFailedError
        """
        with self._non_reentrant("release"):
            schedule = self._require_active(schedule_id)
            self._require_redeemer_or_owner(caller, schedule)

            if not _is_amount(amount) or amount <= 0:
                raise InsufficientVestedError(
                    "Release amount must be a positive integer",
                    requested=amount if _is_amount(amount) else 0,
                )
            available = self.oracle.vested_amount(schedule.amount_total) - schedule.redeemed
            if amount > available:
                raise InsufficientVestedError(
                    f"Cannot release {amount}: only {max(available, 0)} vested and unredeemed",
                    requested=amount,
                    available=max(available, 0),
                    details={"schedule_id": schedule.schedule_id},
                )

            self._pay_out(schedule, amount)
            self._emit(ev.RELEASED, schedule, amount)
            return amount

    def redeem(self, caller: str, redeemer: str) -> int:
        """
        Pay out everything vested on the redeemer's most recent schedule.

        Only the last schedule created for the redeemer is considered;
        earlier schedules are reachable through release().

        Returns:
            The amount paid

        Raises:
            ScheduleNotFoundError: If the redeemer has no schedule
            AlreadyClaimedError: If nothing new has vested since the last redemption
        """
        with self._non_reentrant("redeem"):
            redeemer_norm = redeemer.lower()
            schedule = self.store.last_for_holder(redeemer_norm)
            if schedule is None:
                raise ScheduleNotFoundError(
                    compute_schedule_id(redeemer_norm, 0),
                    details={"redeemer": redeemer_norm},
                )
            if schedule.revoked:
                raise ScheduleRevokedError(schedule.schedule_id)
            self._require_redeemer_or_owner(caller, schedule)

            redeemable = self.oracle.vested_amount(schedule.amount_total)
            if redeemable <= schedule.redeemed:
                raise AlreadyClaimedError(
                    "Nothing new to redeem",
                    details={
                        "schedule_id": schedule.schedule_id,
                        "redeemed": schedule.redeemed,
                        "redeemable": redeemable,
                    },
                )
            to_be_redeemed = redeemable - schedule.redeemed

            self._emit(ev.REDEMPTION_ATTEMPTED, schedule, to_be_redeemed)
            self._pay_out(schedule, to_be_redeemed)
            self._emit(ev.REDEEMED, schedule, to_be_redeemed)
            return to_be_redeemed

    # ==================== Revocation ====================

    def revoke(self, caller: str, schedule_id: str) -> int:
        """
        Revoke a revocable schedule (owner only).

        The vested but unredeemed remainder is paid to the redeemer first; the
        unvested remainder is forfeited and removed from the outstanding total.

        Returns:
            The amount paid out at revocation
        """
        with self._non_reentrant("revoke"):
            self._require_owner(caller)
            schedule = self._require_active(schedule_id)
            if not schedule.revocable:
                raise ScheduleNotRevocableError(schedule.schedule_id)

            releasable = max(0, self.oracle.vested_amount(schedule.amount_total) - schedule.redeemed)
            if releasable > 0:
                self._pay_out(schedule, releasable)
                self._emit(ev.RELEASED, schedule, releasable)

            unvested = schedule.amount_total - schedule.redeemed
            self.store.adjust_outstanding(-unvested)
            schedule.revoked = True
            self._emit(ev.REVOKED, schedule, unvested)

            logger.info(
                "Vesting schedule %s revoked",
                schedule.schedule_id[:18],
                extra={
                    "event": "vesting.schedule_revoked",
                    "schedule_id": schedule.schedule_id,
                    "paid_out": releasable,
                    "forfeited": unvested,
                }
            )
            return releasable

    # ==================== Treasury ====================

    def withdraw(self, caller: str, amount: int) -> int:
        """
        Withdraw reward tokens not owed to any schedule (owner only).

        Raises:
            InsufficientFundsError: If amount exceeds the withdrawable amount
        """
        with self._non_reentrant("withdraw"):
            self._require_owner(caller)
            if not _is_amount(amount) or amount <= 0:
                raise InsufficientFundsError("Withdraw amount must be a positive integer")
            withdrawable = self.get_withdrawable_amount()
            if amount > withdrawable:
                raise InsufficientFundsError(
                    f"Cannot withdraw {amount}: only {withdrawable} unallocated",
                    details={"amount": amount, "withdrawable": withdrawable},
                )
            self._transfer(self.owner, amount)
            self.events.append(VestingEvent(event_type=ev.WITHDRAWN, redeemer=self.owner, amount=amount))
            logger.info(
                "Withdrew %d unallocated reward tokens",
                amount,
                extra={"event": "vesting.withdrawn", "amount": amount},
            )
            return amount

    # ==================== Internals ====================

    def _pay_out(self, schedule: VestingSchedule, amount: int) -> None:
        """Commit bookkeeping, then transfer; restore bookkeeping if the transfer fails."""
        previous_redeemed = schedule.redeemed
        schedule.redeemed = previous_redeemed + amount
        self.store.adjust_outstanding(-amount)
        try:
            self._transfer(schedule.redeemer, amount)
        except Exception:
            schedule.redeemed = previous_redeemed
            self.store.adjust_outstanding(amount)
            raise

        logger.info(
            "Paid %d reward tokens to %s",
            amount,
            short_address(schedule.redeemer),
            extra={
                "event": "vesting.payout",
                "schedule_id": schedule.schedule_id,
                "amount": amount,
                "redeemed": schedule.redeemed,
            }
        )

    def _transfer(self, recipient: str, amount: int) -> None:
        try:
            success = self.reward_token.transfer(self.address, recipient, amount)
        except ReentrancyError:
            raise
        except Exception as exc:
            logger.warning(
                "Reward token transfer failed: %s",
                exc,
                extra={"event": "vesting.transfer_failed", "to": short_address(recipient), "amount": amount},
            )
            raise TransferFailedError(
                f"Reward token transfer of {amount} to {recipient} failed: {exc}",
                details={"recipient": recipient, "amount": amount},
            ) from exc
        if not success:
            logger.warning(
                "Reward token transfer reported failure",
                extra={"event": "vesting.transfer_failed", "to": short_address(recipient), "amount": amount},
            )
            raise TransferFailedError(
                f"Reward token transfer of {amount} to {recipient} failed",
                details={"recipient": recipient, "amount": amount},
            )

    def _emit(self, event_type: str, schedule: VestingSchedule, amount: int) -> None:
        self.events.append(
            VestingEvent(
                event_type=event_type,
                redeemer=schedule.redeemer,
                amount=amount,
                schedule_id=schedule.schedule_id,
            )
        )

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "owner": self.owner,
            "supply_cap": self.oracle.supply_cap,
            "store": self.store.to_dict(),
            "events": [event.to_dict() for event in self.events],
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        claim_token: ClaimTokenService,
        reward_token: RewardTokenService,
    ) -> "VestingLedger":
        oracle = RedemptionRateOracle(reward_token, supply_cap=data.get("supply_cap"))
        ledger = cls(
            claim_token=claim_token,
            reward_token=reward_token,
            owner=data["owner"],
            store=ScheduleStore.from_dict(data.get("store", {})),
            oracle=oracle,
            address=data["address"],
        )
        ledger.events = [VestingEvent.from_dict(item) for item in data.get("events", [])]
        return ledger
