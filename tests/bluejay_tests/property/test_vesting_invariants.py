"""
Property-based tests for vesting ledger invariants.

Properties checked across generated supplies and operation sequences:
1. Vesting percent never decreases as supply grows and stays in [0, 100]
2. Redeemed amount never exceeds the vested amount or the schedule total
3. The outstanding total always equals the sum over non-revoked schedules
4. Reward tokens are conserved between the ledger and the redeemers
5. A revoked schedule reports zero and stays revoked
"""

import pytest
from hypothesis import given, settings, strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, rule

from bluejay.core.contracts import ClaimToken, RewardToken
from bluejay.core.exceptions import (
    AlreadyClaimedError,
    InsufficientVestedError,
    ScheduleNotFoundError,
    ScheduleNotRevocableError,
    ScheduleRevokedError,
)
from bluejay.core.vesting import RedemptionRateOracle, VestingLedger

pytestmark = pytest.mark.property

OWNER = "0x" + "0a" * 20
HOLDERS = ["0x" + "e1" * 20, "0x" + "e2" * 20, "0x" + "e3" * 20]

CAP = 1_000_000
FUNDING = 10_000


def build_ledger(initial_supply=FUNDING, cap=CAP):
    claim_token = ClaimToken(owner=OWNER, decimals=0)
    reward_token = RewardToken(owner=OWNER, decimals=0)
    reward_token.initialize(OWNER, initial_supply)
    ledger = VestingLedger(
        claim_token,
        reward_token,
        owner=OWNER,
        oracle=RedemptionRateOracle(reward_token, supply_cap=cap),
    )
    return claim_token, reward_token, ledger


class TestRateProperties:
    @given(
        supplies=st.lists(st.integers(min_value=0, max_value=3 * CAP), min_size=2, max_size=20),
    )
    def test_percent_is_monotonic_in_supply(self, supplies):
        """Property: a larger supply never yields a smaller vesting percent."""
        _, reward_token, ledger = build_ledger(initial_supply=0)
        percents = []
        for supply in sorted(supplies):
            reward_token.total_supply = supply
            percents.append(ledger.oracle.compute_redemption_percent())

        assert percents == sorted(percents)
        assert all(0 <= p <= 100 for p in percents)

    @given(
        amount=st.integers(min_value=1, max_value=10**30),
        supply=st.integers(min_value=0, max_value=2 * CAP),
    )
    def test_vested_never_exceeds_total(self, amount, supply):
        """Property: vested amount is within [0, amount_total]."""
        _, reward_token, ledger = build_ledger(initial_supply=0)
        reward_token.total_supply = supply
        vested = ledger.oracle.vested_amount(amount)
        assert 0 <= vested <= amount
        if supply >= CAP:
            assert vested == amount


class TestRedeemProperties:
    @given(
        amount=st.integers(min_value=1, max_value=FUNDING),
        supply=st.integers(min_value=CAP // 100, max_value=2 * CAP),
    )
    @settings(max_examples=50, deadline=None)
    def test_redeem_is_idempotent_at_fixed_supply(self, amount, supply):
        """Property: redeeming twice without supply growth pays once."""
        claim_token, reward_token, ledger = build_ledger()
        reward_token.transfer(OWNER, ledger.address, FUNDING)
        claim_token.mint(OWNER, HOLDERS[0], amount)
        ledger.create_vesting_schedule(OWNER, HOLDERS[0], True, amount)
        if supply > reward_token.get_total_supply():
            reward_token.mint(OWNER, OWNER, supply - reward_token.get_total_supply())

        expected = ledger.oracle.vested_amount(amount)
        if expected == 0:
            with pytest.raises(AlreadyClaimedError):
                ledger.redeem(HOLDERS[0], HOLDERS[0])
            return

        assert ledger.redeem(HOLDERS[0], HOLDERS[0]) == expected
        with pytest.raises(AlreadyClaimedError):
            ledger.redeem(HOLDERS[0], HOLDERS[0])
        assert reward_token.balance_of(HOLDERS[0]) == expected


class VestingLedgerMachine(RuleBasedStateMachine):
    """
    Stateful test over schedule creation, supply growth, redemption,
    partial release and revocation.
    """

    def __init__(self):
        super().__init__()
        self.claim_token, self.reward_token, self.ledger = build_ledger()
        self.reward_token.transfer(OWNER, self.ledger.address, FUNDING)
        self.granted = 0
        self.last_percent = self.ledger.oracle.compute_redemption_percent()
        self.revoked = set()

    def _pick(self, choice):
        count = self.ledger.get_vesting_schedules_count()
        if count == 0:
            return None
        return self.ledger.get_vesting_id_at_index(choice % count)

    @rule(
        holder=st.sampled_from(HOLDERS),
        amount=st.integers(min_value=1, max_value=2_000),
        revocable=st.booleans(),
    )
    def create(self, holder, amount, revocable):
        if self.granted + amount > FUNDING:
            return
        self.claim_token.mint(OWNER, holder, amount)
        self.ledger.create_vesting_schedule(OWNER, holder, revocable, amount)
        self.granted += amount

    @rule(delta=st.integers(min_value=0, max_value=CAP // 4))
    def grow_supply(self, delta):
        if delta:
            self.reward_token.mint(OWNER, OWNER, delta)

    @rule(holder=st.sampled_from(HOLDERS))
    def redeem(self, holder):
        try:
            self.ledger.redeem(holder, holder)
        except (ScheduleNotFoundError, ScheduleRevokedError, AlreadyClaimedError):
            pass

    @rule(choice=st.integers(min_value=0, max_value=100), amount=st.integers(min_value=1, max_value=2_000))
    def release(self, choice, amount):
        schedule_id = self._pick(choice)
        if schedule_id is None:
            return
        schedule = self.ledger.get_vesting_schedule(schedule_id)
        try:
            self.ledger.release(OWNER, schedule_id, amount)
        except (InsufficientVestedError, ScheduleRevokedError):
            return
        assert self.ledger.get_vesting_schedule(schedule_id).redeemed == schedule.redeemed + amount

    @rule(choice=st.integers(min_value=0, max_value=100))
    def revoke(self, choice):
        schedule_id = self._pick(choice)
        if schedule_id is None:
            return
        try:
            self.ledger.revoke(OWNER, schedule_id)
        except (ScheduleRevokedError, ScheduleNotRevocableError):
            return
        self.revoked.add(schedule_id)

    @invariant()
    def percent_never_decreases(self):
        percent = self.ledger.oracle.compute_redemption_percent()
        assert self.last_percent <= percent <= 100
        self.last_percent = percent

    @invariant()
    def redeemed_within_vested(self):
        for schedule in self.ledger.store:
            assert 0 <= schedule.redeemed <= schedule.amount_total
            if not schedule.revoked:
                assert schedule.redeemed <= self.ledger.compute_redemption_amount(schedule.schedule_id)

    @invariant()
    def outstanding_matches_schedules(self):
        assert self.ledger.get_vesting_schedules_total_amount() == self.ledger.store.recompute_outstanding()

    @invariant()
    def reward_tokens_conserved(self):
        paid = sum(self.reward_token.balance_of(holder) for holder in HOLDERS)
        redeemed = sum(schedule.redeemed for schedule in self.ledger.store)
        assert paid == redeemed
        assert self.reward_token.balance_of(self.ledger.address) == FUNDING - paid

    @invariant()
    def revoked_schedules_stay_revoked(self):
        for schedule_id in self.revoked:
            assert self.ledger.get_vesting_schedule(schedule_id).revoked is True
            assert self.ledger.compute_redemption_amount(schedule_id) == 0


VestingLedgerMachine.TestCase.settings = settings(max_examples=50, stateful_step_count=30, deadline=None)
TestVestingLedgerMachine = VestingLedgerMachine.TestCase
