"""
Tests for schedule records and the schedule store.
"""

import hashlib

import pytest

from bluejay.core.exceptions import ScheduleNotFoundError
from bluejay.core.vesting import ScheduleStore, VestingSchedule, compute_schedule_id

HOLDER = "0x" + "ab" * 20
OTHER = "0x" + "cd" * 20


def make_schedule(store, holder, amount, revocable=True):
    index = store.holder_count(holder)
    return VestingSchedule(
        schedule_id=compute_schedule_id(holder, index),
        redeemer=holder.lower(),
        revocable=revocable,
        amount_total=amount,
        index=index,
    )


class TestScheduleId:
    def test_deterministic(self):
        assert compute_schedule_id(HOLDER, 0) == compute_schedule_id(HOLDER, 0)

    def test_case_insensitive(self):
        assert compute_schedule_id(HOLDER.upper(), 3) == compute_schedule_id(HOLDER, 3)

    def test_distinct_per_holder_and_index(self):
        ids = {compute_schedule_id(holder, index) for holder in (HOLDER, OTHER) for index in range(50)}
        assert len(ids) == 100

    def test_format(self):
        schedule_id = compute_schedule_id(HOLDER, 0)
        assert schedule_id.startswith("0x")
        assert len(schedule_id) == 66

    def test_negative_index(self):
        with pytest.raises(ValueError):
            compute_schedule_id(HOLDER, -1)

    def test_matches_padded_address_encoding(self):
        payload = bytes.fromhex("ab" * 20).rjust(32, b"\0") + (7).to_bytes(32, "big")
        assert compute_schedule_id(HOLDER, 7) == "0x" + hashlib.sha3_256(payload).hexdigest()

    @pytest.mark.parametrize("holder", ["", "0x", "alice", "0x" + "zz" * 20, "0x" + "ab" * 19, "0x" + "ab" * 32])
    def test_rejects_malformed_holder(self, holder):
        with pytest.raises(ValueError):
            compute_schedule_id(holder, 0)


class TestVestingSchedule:
    def test_amount_total_is_immutable(self):
        schedule = make_schedule(ScheduleStore(), HOLDER, 100)
        with pytest.raises(AttributeError):
            schedule.amount_total = 200

    def test_outstanding(self):
        schedule = make_schedule(ScheduleStore(), HOLDER, 100)
        schedule.redeemed = 30
        assert schedule.outstanding == 70
        schedule.revoked = True
        assert schedule.outstanding == 0

    def test_round_trip(self):
        schedule = make_schedule(ScheduleStore(), HOLDER, 100, revocable=False)
        schedule.redeemed = 5
        assert VestingSchedule.from_dict(schedule.to_dict()) == schedule


class TestScheduleStore:
    def test_add_and_lookup(self):
        store = ScheduleStore()
        schedule = make_schedule(store, HOLDER, 100)
        store.add(schedule)

        assert store.get(schedule.schedule_id) is schedule
        assert store.require(schedule.schedule_id) is schedule
        assert schedule.schedule_id in store
        assert len(store) == 1
        assert store.total_outstanding == 100
        assert store.holder_count(HOLDER) == 1
        assert store.next_id_for_holder(HOLDER) == compute_schedule_id(HOLDER, 1)

    def test_missing_schedule(self):
        store = ScheduleStore()
        assert store.get(compute_schedule_id(HOLDER, 0)) is None
        with pytest.raises(ScheduleNotFoundError):
            store.require(compute_schedule_id(HOLDER, 0))
        assert store.last_for_holder(HOLDER) is None

    def test_creation_order_and_holder_enumeration(self):
        store = ScheduleStore()
        added = []
        for holder, amount in [(HOLDER, 1), (OTHER, 2), (HOLDER, 3)]:
            schedule = make_schedule(store, holder, amount)
            store.add(schedule)
            added.append(schedule)

        assert list(store) == added
        assert store.schedule_ids == tuple(s.schedule_id for s in added)
        assert store.id_at_index(1) == added[1].schedule_id
        assert store.schedules_for_holder(HOLDER) == [added[0], added[2]]
        assert store.last_for_holder(HOLDER) is added[2]
        assert store.get_by_holder_and_index(HOLDER, 1) is added[2]

    def test_id_at_index_bounds(self):
        store = ScheduleStore()
        with pytest.raises(IndexError):
            store.id_at_index(0)
        with pytest.raises(IndexError):
            store.id_at_index(-1)

    def test_rejects_out_of_order_index(self):
        store = ScheduleStore()
        schedule = VestingSchedule(
            schedule_id=compute_schedule_id(HOLDER, 1),
            redeemer=HOLDER,
            revocable=True,
            amount_total=10,
            index=1,
        )
        with pytest.raises(ValueError):
            store.add(schedule)

    def test_rejects_mismatched_id(self):
        store = ScheduleStore()
        schedule = VestingSchedule(
            schedule_id=compute_schedule_id(OTHER, 0),
            redeemer=HOLDER,
            revocable=True,
            amount_total=10,
            index=0,
        )
        with pytest.raises(ValueError):
            store.add(schedule)

    def test_outstanding_cannot_go_negative(self):
        store = ScheduleStore()
        store.add(make_schedule(store, HOLDER, 10))
        assert store.adjust_outstanding(-4) == 6
        with pytest.raises(ValueError):
            store.adjust_outstanding(-7)
        assert store.total_outstanding == 6

    def test_round_trip(self):
        store = ScheduleStore()
        first = make_schedule(store, HOLDER, 100)
        store.add(first)
        store.add(make_schedule(store, OTHER, 50))
        first.redeemed = 40
        store.adjust_outstanding(-40)

        restored = ScheduleStore.from_dict(store.to_dict())

        assert restored.schedule_ids == store.schedule_ids
        assert restored.total_outstanding == 110
        assert restored.require(first.schedule_id).redeemed == 40
        assert restored.holder_count(HOLDER) == 1

    def test_round_trip_rejects_inconsistent_total(self):
        store = ScheduleStore()
        store.add(make_schedule(store, HOLDER, 100))
        data = store.to_dict()
        data["total_outstanding"] = 99
        with pytest.raises(ValueError):
            ScheduleStore.from_dict(data)
