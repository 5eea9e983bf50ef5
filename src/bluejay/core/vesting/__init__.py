"""
Supply-driven vesting ledger.

- ScheduleStore: schedule records, per-holder counts and enumeration
- RedemptionRateOracle: vesting completion from reward-token supply
- VestingLedger: schedule creation, release, redeem, revoke and withdraw
- VestingDeployment: tokens + ledger bundle with JSON persistence
"""

from .events import VestingEvent
from .interfaces import ClaimTokenService, RewardTokenService
from .ledger import VestingLedger
from .persistence import VestingDeployment, load_deployment, save_deployment
from .rate_oracle import RedemptionRateOracle
from .schedule import VestingSchedule
from .store import ScheduleStore, compute_schedule_id

__all__ = [
    "ClaimTokenService",
    "RewardTokenService",
    "RedemptionRateOracle",
    "ScheduleStore",
    "VestingDeployment",
    "VestingEvent",
    "VestingLedger",
    "VestingSchedule",
    "compute_schedule_id",
    "load_deployment",
    "save_deployment",
]
