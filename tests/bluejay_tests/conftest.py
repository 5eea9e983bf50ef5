import sys
from pathlib import Path

import pytest

# shared vesting_helpers module
sys.path.insert(0, str(Path(__file__).resolve().parent))

from bluejay.core.contracts import ClaimToken, RewardToken
from bluejay.core.vesting import RedemptionRateOracle, VestingLedger

from vesting_helpers import DECIMALS, OWNER, SUPPLY_CAP, TOKEN


@pytest.fixture
def claim_token():
    """eBLU with OWNER as issuer."""
    return ClaimToken(owner=OWNER, decimals=DECIMALS)


@pytest.fixture
def reward_token():
    """BLU initialized by OWNER with 1,000,000 BLU (1% of the vesting cap)."""
    token = RewardToken(owner=OWNER, decimals=DECIMALS)
    token.initialize(OWNER, 1_000_000 * TOKEN)
    return token


@pytest.fixture
def ledger(claim_token, reward_token):
    oracle = RedemptionRateOracle(reward_token, supply_cap=SUPPLY_CAP)
    return VestingLedger(claim_token, reward_token, owner=OWNER, oracle=oracle)


@pytest.fixture
def funded_ledger(ledger, reward_token):
    """Ledger holding 100,000 BLU; supply becomes 1,100,000 BLU, still 1% of the cap."""
    reward_token.mint(OWNER, ledger.address, 100_000 * TOKEN)
    return ledger
