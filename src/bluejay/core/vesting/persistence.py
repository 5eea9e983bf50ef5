"""
Deployment persistence for the vesting ledger.

A deployment is the claim token, the reward token and the ledger that pays
one out against the other. It is saved as a single JSON document:

- metadata (timestamp, schedule count, sha256 checksum of the payload)
- deployment payload (tokens + ledger state)

Writes go to a temp file that is fsynced and then atomically renamed over the
previous state, so a crash never leaves a half-written file behind.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .. import config
from ..contracts import ClaimToken, RewardToken
from ..exceptions import StateFileError
from ..logging_config import short_address
from .ledger import VestingLedger
from .rate_oracle import RedemptionRateOracle

logger = logging.getLogger(__name__)

STATE_VERSION = "1.0"


@dataclass
class VestingDeployment:
    """The three contracts of a Bluejay vesting deployment."""

    claim_token: ClaimToken
    reward_token: RewardToken
    ledger: VestingLedger

    @classmethod
    def create(
        cls,
        owner: str,
        initial_supply: int | None = None,
        decimals: int = config.REWARD_DECIMALS,
        supply_cap: int | None = None,
    ) -> "VestingDeployment":
        """
        Deploy both tokens and the ledger with `owner` as administrator.

        The reward token is initialized by the owner, which mints the initial
        supply to the owner and makes the owner a minter.
        """
        claim_token = ClaimToken(owner=owner, decimals=decimals)
        reward_token = RewardToken(owner=owner, decimals=decimals)
        reward_token.initialize(owner, initial_supply)
        oracle = RedemptionRateOracle(reward_token, supply_cap=supply_cap)
        ledger = VestingLedger(claim_token, reward_token, owner=owner, oracle=oracle)
        logger.info(
            "Vesting deployment created",
            extra={
                "event": "vesting.deployment_created",
                "owner": short_address(owner),
                "ledger": short_address(ledger.address),
                "reward_token": short_address(reward_token.address),
                "claim_token": short_address(claim_token.address),
            }
        )
        return cls(claim_token=claim_token, reward_token=reward_token, ledger=ledger)

    def to_dict(self) -> dict[str, Any]:
        return {
            "claim_token": self.claim_token.to_dict(),
            "reward_token": self.reward_token.to_dict(),
            "ledger": self.ledger.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VestingDeployment":
        claim_token = ClaimToken.from_dict(data["claim_token"])
        reward_token = RewardToken.from_dict(data["reward_token"])
        ledger = VestingLedger.from_dict(data["ledger"], claim_token, reward_token)
        return cls(claim_token=claim_token, reward_token=reward_token, ledger=ledger)


def _calculate_checksum(payload_json: str) -> str:
    return hashlib.sha256(payload_json.encode("utf-8")).hexdigest()


def save_deployment(path: str | os.PathLike, deployment: VestingDeployment) -> str:
    """
    Atomically write the deployment to path.

    Returns:
        The checksum of the saved payload

    Raises:
        StateFileError: If the file cannot be written
    """
    target = Path(path)
    payload = deployment.to_dict()
    payload_json = json.dumps(payload, indent=2, sort_keys=True)
    checksum = _calculate_checksum(payload_json)
    package = {
        "metadata": {
            "timestamp": time.time(),
            "version": STATE_VERSION,
            "schedule_count": deployment.ledger.get_vesting_schedules_count(),
            "checksum": checksum,
        },
        "deployment": payload,
    }

    temp_file = target.with_name(target.name + ".tmp")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(temp_file, "w", encoding="utf-8") as f:
            f.write(json.dumps(package, indent=2, sort_keys=True))
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_file, target)
    except OSError as e:
        logger.error(
            "Failed to save vesting deployment",
            extra={"event": "vesting.state_save_failed", "path": str(target), "error": str(e)},
        )
        raise StateFileError(f"Failed to save state to {target}: {e}") from e

    logger.debug(
        "Vesting deployment saved",
        extra={"event": "vesting.state_saved", "path": str(target), "checksum": checksum[:8]},
    )
    return checksum


def load_deployment(path: str | os.PathLike) -> VestingDeployment:
    """
    Load and verify a deployment saved by save_deployment().

    Raises:
        StateFileError: If the file is missing, malformed or fails its checksum
    """
    target = Path(path)
    if not target.exists():
        raise StateFileError(
            f"No state file at {target}; run 'init' first",
            details={"path": str(target)},
        )
    try:
        with open(target, "r", encoding="utf-8") as f:
            package = json.load(f)
    except json.JSONDecodeError as e:
        raise StateFileError(f"State file {target} is not valid JSON: {e}") from e
    except OSError as e:
        raise StateFileError(f"Failed to read state file {target}: {e}") from e

    metadata = package.get("metadata", {})
    payload = package.get("deployment")
    if not isinstance(payload, dict):
        raise StateFileError(f"State file {target} has no deployment payload")

    expected = metadata.get("checksum")
    actual = _calculate_checksum(json.dumps(payload, indent=2, sort_keys=True))
    if expected and expected != actual:
        logger.error(
            "State file checksum mismatch",
            extra={"event": "vesting.state_corrupted", "path": str(target)},
        )
        raise StateFileError(
            f"State file {target} failed checksum verification",
            details={"expected": expected, "actual": actual},
        )

    try:
        return VestingDeployment.from_dict(payload)
    except (KeyError, TypeError, ValueError) as e:
        raise StateFileError(f"State file {target} is inconsistent: {e}") from e
