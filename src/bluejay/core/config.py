"""
Bluejay Vesting Configuration

All settings are read from environment variables at import time. Token
amounts are given in whole tokens and converted to base units with the
reward token's decimals.
"""

from __future__ import annotations

import logging
import os
from enum import Enum

from bluejay.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class NetworkType(Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"


def _get_int(env_var: str, default: int, minimum: int = 0) -> int:
    """Read a non-negative integer setting from the environment."""
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        value = int(raw.replace("_", ""))
    except ValueError as exc:
        raise ConfigurationError(
            f"{env_var} must be an integer, got {raw!r}",
            details={"env_var": env_var, "value": raw},
        ) from exc
    if value < minimum:
        raise ConfigurationError(
            f"{env_var} must be >= {minimum}, got {value}",
            details={"env_var": env_var, "value": value},
        )
    return value


def _get_network(env_var: str) -> NetworkType:
    raw = os.getenv(env_var, NetworkType.TESTNET.value).strip().lower()
    try:
        return NetworkType(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"{env_var} must be one of 'testnet' or 'mainnet', got {raw!r}",
            details={"env_var": env_var, "value": raw},
        ) from exc


NETWORK = _get_network("BLUEJAY_NETWORK")

# Supply at which every schedule is fully vested (whole tokens)
VESTING_SUPPLY_CAP = _get_int("BLUEJAY_VESTING_SUPPLY_CAP", 100_000_000, minimum=1)
REWARD_DECIMALS = _get_int("BLUEJAY_REWARD_DECIMALS", 18)
REWARD_INITIAL_SUPPLY = _get_int("BLUEJAY_REWARD_INITIAL_SUPPLY", 1_000_000)

STATE_FILE = os.getenv(
    "BLUEJAY_STATE_FILE",
    os.path.join(os.getcwd(), "data", "vesting_state.json"),
)
LOG_LEVEL = os.getenv("BLUEJAY_LOG_LEVEL", "INFO").strip().upper() or "INFO"
LOG_FILE = os.getenv("BLUEJAY_LOG_FILE", "").strip() or None

if REWARD_DECIMALS > 18:
    raise ConfigurationError(
        f"BLUEJAY_REWARD_DECIMALS must be <= 18, got {REWARD_DECIMALS}",
        details={"env_var": "BLUEJAY_REWARD_DECIMALS", "value": REWARD_DECIMALS},
    )


def get_supply_cap_base_units(decimals: int = REWARD_DECIMALS, cap_tokens: int = VESTING_SUPPLY_CAP) -> int:
    """Vesting supply cap expressed in reward-token base units."""
    return cap_tokens * 10**decimals


def to_base_units(tokens: int, decimals: int = REWARD_DECIMALS) -> int:
    """Convert a whole-token amount to base units."""
    return tokens * 10**decimals
