"""
Exception hierarchy for the Bluejay vesting ledger and reference tokens.

Provides typed exceptions so callers can distinguish why a vesting operation
was rejected (unknown schedule, revoked schedule, missing authority, ...)
without parsing messages.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class BluejayError(Exception):
    """Base exception for all Bluejay errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried as-is
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


class ConfigurationError(BluejayError):
    """Raised when required configuration is missing or invalid."""
    pass


class StateFileError(BluejayError):
    """Raised when a persisted deployment cannot be read or fails its checksum."""
    pass


# ==================== Token Errors ====================


class TokenError(BluejayError):
    """Raised when a reference token operation fails.

    Examples: balance underflow, insufficient allowance, paused token,
    transfer of a non-transferable token, missing minter role.
    """
    pass


# ==================== Vesting Errors ====================


class VestingError(BluejayError):
    """Base class for vesting ledger failures."""
    pass


class ScheduleNotFoundError(VestingError):
    """Raised when an operation references a schedule that was never created."""

    def __init__(self, schedule_id: str, **kwargs: Any) -> None:
        super().__init__(f"Vesting schedule {schedule_id} not found", **kwargs)
        self.schedule_id = schedule_id


class ScheduleRevokedError(VestingError):
    """Raised when an operation targets an already revoked schedule."""

    def __init__(self, schedule_id: str, **kwargs: Any) -> None:
        super().__init__(f"Vesting schedule {schedule_id} is revoked", **kwargs)
        self.schedule_id = schedule_id


class ScheduleNotRevocableError(VestingError):
    """Raised when revoking a schedule created as non-revocable."""

    def __init__(self, schedule_id: str, **kwargs: Any) -> None:
        super().__init__(f"Vesting schedule {schedule_id} is not revocable", **kwargs)
        self.schedule_id = schedule_id


class UnauthorizedError(VestingError):
    """Raised when the caller lacks authority for the operation."""
    pass


class InsufficientEntitlementError(VestingError):
    """Raised when creating a schedule without enough claim tokens, or for a non-positive amount."""
    pass


class InsufficientVestedError(VestingError):
    """Raised when a release asks for more than is currently vested and unredeemed."""

    def __init__(self, message: str, requested: int = 0, available: int = 0, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.requested = requested
        self.available = available


class AlreadyClaimedError(VestingError):
    """Raised when redeem finds nothing new to pay out."""
    pass


class TransferFailedError(VestingError):
    """Raised when the reward-token payout fails; bookkeeping is rolled back."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class ReentrancyError(VestingError):
    """Raised when a payout callback re-enters a mutating ledger operation."""
    pass


class InsufficientFundsError(VestingError):
    """Raised when withdrawing more reward tokens than are unallocated."""
    pass
