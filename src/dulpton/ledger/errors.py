"""Typed request-scoped failures raised by the ledger services.

Every precondition is checked before the first write, so raising one of
these never leaves a partial mutation behind.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any


class LedgerError(Exception):
    """Base class. ``status_code`` is the HTTP status the API layer maps to."""

    status_code: int = 400
    code: str = "ledger_error"
    default_message: str = "Request could not be completed"

    def __init__(self, message: str | None = None, **payload: Any) -> None:
        self.message = message or self.default_message
        self.payload = payload
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"detail": self.message, "code": self.code}
        for key, value in self.payload.items():
            body[key] = value.isoformat() if isinstance(value, datetime) else value
        return body


class Unauthenticated(LedgerError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Unauthorized"


class NotFound(LedgerError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class Forbidden(LedgerError):
    status_code = 403
    code = "forbidden"
    default_message = "Not authorized to act on this resource"


class OperationNotActive(LedgerError):
    code = "operation_not_active"
    default_message = "Mining operation is not active"


class NoRewardAvailable(LedgerError):
    code = "no_reward_available"
    default_message = "No rewards available yet"


class PoolInactive(LedgerError):
    code = "pool_inactive"
    default_message = "This staking pool is not active"


class BelowMinimum(LedgerError):
    code = "below_minimum"

    def __init__(self, min_stake: int) -> None:
        super().__init__(f"Minimum stake amount is {min_stake}", min_stake=min_stake)


class InsufficientBalance(LedgerError):
    code = "insufficient_balance"
    default_message = "Insufficient points"


class LockPeriodActive(LedgerError):
    code = "lock_period_active"

    def __init__(self, unlock_at: datetime) -> None:
        super().__init__(
            f"Cannot unstake until lock period ends on {unlock_at.date().isoformat()}",
            unlock_at=unlock_at,
        )
        self.unlock_at = unlock_at


class AlreadyClaimed(LedgerError):
    code = "already_claimed"
    default_message = "Daily reward already claimed today"


class ValidationError(LedgerError):
    status_code = 422
    code = "validation_error"
    default_message = "Validation error"


class Conflict(LedgerError):
    code = "conflict"
    default_message = "Resource already exists"
