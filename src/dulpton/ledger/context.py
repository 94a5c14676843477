"""Collaborators shared by every ledger command, plus the activity sink."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from dulpton.db.models import UserActivity
from dulpton.ledger.clock import Clock
from dulpton.ledger.locks import UserLocks
from dulpton.storage.base import EntityStore

logger = structlog.get_logger()

ACTIVITY_TYPES = frozenset({"mining", "staking", "referral", "purchase", "daily"})


@dataclass
class Ledger:
    """Store, clock and lock registry for one unit of work.

    Built per request by the API layer; tests build one around a
    ``MemoryEntityStore`` and a ``FixedClock``.
    """

    store: EntityStore
    clock: Clock = field(default_factory=Clock)
    locks: UserLocks = field(default_factory=UserLocks)


async def record_activity(
    ledger: Ledger,
    user_id: int,
    activity_type: str,
    amount: int,
    description: str,
) -> UserActivity:
    """Append the audit row for a balance change. ``amount`` is signed."""
    if activity_type not in ACTIVITY_TYPES:
        msg = f"Unknown activity type: {activity_type}"
        raise ValueError(msg)
    activity = await ledger.store.create_user_activity(
        UserActivity(
            user_id=user_id,
            type=activity_type,
            amount=amount,
            description=description,
            created_at=ledger.clock.now(),
        )
    )
    logger.info(
        "balance_changed",
        user_id=user_id,
        activity_type=activity_type,
        amount=amount,
        description=description,
    )
    return activity
