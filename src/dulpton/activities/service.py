"""Activity history reads."""

from __future__ import annotations

from dulpton.db.models import UserActivity
from dulpton.ledger.context import Ledger


async def list_activities(ledger: Ledger, user_id: int, limit: int = 10) -> list[UserActivity]:
    """Most recent activity rows for ``user_id``, newest first."""
    return await ledger.store.get_user_activities(user_id, limit=max(limit, 0))
