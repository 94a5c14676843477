"""Daily login rewards and streak progression."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from dulpton.db.models import DailyReward
from dulpton.ledger.accrual import can_claim_today, daily_reward_amount, daily_reward_status, next_streak
from dulpton.ledger.context import Ledger, record_activity
from dulpton.ledger.errors import AlreadyClaimed, NotFound

logger = structlog.get_logger()


@dataclass
class DailyClaim:
    day: int
    amount: int
    total_points: int


async def get_daily_reward_status(ledger: Ledger, user_id: int) -> dict[str, Any]:
    """Claim history plus the projection the dashboard renders."""
    user = await ledger.store.get_user(user_id)
    if user is None:
        raise NotFound("User not found")
    rewards = await ledger.store.get_daily_rewards(user_id)
    return daily_reward_status(user, rewards, ledger.clock.now())


async def claim_daily_reward(ledger: Ledger, user_id: int) -> DailyClaim:
    """Claim today's reward and advance the streak.

    Raises:
        NotFound: user missing.
        AlreadyClaimed: already claimed this calendar day.
    """
    async with ledger.locks.hold(user_id), ledger.store.transaction():
        user = await ledger.store.get_user(user_id)
        if user is None:
            raise NotFound("User not found")

        now = ledger.clock.now()
        if not can_claim_today(user.last_daily_reward_claim, now):
            raise AlreadyClaimed

        streak = next_streak(user.daily_rewards_streak, user.last_daily_reward_claim, now)
        amount = daily_reward_amount(streak)

        await ledger.store.create_daily_reward(
            DailyReward(user_id=user_id, day=streak, amount=amount, claimed_at=now)
        )
        updated_user = await ledger.store.update_user(
            user_id,
            {
                "points": user.points + amount,
                "last_daily_reward_claim": now,
                "daily_rewards_streak": streak,
            },
        )
        await record_activity(ledger, user_id, "daily", amount, f"Day {streak} Reward")

    logger.info("daily_reward_claimed", user_id=user_id, day=streak, amount=amount)
    return DailyClaim(day=streak, amount=amount, total_points=updated_user.points)  # type: ignore[union-attr]
