"""Reward accrual math.

Pure functions over entity snapshots and the current time. Nothing here
touches the store; the services validate, call into this module, then write.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from dulpton.db.models import DailyReward, MiningOperation, StakingPool, User, UserStake
from dulpton.ledger.clock import ensure_utc
from dulpton.ledger.errors import OperationNotActive

# Points per hour per unit of mining power is power / MINING_RATE_DIVISOR.
MINING_RATE_DIVISOR = 25

# apy_rate is stored as APY x 100, so 500 / 10000 = 0.05.
APY_DIVISOR = 10_000

DAYS_PER_YEAR = 365

DAILY_REWARDS: dict[int, int] = {
    1: 50,
    2: 75,
    3: 100,
    4: 125,
    5: 150,
    6: 200,
    7: 500,
}
DAILY_REWARD_FALLBACK = 50
MAX_STREAK = 7

# Rolling window for streak continuity, independent of calendar-day claim gating.
STREAK_RESET_GAP = timedelta(milliseconds=86_400_000)

_HOUR = timedelta(hours=1)
_DAY = timedelta(days=1)


# ---------------------------------------------------------------------------
# Mining
# ---------------------------------------------------------------------------


def mining_hourly_rate(mining_power: int) -> float:
    """Fractional points per hour for a given mining power."""
    return mining_power / MINING_RATE_DIVISOR


def compute_mining_reward(user: User, operation: MiningOperation, now: datetime) -> int:
    """Points earned since the last collection (or since start).

    Any positive elapsed time yields at least 1 point. Returns 0 when no time
    has elapsed; the caller treats that as nothing to collect.

    Raises:
        OperationNotActive: if the operation is stopped.
    """
    if not operation.is_active:
        raise OperationNotActive
    last = ensure_utc(operation.last_reward_at or operation.started_at)
    elapsed_hours = (ensure_utc(now) - last) / _HOUR  # type: ignore[operator]

    reward = math.floor(mining_hourly_rate(user.mining_power) * elapsed_hours)
    if elapsed_hours > 0 and reward == 0:
        reward = 1
    return max(reward, 0)


# ---------------------------------------------------------------------------
# Staking
# ---------------------------------------------------------------------------


def compute_staking_reward(stake: UserStake, pool: StakingPool, now: datetime) -> int:
    """Simple-interest reward since the last collection (or since the stake began).

    No minimum: short intervals legitimately round down to 0.
    """
    last = ensure_utc(stake.last_reward_at or stake.started_at)
    elapsed_days = (ensure_utc(now) - last) / _DAY  # type: ignore[operator]
    reward = math.floor(stake.amount * (pool.apy_rate / APY_DIVISOR) * (elapsed_days / DAYS_PER_YEAR))
    return max(reward, 0)


def stake_end_at(started_at: datetime, lock_period_days: int) -> datetime | None:
    """Unlock instant for a locked pool, ``None`` when the pool has no lock."""
    if lock_period_days > 0:
        return ensure_utc(started_at) + timedelta(days=lock_period_days)  # type: ignore[operator]
    return None


def is_locked(stake: UserStake, now: datetime) -> bool:
    end_at = ensure_utc(stake.end_at)
    return end_at is not None and ensure_utc(now) < end_at  # type: ignore[operator]


# ---------------------------------------------------------------------------
# Daily rewards
# ---------------------------------------------------------------------------


def _calendar_day(dt: datetime) -> date:
    return ensure_utc(dt).date()  # type: ignore[union-attr]


def can_claim_today(last_claim: datetime | None, now: datetime) -> bool:
    """Claimable once per UTC calendar day."""
    if last_claim is None:
        return True
    return _calendar_day(now) > _calendar_day(last_claim)


def next_streak(streak: int, last_claim: datetime | None, now: datetime) -> int:
    """Streak position after a successful claim at ``now``.

    A gap of more than 24h since the previous claim timestamp restarts the
    streak, even when the claim itself falls on the next calendar day.
    """
    current = streak or 0
    if last_claim is not None and ensure_utc(now) - ensure_utc(last_claim) > STREAK_RESET_GAP:  # type: ignore[operator]
        current = 0
    return min(current + 1, MAX_STREAK)


def daily_reward_amount(day: int) -> int:
    return DAILY_REWARDS.get(day, DAILY_REWARD_FALLBACK)


def next_reset_at(now: datetime) -> datetime:
    """Midnight UTC at the start of the next calendar day."""
    tomorrow = _calendar_day(now) + _DAY
    return datetime.combine(tomorrow, time.min, tzinfo=timezone.utc)


def daily_reward_status(user: User, rewards: list[DailyReward], now: datetime) -> dict[str, Any]:
    """Read-only projection of the daily-reward state machine."""
    claimable = can_claim_today(user.last_daily_reward_claim, now)
    current_streak = user.daily_rewards_streak or 0
    day_today = current_streak + 1 if claimable else current_streak
    return {
        "rewards": rewards,
        "current_streak": current_streak,
        "can_claim_today": claimable,
        "day_today": min(day_today, MAX_STREAK),
        "rewards_by_day": dict(DAILY_REWARDS),
        "next_reset": next_reset_at(now),
        "claimed_days": [reward.day for reward in rewards],
    }
