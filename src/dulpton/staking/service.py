"""Staking: lock points into a pool, collect interest, withdraw."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from dulpton.db.models import StakingPool, User, UserStake
from dulpton.ledger.accrual import compute_staking_reward, is_locked, stake_end_at
from dulpton.ledger.clock import ensure_utc
from dulpton.ledger.context import Ledger, record_activity
from dulpton.ledger.errors import (
    BelowMinimum,
    Forbidden,
    InsufficientBalance,
    LockPeriodActive,
    NoRewardAvailable,
    NotFound,
    PoolInactive,
    ValidationError,
)

logger = structlog.get_logger()


@dataclass
class StakeRewardCollection:
    reward: int
    total_points: int


@dataclass
class Unstaked:
    unstaked: int
    reward: int
    total_returned: int


async def list_pools(ledger: Ledger) -> list[StakingPool]:
    return await ledger.store.get_staking_pools()


async def list_stakes(ledger: Ledger, user_id: int) -> list[UserStake]:
    return await ledger.store.get_user_stakes(user_id)


async def _owned_stake(ledger: Ledger, user_id: int, stake_id: int, action: str) -> tuple[UserStake, StakingPool, User]:
    """Load a stake with its pool and owner, enforcing ownership."""
    stake = await ledger.store.get_user_stake(stake_id)
    if stake is None:
        raise NotFound("Stake not found")
    if stake.user_id != user_id:
        raise Forbidden(f"Not authorized to {action}")
    pool = await ledger.store.get_staking_pool(stake.pool_id)
    if pool is None:
        raise NotFound("Staking pool not found")
    user = await ledger.store.get_user(user_id)
    if user is None:
        raise NotFound("User not found")
    return stake, pool, user


async def create_stake(ledger: Ledger, user_id: int, pool_id: int, amount: int) -> UserStake:
    """Move ``amount`` from the user's balance into a new stake.

    Raises:
        ValidationError: amount is not positive.
        NotFound: user or pool missing.
        PoolInactive / BelowMinimum / InsufficientBalance: precondition failures.
    """
    if amount <= 0:
        raise ValidationError("Stake amount must be positive")

    async with ledger.locks.hold(user_id), ledger.store.transaction():
        user = await ledger.store.get_user(user_id)
        pool = await ledger.store.get_staking_pool(pool_id)
        if user is None or pool is None:
            raise NotFound("User or staking pool not found")
        if not pool.is_active:
            raise PoolInactive
        if amount < pool.min_stake:
            raise BelowMinimum(pool.min_stake)
        if user.points < amount:
            raise InsufficientBalance

        now = ledger.clock.now()
        stake = await ledger.store.create_user_stake(
            UserStake(
                user_id=user_id,
                pool_id=pool.id,
                amount=amount,
                started_at=now,
                end_at=stake_end_at(now, pool.lock_period_days),
                last_reward_at=None,
            )
        )
        await ledger.store.update_user(
            user_id,
            {"points": user.points - amount, "staked_points": user.staked_points + amount},
        )
        await record_activity(ledger, user_id, "staking", -amount, f"Staked in {pool.name}")

    logger.info("stake_created", user_id=user_id, stake_id=stake.id, pool_id=pool.id, amount=amount)
    return stake


async def collect_stake_reward(ledger: Ledger, user_id: int, stake_id: int) -> StakeRewardCollection:
    """Credit accrued interest without touching the principal."""
    async with ledger.locks.hold(user_id), ledger.store.transaction():
        stake, pool, user = await _owned_stake(ledger, user_id, stake_id, "collect rewards for this stake")

        now = ledger.clock.now()
        reward = compute_staking_reward(stake, pool, now)
        if reward <= 0:
            raise NoRewardAvailable

        updated_user = await ledger.store.update_user(user_id, {"points": user.points + reward})
        await ledger.store.update_user_stake(stake.id, {"last_reward_at": now})
        await record_activity(ledger, user_id, "staking", reward, f"Staking Reward from {pool.name}")

    return StakeRewardCollection(reward=reward, total_points=updated_user.points)  # type: ignore[union-attr]


async def unstake(ledger: Ledger, user_id: int, stake_id: int) -> Unstaked:
    """Return principal plus outstanding interest and delete the stake.

    Raises:
        LockPeriodActive: the pool's lock has not elapsed yet.
    """
    async with ledger.locks.hold(user_id), ledger.store.transaction():
        stake, pool, user = await _owned_stake(ledger, user_id, stake_id, "unstake this position")

        now = ledger.clock.now()
        if is_locked(stake, now):
            raise LockPeriodActive(ensure_utc(stake.end_at))  # type: ignore[arg-type]

        principal = stake.amount
        reward = compute_staking_reward(stake, pool, now)
        await ledger.store.update_user(
            user_id,
            {
                "points": user.points + principal + reward,
                "staked_points": user.staked_points - principal,
            },
        )
        await record_activity(ledger, user_id, "staking", principal, f"Unstaked from {pool.name}")
        if reward > 0:
            await record_activity(ledger, user_id, "staking", reward, f"Staking Reward from {pool.name}")
        await ledger.store.delete_user_stake(stake.id)

    logger.info("stake_withdrawn", user_id=user_id, stake_id=stake_id, amount=principal, reward=reward)
    return Unstaked(unstaked=principal, reward=reward, total_returned=principal + reward)
