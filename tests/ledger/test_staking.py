"""Staking commands against the in-memory store."""

from datetime import timedelta

import pytest

from dulpton.activities.service import list_activities
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
from dulpton.staking.service import collect_stake_reward, create_stake, list_pools, list_stakes, unstake

STANDARD, PREMIUM, DEFI = 1, 2, 3


async def test_pools_are_listed_including_inactive(ledger):
    pools = await list_pools(ledger)
    assert [(p.id, p.is_active) for p in pools] == [(STANDARD, True), (PREMIUM, True), (DEFI, False)]


async def test_create_stake_moves_points(ledger, make_user):
    user = await make_user(points=1000)

    stake = await create_stake(ledger, user.id, STANDARD, 400)

    assert stake.amount == 400
    assert stake.end_at is None
    stored = await ledger.store.get_user(user.id)
    assert (stored.points, stored.staked_points) == (600, 400)
    [activity] = await list_activities(ledger, user.id)
    assert (activity.type, activity.amount, activity.description) == ("staking", -400, "Staked in Standard Pool")
    assert [s.id for s in await list_stakes(ledger, user.id)] == [stake.id]


async def test_locked_pool_sets_end(ledger, make_user):
    user = await make_user(points=1000)
    stake = await create_stake(ledger, user.id, PREMIUM, 500)
    assert stake.end_at == ledger.clock.now() + timedelta(days=7)


@pytest.mark.parametrize(
    ("pool_id", "amount", "error"),
    [
        (STANDARD, 0, ValidationError),
        (STANDARD, -5, ValidationError),
        (99, 100, NotFound),
        (DEFI, 1000, PoolInactive),
        (STANDARD, 50, BelowMinimum),
        (STANDARD, 5000, InsufficientBalance),
    ],
)
async def test_rejected_stake_writes_nothing(ledger, make_user, pool_id, amount, error):
    user = await make_user(points=1000)
    with pytest.raises(error):
        await create_stake(ledger, user.id, pool_id, amount)
    stored = await ledger.store.get_user(user.id)
    assert (stored.points, stored.staked_points) == (1000, 0)
    assert await list_stakes(ledger, user.id) == []
    assert await list_activities(ledger, user.id) == []


async def test_below_minimum_reports_minimum(ledger, make_user):
    user = await make_user(points=1000)
    with pytest.raises(BelowMinimum) as excinfo:
        await create_stake(ledger, user.id, PREMIUM, 100)
    assert excinfo.value.to_dict()["min_stake"] == 500
    assert "500" in excinfo.value.message


async def test_collect_reward_keeps_principal(ledger, make_user):
    user = await make_user(points=1000)
    stake = await create_stake(ledger, user.id, PREMIUM, 1000)
    ledger.clock.advance(days=36.5)

    result = await collect_stake_reward(ledger, user.id, stake.id)

    assert result.reward == 5
    assert result.total_points == 5
    stored_stake = await ledger.store.get_user_stake(stake.id)
    assert stored_stake.amount == 1000
    assert stored_stake.last_reward_at == ledger.clock.now()
    assert (await ledger.store.get_user(user.id)).staked_points == 1000


async def test_collect_too_soon(ledger, make_user):
    user = await make_user(points=1000)
    stake = await create_stake(ledger, user.id, STANDARD, 1000)
    ledger.clock.advance(hours=1)
    with pytest.raises(NoRewardAvailable):
        await collect_stake_reward(ledger, user.id, stake.id)


async def test_unstake_during_lock_is_rejected(ledger, make_user):
    user = await make_user(points=1000)
    stake = await create_stake(ledger, user.id, PREMIUM, 500)
    ledger.clock.advance(days=3)

    with pytest.raises(LockPeriodActive) as excinfo:
        await unstake(ledger, user.id, stake.id)

    assert excinfo.value.message == "Cannot unstake until lock period ends on 2026-03-09"
    assert excinfo.value.unlock_at == stake.end_at
    assert await ledger.store.get_user_stake(stake.id) is not None
    assert (await ledger.store.get_user(user.id)).points == 500


async def test_unstake_returns_principal_and_reward(ledger, make_user):
    user = await make_user(points=1000)
    stake = await create_stake(ledger, user.id, PREMIUM, 1000)
    ledger.clock.advance(days=36.5)

    result = await unstake(ledger, user.id, stake.id)

    assert (result.unstaked, result.reward, result.total_returned) == (1000, 5, 1005)
    stored = await ledger.store.get_user(user.id)
    assert (stored.points, stored.staked_points) == (1005, 0)
    assert await ledger.store.get_user_stake(stake.id) is None
    amounts = sorted(a.amount for a in await list_activities(ledger, user.id))
    assert amounts == [-1000, 5, 1000]


async def test_unstake_without_reward_records_single_row(ledger, make_user):
    user = await make_user(points=100)
    stake = await create_stake(ledger, user.id, STANDARD, 100)
    result = await unstake(ledger, user.id, stake.id)
    assert result.reward == 0
    activities = await list_activities(ledger, user.id)
    assert [a.amount for a in activities if a.amount > 0] == [100]


async def test_other_users_stake_is_forbidden(ledger, make_user):
    owner = await make_user(points=1000)
    intruder = await make_user()
    stake = await create_stake(ledger, owner.id, STANDARD, 500)

    with pytest.raises(Forbidden):
        await unstake(ledger, intruder.id, stake.id)
    with pytest.raises(Forbidden):
        await collect_stake_reward(ledger, intruder.id, stake.id)


async def test_missing_stake(ledger, make_user):
    user = await make_user()
    with pytest.raises(NotFound, match="Stake not found"):
        await unstake(ledger, user.id, 42)
