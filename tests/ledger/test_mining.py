"""Mining lifecycle against the in-memory store."""

import asyncio
from datetime import timedelta

import pytest

from dulpton.activities.service import list_activities
from dulpton.ledger.errors import NoRewardAvailable, NotFound, OperationNotActive
from dulpton.mining.service import collect_mining, get_mining_operation, start_mining, stop_mining


async def test_first_access_creates_active_operation(ledger, make_user):
    user = await make_user()
    operation = await get_mining_operation(ledger, user.id)
    assert operation.is_active
    assert operation.session_earnings == 0
    assert operation.started_at == ledger.clock.now()
    # second read returns the same row
    assert (await get_mining_operation(ledger, user.id)).id == operation.id


async def test_collect_after_two_hours(ledger, make_user):
    user = await make_user()
    await start_mining(ledger, user.id)
    ledger.clock.advance(hours=2)

    result = await collect_mining(ledger, user.id)

    assert result.reward == 4
    assert result.total_points == 104
    assert result.operation.session_earnings == 4
    assert result.operation.last_reward_at == ledger.clock.now()
    stored = await ledger.store.get_user(user.id)
    assert stored.points == 104
    assert stored.last_mining_reward == ledger.clock.now()
    [activity] = await list_activities(ledger, user.id)
    assert (activity.type, activity.amount, activity.description) == ("mining", 4, "Mining Reward")


async def test_immediate_second_collect_has_nothing(ledger, make_user):
    user = await make_user()
    await start_mining(ledger, user.id)
    ledger.clock.advance(hours=1)
    await collect_mining(ledger, user.id)

    with pytest.raises(NoRewardAvailable):
        await collect_mining(ledger, user.id)
    assert (await ledger.store.get_user(user.id)).points == 102


async def test_one_minute_collects_one_point(ledger, make_user):
    user = await make_user()
    await start_mining(ledger, user.id)
    ledger.clock.advance(minutes=1)
    assert (await collect_mining(ledger, user.id)).reward == 1


async def test_session_earnings_accumulate_and_reset_on_restart(ledger, make_user):
    user = await make_user()
    await start_mining(ledger, user.id)
    ledger.clock.advance(hours=1)
    await collect_mining(ledger, user.id)
    ledger.clock.advance(hours=1)
    result = await collect_mining(ledger, user.id)
    assert result.operation.session_earnings == 4

    restarted = await start_mining(ledger, user.id)
    assert restarted.session_earnings == 0
    assert restarted.started_at == ledger.clock.now()


async def test_stopped_operation_cannot_collect(ledger, make_user):
    user = await make_user()
    await start_mining(ledger, user.id)
    ledger.clock.advance(hours=3)
    stopped = await stop_mining(ledger, user.id)
    assert not stopped.is_active

    with pytest.raises(OperationNotActive):
        await collect_mining(ledger, user.id)
    assert (await ledger.store.get_user(user.id)).points == 100
    assert await list_activities(ledger, user.id) == []


async def test_stop_only_flips_active_flag(ledger, make_user):
    user = await make_user()
    started = await start_mining(ledger, user.id)
    ledger.clock.advance(hours=2)
    collected = await collect_mining(ledger, user.id)
    ledger.clock.advance(hours=1)

    stopped = await stop_mining(ledger, user.id)

    assert not stopped.is_active
    assert stopped.session_earnings == collected.operation.session_earnings == 4
    assert stopped.last_reward_at == collected.operation.last_reward_at
    assert stopped.started_at == started.started_at


async def test_collect_after_restart_counts_from_last_collection(ledger, make_user):
    user = await make_user()
    await start_mining(ledger, user.id)
    ledger.clock.advance(hours=2)
    first = await collect_mining(ledger, user.id)
    ledger.clock.advance(hours=1)
    await stop_mining(ledger, user.id)
    ledger.clock.advance(hours=2)
    await start_mining(ledger, user.id)
    ledger.clock.advance(hours=1)

    result = await collect_mining(ledger, user.id)

    # four hours since the first collection, stopped time included
    assert ledger.clock.now() - first.operation.last_reward_at == timedelta(hours=4)
    assert result.reward == 8
    assert result.operation.session_earnings == 8
    assert result.total_points == 112


async def test_stop_without_operation(ledger, make_user):
    user = await make_user()
    with pytest.raises(NotFound, match="No active mining operation"):
        await stop_mining(ledger, user.id)


async def test_collect_without_operation(ledger, make_user):
    user = await make_user()
    with pytest.raises(NotFound):
        await collect_mining(ledger, user.id)


async def test_higher_power_mines_faster(ledger, make_user):
    user = await make_user(mining_power=75)
    await start_mining(ledger, user.id)
    ledger.clock.advance(timedelta(hours=10))
    assert (await collect_mining(ledger, user.id)).reward == 30


async def test_concurrent_collects_credit_once(ledger, make_user):
    user = await make_user()
    await start_mining(ledger, user.id)
    ledger.clock.advance(hours=2)

    results = await asyncio.gather(
        collect_mining(ledger, user.id),
        collect_mining(ledger, user.id),
        return_exceptions=True,
    )

    assert sorted(type(r).__name__ for r in results) == ["MiningCollection", "NoRewardAvailable"]
    assert (await ledger.store.get_user(user.id)).points == 104
