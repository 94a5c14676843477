"""Store purchases against the in-memory store."""

from datetime import timedelta

import pytest

from dulpton.activities.service import list_activities
from dulpton.ledger.errors import InsufficientBalance, NotFound
from dulpton.mining.service import collect_mining, start_mining
from dulpton.shop.service import list_inventory, list_items, purchase_item

PROCESSOR, COOLING, OPTIMIZER, BADGE, COURSE, BOOSTER = range(1, 7)


async def test_catalog(ledger):
    items = await list_items(ledger)
    assert [i.price for i in items] == [250, 350, 500, 150, 400, 300]


async def test_processor_boosts_mining_power(ledger, make_user):
    user = await make_user(points=1000)

    purchase = await purchase_item(ledger, user.id, PROCESSOR)

    assert purchase.remaining_points == 750
    assert purchase.mining_power == 65
    assert purchase.inventory_item.expires_at is None
    stored = await ledger.store.get_user(user.id)
    assert (stored.points, stored.mining_power) == (750, 65)
    [activity] = await list_activities(ledger, user.id)
    assert (activity.type, activity.amount, activity.description) == (
        "purchase",
        -250,
        "Purchased Advanced Processor",
    )


async def test_boost_compounds(ledger, make_user):
    user = await make_user(points=1000)
    await purchase_item(ledger, user.id, PROCESSOR)
    second = await purchase_item(ledger, user.id, PROCESSOR)
    assert second.mining_power == 84
    assert len(await list_inventory(ledger, user.id)) == 2


async def test_boosted_power_feeds_mining(ledger, make_user):
    user = await make_user(points=1000, mining_power=50)
    await purchase_item(ledger, user.id, PROCESSOR)
    await start_mining(ledger, user.id)
    ledger.clock.advance(hours=5)
    # 65 / 25 * 5 = 13
    assert (await collect_mining(ledger, user.id)).reward == 13


@pytest.mark.parametrize("item_id", [COOLING, OPTIMIZER, BADGE, COURSE])
async def test_inert_items_only_debit(ledger, make_user, item_id):
    user = await make_user(points=1000)
    purchase = await purchase_item(ledger, user.id, item_id)
    assert purchase.mining_power == 50
    assert purchase.remaining_points == 1000 - purchase.item.price
    assert purchase.inventory_item.is_active


async def test_booster_expires_after_duration(ledger, make_user):
    user = await make_user(points=1000)
    purchase = await purchase_item(ledger, user.id, BOOSTER)
    assert purchase.inventory_item.expires_at == ledger.clock.now() + timedelta(days=1)


async def test_insufficient_points(ledger, make_user):
    user = await make_user(points=100)
    with pytest.raises(InsufficientBalance):
        await purchase_item(ledger, user.id, PROCESSOR)
    assert (await ledger.store.get_user(user.id)).points == 100
    assert await list_inventory(ledger, user.id) == []
    assert await list_activities(ledger, user.id) == []


async def test_exact_balance_is_enough(ledger, make_user):
    user = await make_user(points=150)
    purchase = await purchase_item(ledger, user.id, BADGE)
    assert purchase.remaining_points == 0


async def test_unknown_item(ledger, make_user):
    user = await make_user()
    with pytest.raises(NotFound, match="Item not found"):
        await purchase_item(ledger, user.id, 404)
