"""Store catalog and purchases."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from dulpton.db.models import StoreItem, UserInventory
from dulpton.ledger.context import Ledger, record_activity
from dulpton.ledger.effects import apply_effect, inventory_expiry, parse_effect
from dulpton.ledger.errors import InsufficientBalance, NotFound

logger = structlog.get_logger()


@dataclass
class Purchase:
    item: StoreItem
    inventory_item: UserInventory
    remaining_points: int
    mining_power: int


async def list_items(ledger: Ledger) -> list[StoreItem]:
    return await ledger.store.get_store_items()


async def list_inventory(ledger: Ledger, user_id: int) -> list[UserInventory]:
    return await ledger.store.get_user_inventory(user_id)


async def purchase_item(ledger: Ledger, user_id: int, item_id: int) -> Purchase:
    """Buy an item: debit the price, record the inventory row, apply durable effects.

    Raises:
        NotFound: item or user missing.
        InsufficientBalance: price exceeds the balance.
    """
    async with ledger.locks.hold(user_id), ledger.store.transaction():
        item = await ledger.store.get_store_item(item_id)
        if item is None:
            raise NotFound("Item not found")
        user = await ledger.store.get_user(user_id)
        if user is None:
            raise NotFound("User not found")
        if user.points < item.price:
            raise InsufficientBalance

        now = ledger.clock.now()
        entry = await ledger.store.create_user_inventory(
            UserInventory(
                user_id=user_id,
                item_id=item.id,
                purchased_at=now,
                is_active=True,
                expires_at=inventory_expiry(item, now),
            )
        )

        changes = {"points": user.points - item.price}
        changes.update(apply_effect(item.type, parse_effect(item.effect), user))
        updated_user = await ledger.store.update_user(user_id, changes)
        await record_activity(ledger, user_id, "purchase", -item.price, f"Purchased {item.name}")

    logger.info("item_purchased", user_id=user_id, item_id=item.id, price=item.price, item_type=item.type)
    return Purchase(
        item=item,
        inventory_item=entry,
        remaining_points=updated_user.points,  # type: ignore[union-attr]
        mining_power=updated_user.mining_power,  # type: ignore[union-attr]
    )
