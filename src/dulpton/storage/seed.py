"""Default staking pools and store catalog (idempotent)."""

from __future__ import annotations

import structlog

from dulpton.db.models import StakingPool, StoreItem
from dulpton.storage.base import EntityStore

logger = structlog.get_logger()

DEFAULT_POOLS: list[dict] = [
    {
        "name": "Standard Pool",
        "description": "Low risk, steady returns",
        "apy_rate": 200,  # 2%
        "lock_period_days": 0,
        "min_stake": 100,
        "is_active": True,
    },
    {
        "name": "Premium Pool",
        "description": "Higher risk, better rewards",
        "apy_rate": 500,  # 5%
        "lock_period_days": 7,
        "min_stake": 500,
        "is_active": True,
    },
    {
        "name": "DeFi Pool",
        "description": "Advanced simulation with DeFi mechanics",
        "apy_rate": 1000,  # 10%
        "lock_period_days": 30,
        "min_stake": 1000,
        "is_active": False,
    },
]

DEFAULT_ITEMS: list[dict] = [
    {
        "name": "Advanced Processor",
        "description": "Increases mining speed by 30%",
        "price": 250,
        "type": "mining",
        "effect": {"miningPowerBoost": 30},
        "img_url": "/static/store/advanced-processor.jpg",
    },
    {
        "name": "Liquid Cooling System",
        "description": "Reduces energy usage by 20%",
        "price": 350,
        "type": "mining",
        "effect": {"miningEfficiencyBoost": 20},
        "img_url": "/static/store/liquid-cooling.jpg",
    },
    {
        "name": "Yield Optimizer",
        "description": "+0.5% APY on all staking pools",
        "price": 500,
        "type": "staking",
        "effect": {"stakingApyBoost": 50},
        "img_url": "/static/store/yield-optimizer.jpg",
    },
    {
        "name": "Premium Badge",
        "description": "Show off your status to other users",
        "price": 150,
        "type": "profile",
        "effect": {"badge": "premium"},
        "img_url": "/static/store/premium-badge.jpg",
    },
    {
        "name": "Advanced Blockchain Course",
        "description": "Unlock expert-level learning materials",
        "price": 400,
        "type": "learning",
        "effect": {"unlockContent": "advanced-blockchain"},
        "img_url": "/static/store/blockchain-course.jpg",
    },
    {
        "name": "2X Earnings Booster",
        "description": "Double all earnings for 24 hours",
        "price": 300,
        "type": "boost",
        "effect": {"earningsMultiplier": 2, "duration": 86_400_000},
        "img_url": "/static/store/earnings-booster.jpg",
    },
]


async def seed_defaults(store: EntityStore) -> tuple[int, int]:
    """Create default pools and items when their tables are empty.

    Returns (pools_created, items_created).
    """
    pools_created = items_created = 0
    async with store.transaction():
        if not await store.get_staking_pools():
            for pool in DEFAULT_POOLS:
                await store.create_staking_pool(StakingPool(**pool))
                pools_created += 1
        if not await store.get_store_items():
            for item in DEFAULT_ITEMS:
                await store.create_store_item(StoreItem(**item))
                items_created += 1

    if pools_created or items_created:
        logger.info("defaults_seeded", pools=pools_created, items=items_created)
    return pools_created, items_created
