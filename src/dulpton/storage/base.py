"""Entity store contract consumed by the ledger services.

The ledger never talks to SQLAlchemy directly. It reads snapshots and writes
partial updates by id through this interface, so the same rules run against
the relational store and the in-memory store.
"""

from __future__ import annotations

import abc
from contextlib import AbstractAsyncContextManager
from typing import Any

from dulpton.db.models import (
    DailyReward,
    MiningOperation,
    Referral,
    StakingPool,
    StoreItem,
    User,
    UserActivity,
    UserInventory,
    UserStake,
)


class EntityStore(abc.ABC):
    """Async get/create/update/delete per entity type.

    ``update_*`` merges ``changes`` into the row with the given id and returns
    the merged entity, or ``None`` when the id is unknown. ``create_*`` takes a
    transient model instance and returns it with its id assigned.
    """

    @abc.abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Group writes so they persist together or not at all. Re-entrant."""

    # --- Users ---

    @abc.abstractmethod
    async def get_user(self, user_id: int) -> User | None: ...

    @abc.abstractmethod
    async def get_user_by_username(self, username: str) -> User | None: ...

    @abc.abstractmethod
    async def get_user_by_email(self, email: str) -> User | None: ...

    @abc.abstractmethod
    async def get_user_by_referral_code(self, referral_code: str) -> User | None: ...

    @abc.abstractmethod
    async def create_user(self, user: User) -> User: ...

    @abc.abstractmethod
    async def update_user(self, user_id: int, changes: dict[str, Any]) -> User | None: ...

    # --- Mining ---

    @abc.abstractmethod
    async def get_mining_operation(self, user_id: int) -> MiningOperation | None: ...

    @abc.abstractmethod
    async def create_mining_operation(self, operation: MiningOperation) -> MiningOperation: ...

    @abc.abstractmethod
    async def update_mining_operation(
        self, operation_id: int, changes: dict[str, Any]
    ) -> MiningOperation | None: ...

    # --- Staking ---

    @abc.abstractmethod
    async def get_staking_pools(self) -> list[StakingPool]: ...

    @abc.abstractmethod
    async def get_staking_pool(self, pool_id: int) -> StakingPool | None: ...

    @abc.abstractmethod
    async def create_staking_pool(self, pool: StakingPool) -> StakingPool: ...

    @abc.abstractmethod
    async def get_user_stakes(self, user_id: int) -> list[UserStake]: ...

    @abc.abstractmethod
    async def get_user_stake(self, stake_id: int) -> UserStake | None: ...

    @abc.abstractmethod
    async def create_user_stake(self, stake: UserStake) -> UserStake: ...

    @abc.abstractmethod
    async def update_user_stake(self, stake_id: int, changes: dict[str, Any]) -> UserStake | None: ...

    @abc.abstractmethod
    async def delete_user_stake(self, stake_id: int) -> bool: ...

    # --- Daily rewards ---

    @abc.abstractmethod
    async def get_daily_rewards(self, user_id: int) -> list[DailyReward]: ...

    @abc.abstractmethod
    async def create_daily_reward(self, reward: DailyReward) -> DailyReward: ...

    # --- Store ---

    @abc.abstractmethod
    async def get_store_items(self) -> list[StoreItem]: ...

    @abc.abstractmethod
    async def get_store_item(self, item_id: int) -> StoreItem | None: ...

    @abc.abstractmethod
    async def create_store_item(self, item: StoreItem) -> StoreItem: ...

    @abc.abstractmethod
    async def get_user_inventory(self, user_id: int) -> list[UserInventory]: ...

    @abc.abstractmethod
    async def create_user_inventory(self, entry: UserInventory) -> UserInventory: ...

    @abc.abstractmethod
    async def update_user_inventory(
        self, entry_id: int, changes: dict[str, Any]
    ) -> UserInventory | None: ...

    # --- Activities ---

    @abc.abstractmethod
    async def get_user_activities(self, user_id: int, limit: int = 10) -> list[UserActivity]:
        """Newest first."""

    @abc.abstractmethod
    async def create_user_activity(self, activity: UserActivity) -> UserActivity: ...

    # --- Referrals ---

    @abc.abstractmethod
    async def get_user_referrals(self, user_id: int) -> list[Referral]:
        """Referrals where ``user_id`` is the referrer."""

    @abc.abstractmethod
    async def create_referral(self, referral: Referral) -> Referral: ...

    @abc.abstractmethod
    async def update_referral(self, referral_id: int, changes: dict[str, Any]) -> Referral | None: ...
