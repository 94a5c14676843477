"""Entity store backed by an async SQLAlchemy session."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dulpton.db.base import Base
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
from dulpton.ledger.errors import Conflict
from dulpton.storage.base import EntityStore

ModelT = TypeVar("ModelT", bound=Base)


class SqlEntityStore(EntityStore):
    """Reads and writes through one request-scoped ``AsyncSession``.

    Writes are flushed immediately so ids are assigned, and committed only
    when the outermost ``transaction()`` block exits cleanly.

    Reads overwrite any identity-mapped instance with the current row, so an
    object loaded earlier in the request never feeds a stale balance into a
    locked command. Inside a transaction, rows fetched by primary key are
    also locked ``FOR UPDATE`` where the dialect supports it.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._depth = 0

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        self._depth += 1
        try:
            yield
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                await self.db.rollback()
            raise
        self._depth -= 1
        if self._depth == 0:
            await self.db.commit()

    # --- helpers ---

    async def _add(self, obj: ModelT) -> ModelT:
        self.db.add(obj)
        await self.db.flush()
        return obj

    async def _get(self, model: type[ModelT], pk: int) -> ModelT | None:
        return await self.db.get(model, pk, populate_existing=True, with_for_update=self._depth > 0)

    async def _merge(self, model: type[ModelT], pk: int, changes: dict[str, Any]) -> ModelT | None:
        obj = await self._get(model, pk)
        if obj is None:
            return None
        for key, value in changes.items():
            setattr(obj, key, value)
        await self.db.flush()
        return obj

    async def _first(self, stmt: Any) -> Any:
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return result.scalars().first()

    async def _all(self, stmt: Any) -> list[Any]:
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().all())

    # --- Users ---

    async def get_user(self, user_id: int) -> User | None:
        return await self._get(User, user_id)

    async def get_user_by_username(self, username: str) -> User | None:
        return await self._first(select(User).where(func.lower(User.username) == username.lower()))

    async def get_user_by_email(self, email: str) -> User | None:
        return await self._first(select(User).where(func.lower(User.email) == email.lower()))

    async def get_user_by_referral_code(self, referral_code: str) -> User | None:
        return await self._first(select(User).where(User.referral_code == referral_code))

    async def create_user(self, user: User) -> User:
        try:
            return await self._add(user)
        except IntegrityError as e:
            raise Conflict("Username or email already exists") from e

    async def update_user(self, user_id: int, changes: dict[str, Any]) -> User | None:
        return await self._merge(User, user_id, changes)

    # --- Mining ---

    async def get_mining_operation(self, user_id: int) -> MiningOperation | None:
        return await self._first(select(MiningOperation).where(MiningOperation.user_id == user_id))

    async def create_mining_operation(self, operation: MiningOperation) -> MiningOperation:
        return await self._add(operation)

    async def update_mining_operation(self, operation_id: int, changes: dict[str, Any]) -> MiningOperation | None:
        return await self._merge(MiningOperation, operation_id, changes)

    # --- Staking ---

    async def get_staking_pools(self) -> list[StakingPool]:
        return await self._all(select(StakingPool).order_by(StakingPool.id))

    async def get_staking_pool(self, pool_id: int) -> StakingPool | None:
        return await self._get(StakingPool, pool_id)

    async def create_staking_pool(self, pool: StakingPool) -> StakingPool:
        return await self._add(pool)

    async def get_user_stakes(self, user_id: int) -> list[UserStake]:
        return await self._all(select(UserStake).where(UserStake.user_id == user_id).order_by(UserStake.id))

    async def get_user_stake(self, stake_id: int) -> UserStake | None:
        return await self._get(UserStake, stake_id)

    async def create_user_stake(self, stake: UserStake) -> UserStake:
        return await self._add(stake)

    async def update_user_stake(self, stake_id: int, changes: dict[str, Any]) -> UserStake | None:
        return await self._merge(UserStake, stake_id, changes)

    async def delete_user_stake(self, stake_id: int) -> bool:
        result = await self.db.execute(delete(UserStake).where(UserStake.id == stake_id))
        return bool(result.rowcount)

    # --- Daily rewards ---

    async def get_daily_rewards(self, user_id: int) -> list[DailyReward]:
        return await self._all(
            select(DailyReward).where(DailyReward.user_id == user_id).order_by(DailyReward.id)
        )

    async def create_daily_reward(self, reward: DailyReward) -> DailyReward:
        return await self._add(reward)

    # --- Store ---

    async def get_store_items(self) -> list[StoreItem]:
        return await self._all(select(StoreItem).order_by(StoreItem.id))

    async def get_store_item(self, item_id: int) -> StoreItem | None:
        return await self._get(StoreItem, item_id)

    async def create_store_item(self, item: StoreItem) -> StoreItem:
        return await self._add(item)

    async def get_user_inventory(self, user_id: int) -> list[UserInventory]:
        return await self._all(
            select(UserInventory).where(UserInventory.user_id == user_id).order_by(UserInventory.id)
        )

    async def create_user_inventory(self, entry: UserInventory) -> UserInventory:
        return await self._add(entry)

    async def update_user_inventory(self, entry_id: int, changes: dict[str, Any]) -> UserInventory | None:
        return await self._merge(UserInventory, entry_id, changes)

    # --- Activities ---

    async def get_user_activities(self, user_id: int, limit: int = 10) -> list[UserActivity]:
        return await self._all(
            select(UserActivity)
            .where(UserActivity.user_id == user_id)
            .order_by(UserActivity.created_at.desc(), UserActivity.id.desc())
            .limit(limit)
        )

    async def create_user_activity(self, activity: UserActivity) -> UserActivity:
        return await self._add(activity)

    # --- Referrals ---

    async def get_user_referrals(self, user_id: int) -> list[Referral]:
        return await self._all(select(Referral).where(Referral.referrer_id == user_id).order_by(Referral.id))

    async def create_referral(self, referral: Referral) -> Referral:
        return await self._add(referral)

    async def update_referral(self, referral_id: int, changes: dict[str, Any]) -> Referral | None:
        return await self._merge(Referral, referral_id, changes)
