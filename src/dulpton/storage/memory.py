"""In-memory entity store.

Each instance owns its own tables and id counters, so tests build a fresh
store per case. Reads hand out detached copies: a caller holding an entity
sees a snapshot, never a live row.
"""

from __future__ import annotations

import copy
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from sqlalchemy import inspect

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

_TABLES: tuple[type[Base], ...] = (
    User,
    MiningOperation,
    StakingPool,
    UserStake,
    DailyReward,
    StoreItem,
    UserInventory,
    UserActivity,
    Referral,
)


def _columns(obj: Base) -> dict[str, Any]:
    return {attr.key: getattr(obj, attr.key) for attr in inspect(type(obj)).column_attrs}


def _clone(obj: ModelT) -> ModelT:
    return type(obj)(**copy.deepcopy(_columns(obj)))


class MemoryEntityStore(EntityStore):
    """Dict-backed store with monotonically increasing ids per table."""

    def __init__(self) -> None:
        self._rows: dict[type[Base], dict[int, Base]] = {model: {} for model in _TABLES}
        self._next_id: dict[type[Base], int] = {model: 1 for model in _TABLES}
        self._depth = 0

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._depth == 0:
            saved_rows = {model: dict(rows) for model, rows in self._rows.items()}
            saved_ids = dict(self._next_id)
        self._depth += 1
        try:
            yield
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self._rows = saved_rows
                self._next_id = saved_ids
            raise
        self._depth -= 1

    # --- helpers ---

    def _insert(self, obj: ModelT) -> ModelT:
        model = type(obj)
        row = _clone(obj)
        row.id = self._next_id[model]  # type: ignore[attr-defined]
        self._next_id[model] += 1
        self._rows[model][row.id] = row  # type: ignore[attr-defined]
        return _clone(row)

    def _get(self, model: type[ModelT], pk: int) -> ModelT | None:
        row = self._rows[model].get(pk)
        return _clone(row) if row is not None else None  # type: ignore[return-value]

    def _merge(self, model: type[ModelT], pk: int, changes: dict[str, Any]) -> ModelT | None:
        row = self._rows[model].get(pk)
        if row is None:
            return None
        # Replace rather than mutate so a transaction snapshot keeps the old row.
        values = _columns(row)
        values.update(changes)
        merged = model(**copy.deepcopy(values))
        self._rows[model][pk] = merged
        return _clone(merged)

    def _where(self, model: type[ModelT], predicate: Callable[[Any], bool]) -> list[ModelT]:
        return [_clone(row) for _, row in sorted(self._rows[model].items()) if predicate(row)]  # type: ignore[misc]

    # --- Users ---

    async def get_user(self, user_id: int) -> User | None:
        return self._get(User, user_id)

    async def get_user_by_username(self, username: str) -> User | None:
        wanted = username.lower()
        found = self._where(User, lambda u: u.username.lower() == wanted)
        return found[0] if found else None

    async def get_user_by_email(self, email: str) -> User | None:
        wanted = email.lower()
        found = self._where(User, lambda u: u.email.lower() == wanted)
        return found[0] if found else None

    async def get_user_by_referral_code(self, referral_code: str) -> User | None:
        found = self._where(User, lambda u: u.referral_code == referral_code)
        return found[0] if found else None

    async def create_user(self, user: User) -> User:
        # Mirrors the unique constraints on username, lower(email) and referral_code.
        email = user.email.lower()
        for row in self._rows[User].values():
            if row.username == user.username or row.email.lower() == email or row.referral_code == user.referral_code:  # type: ignore[attr-defined]
                raise Conflict("Username or email already exists")
        return self._insert(user)

    async def update_user(self, user_id: int, changes: dict[str, Any]) -> User | None:
        return self._merge(User, user_id, changes)

    # --- Mining ---

    async def get_mining_operation(self, user_id: int) -> MiningOperation | None:
        found = self._where(MiningOperation, lambda op: op.user_id == user_id)
        return found[0] if found else None

    async def create_mining_operation(self, operation: MiningOperation) -> MiningOperation:
        return self._insert(operation)

    async def update_mining_operation(self, operation_id: int, changes: dict[str, Any]) -> MiningOperation | None:
        return self._merge(MiningOperation, operation_id, changes)

    # --- Staking ---

    async def get_staking_pools(self) -> list[StakingPool]:
        return self._where(StakingPool, lambda _: True)

    async def get_staking_pool(self, pool_id: int) -> StakingPool | None:
        return self._get(StakingPool, pool_id)

    async def create_staking_pool(self, pool: StakingPool) -> StakingPool:
        return self._insert(pool)

    async def get_user_stakes(self, user_id: int) -> list[UserStake]:
        return self._where(UserStake, lambda s: s.user_id == user_id)

    async def get_user_stake(self, stake_id: int) -> UserStake | None:
        return self._get(UserStake, stake_id)

    async def create_user_stake(self, stake: UserStake) -> UserStake:
        return self._insert(stake)

    async def update_user_stake(self, stake_id: int, changes: dict[str, Any]) -> UserStake | None:
        return self._merge(UserStake, stake_id, changes)

    async def delete_user_stake(self, stake_id: int) -> bool:
        return self._rows[UserStake].pop(stake_id, None) is not None

    # --- Daily rewards ---

    async def get_daily_rewards(self, user_id: int) -> list[DailyReward]:
        return self._where(DailyReward, lambda r: r.user_id == user_id)

    async def create_daily_reward(self, reward: DailyReward) -> DailyReward:
        return self._insert(reward)

    # --- Store ---

    async def get_store_items(self) -> list[StoreItem]:
        return self._where(StoreItem, lambda _: True)

    async def get_store_item(self, item_id: int) -> StoreItem | None:
        return self._get(StoreItem, item_id)

    async def create_store_item(self, item: StoreItem) -> StoreItem:
        return self._insert(item)

    async def get_user_inventory(self, user_id: int) -> list[UserInventory]:
        return self._where(UserInventory, lambda e: e.user_id == user_id)

    async def create_user_inventory(self, entry: UserInventory) -> UserInventory:
        return self._insert(entry)

    async def update_user_inventory(self, entry_id: int, changes: dict[str, Any]) -> UserInventory | None:
        return self._merge(UserInventory, entry_id, changes)

    # --- Activities ---

    async def get_user_activities(self, user_id: int, limit: int = 10) -> list[UserActivity]:
        rows = self._where(UserActivity, lambda a: a.user_id == user_id)
        rows.sort(key=lambda a: (a.created_at, a.id), reverse=True)
        return rows[:limit]

    async def create_user_activity(self, activity: UserActivity) -> UserActivity:
        return self._insert(activity)

    # --- Referrals ---

    async def get_user_referrals(self, user_id: int) -> list[Referral]:
        return self._where(Referral, lambda r: r.referrer_id == user_id)

    async def create_referral(self, referral: Referral) -> Referral:
        return self._insert(referral)

    async def update_referral(self, referral_id: int, changes: dict[str, Any]) -> Referral | None:
        return self._merge(Referral, referral_id, changes)
