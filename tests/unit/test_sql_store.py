"""SQL entity store on SQLite: commit and rollback at the outermost transaction."""

from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from dulpton.database import close_db, get_engine, get_session, init_db
from dulpton.db.base import Base
from dulpton.db.models import User
from dulpton.ledger.clock import FixedClock
from dulpton.ledger.context import Ledger
from dulpton.ledger.errors import AlreadyClaimed, Conflict, InsufficientBalance
from dulpton.ledger.locks import UserLocks
from dulpton.rewards.service import claim_daily_reward
from dulpton.staking.service import create_stake
from dulpton.storage.seed import seed_defaults
from dulpton.storage.sql import SqlEntityStore


@pytest_asyncio.fixture
async def sessions(tmp_path) -> AsyncGenerator[None, None]:
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    while _open_sessions:
        await _open_sessions.pop().aclose()
    await close_db()


# Keep each get_session() generator referenced until teardown so the asyncgen
# finalizer does not close the session while a test is still using it.
_open_sessions: list[AsyncGenerator[AsyncSession, None]] = []


async def _session() -> AsyncSession:
    gen = get_session()
    async for db in gen:
        _open_sessions.append(gen)
        return db
    raise AssertionError("no session")


def _user(name: str) -> User:
    return User(
        username=name,
        email=f"{name}@example.com",
        password_hash="x",
        points=100,
        mining_power=50,
        staked_points=0,
        referral_points=0,
        daily_rewards_streak=0,
        referral_code=f"{name}-code",
    )


async def test_committed_writes_are_visible_to_new_sessions(sessions):
    store = SqlEntityStore(await _session())
    async with store.transaction():
        user = await store.create_user(_user("alice"))
        await store.update_user(user.id, {"points": 175})

    fresh = SqlEntityStore(await _session())
    assert (await fresh.get_user_by_username("ALICE")).points == 175


async def test_failed_transaction_leaves_nothing(sessions):
    store = SqlEntityStore(await _session())
    with pytest.raises(RuntimeError):
        async with store.transaction():
            async with store.transaction():
                await store.create_user(_user("alice"))
            raise RuntimeError("boom")

    fresh = SqlEntityStore(await _session())
    assert await fresh.get_user_by_username("alice") is None


async def test_seed_is_idempotent(sessions):
    assert await seed_defaults(SqlEntityStore(await _session())) == (3, 6)
    assert await seed_defaults(SqlEntityStore(await _session())) == (0, 0)


async def test_delete_stake_reports_missing(sessions):
    store = SqlEntityStore(await _session())
    async with store.transaction():
        assert await store.delete_user_stake(12345) is False


async def test_email_is_unique_ignoring_case(sessions):
    store = SqlEntityStore(await _session())
    async with store.transaction():
        await store.create_user(_user("alice"))

    clash = _user("alice2")
    clash.email = "ALICE@example.com"
    with pytest.raises(Conflict):
        async with store.transaction():
            await store.create_user(clash)

    fresh = SqlEntityStore(await _session())
    assert await fresh.get_user_by_username("alice2") is None


class TestStaleSessions:
    """Each request session loads the user before taking the user lock."""

    @pytest_asyncio.fixture
    async def two_ledgers(self, sessions) -> tuple[Ledger, Ledger, int]:
        setup = SqlEntityStore(await _session())
        await seed_defaults(setup)
        async with setup.transaction():
            user_id = (await setup.create_user(_user("alice"))).id

        clock = FixedClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))
        locks = UserLocks()
        first = Ledger(SqlEntityStore(await _session()), clock, locks)
        second = Ledger(SqlEntityStore(await _session()), clock, locks)
        # what get_current_user does in each request
        await first.store.get_user(user_id)
        await second.store.get_user(user_id)
        return first, second, user_id

    async def test_second_daily_claim_sees_the_first(self, two_ledgers):
        first, second, user_id = two_ledgers

        claim = await claim_daily_reward(first, user_id)
        with pytest.raises(AlreadyClaimed):
            await claim_daily_reward(second, user_id)

        fresh = SqlEntityStore(await _session())
        assert claim.total_points == 150
        assert (await fresh.get_user(user_id)).points == 150
        assert len(await fresh.get_daily_rewards(user_id)) == 1

    async def test_second_stake_sees_the_spent_balance(self, two_ledgers):
        first, second, user_id = two_ledgers

        await create_stake(first, user_id, pool_id=1, amount=100)
        with pytest.raises(InsufficientBalance):
            await create_stake(second, user_id, pool_id=1, amount=100)

        fresh = SqlEntityStore(await _session())
        user = await fresh.get_user(user_id)
        assert (user.points, user.staked_points) == (0, 100)
        assert [s.amount for s in await fresh.get_user_stakes(user_id)] == [100]
