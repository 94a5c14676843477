"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable, Iterator
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from dulpton.config import get_settings
from dulpton.database import close_db, get_engine, get_session, init_db
from dulpton.db.base import Base
from dulpton.db.models import User
from dulpton.ledger.clock import FixedClock
from dulpton.ledger.context import Ledger
from dulpton.main import create_app
from dulpton.redis_client import close_redis
from dulpton.storage.memory import MemoryEntityStore
from dulpton.storage.seed import seed_defaults
from dulpton.storage.sql import SqlEntityStore

START = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

UserFactory = Callable[..., Awaitable[User]]


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Cheap defaults for every test; each test gets a freshly built Settings."""
    monkeypatch.setenv("DULP_LOG_FORMAT", "console")
    monkeypatch.setenv("DULP_JWT_SECRET", "test-secret")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(START)


@pytest_asyncio.fixture
async def store() -> MemoryEntityStore:
    """Fresh in-memory store with the default pools and catalog."""
    memory = MemoryEntityStore()
    await seed_defaults(memory)
    return memory


@pytest.fixture
def ledger(store: MemoryEntityStore, clock: FixedClock) -> Ledger:
    return Ledger(store=store, clock=clock)


@pytest.fixture
def make_user(ledger: Ledger) -> UserFactory:
    """Insert a user straight into the store, skipping password hashing."""
    counter = {"n": 0}

    async def _make(username: str | None = None, **overrides: object) -> User:
        counter["n"] += 1
        name = username or f"user{counter['n']}"
        values: dict[str, object] = {
            "username": name,
            "email": f"{name}@example.com",
            "password_hash": "not-a-real-hash",
            "points": 100,
            "mining_power": 50,
            "staked_points": 0,
            "referral_points": 0,
            "last_daily_reward_claim": None,
            "last_mining_reward": None,
            "daily_rewards_streak": 0,
            "referral_code": f"CODE{counter['n']:04d}",
            "referred_by": None,
            "created_at": ledger.clock.now(),
        }
        values.update(overrides)
        return await ledger.store.create_user(User(**values))

    return _make


@pytest_asyncio.fixture
async def client(tmp_path, monkeypatch: pytest.MonkeyPatch, clock: FixedClock) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against a SQLite-backed app with seeded defaults and a fixed clock."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'dulpton.db'}"
    monkeypatch.setenv("DULP_DATABASE_URL", url)
    get_settings.cache_clear()

    app = create_app()
    app.state.clock = clock
    await init_db(url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async for db in get_session():
        await seed_defaults(SqlEntityStore(db))
        break

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await close_db()
    await close_redis()


@pytest_asyncio.fixture
async def memory_client(monkeypatch: pytest.MonkeyPatch, clock: FixedClock) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the in-memory backend."""
    monkeypatch.setenv("DULP_STORAGE_BACKEND", "memory")
    get_settings.cache_clear()

    app = create_app()
    app.state.clock = clock
    await seed_defaults(app.state.memory_store)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _register(client: AsyncClient, username: str = "alice", referral_code: str | None = None) -> dict:
    """Register through the API and return the token response body."""
    body = {
        "username": username,
        "email": f"{username}@example.com",
        "password": "hunter22",
        "confirm_password": "hunter22",
    }
    if referral_code is not None:
        body["referral_code"] = referral_code
    response = await client.post("/api/v1/auth/register", json=body)
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient) -> AsyncClient:
    """Client authenticated as a freshly registered ``alice``."""
    data = await _register(client)
    client.headers["Authorization"] = f"Bearer {data['access_token']}"
    return client


@pytest.fixture
def signup() -> Callable[..., Awaitable[dict]]:
    """``await signup(client, "bob", referral_code=...)`` registers via the API."""
    return _register


def bearer(token_response: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_response['access_token']}"}


@pytest.fixture
def auth_headers() -> Callable[[dict], dict[str, str]]:
    return bearer
