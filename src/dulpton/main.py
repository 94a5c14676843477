"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from dulpton.activities.router import router as activities_router
from dulpton.auth.router import router as auth_router
from dulpton.config import get_settings
from dulpton.database import close_db, get_session, init_db
from dulpton.health.router import router as health_router
from dulpton.ledger.clock import Clock
from dulpton.ledger.locks import UserLocks
from dulpton.middleware import setup_middleware
from dulpton.mining.router import router as mining_router
from dulpton.redis_client import close_redis, init_redis
from dulpton.referrals.router import router as referrals_router
from dulpton.rewards.router import router as rewards_router
from dulpton.shop.router import router as shop_router
from dulpton.staking.router import router as staking_router
from dulpton.storage.memory import MemoryEntityStore
from dulpton.storage.seed import seed_defaults
from dulpton.storage.sql import SqlEntityStore

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    memory_store = getattr(app.state, "memory_store", None)
    if memory_store is None:
        await init_db(settings.database_url)
    await init_redis(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout_seconds,
    )

    if settings.seed_defaults:
        try:
            if memory_store is not None:
                await seed_defaults(memory_store)
            else:
                async for db in get_session():
                    await seed_defaults(SqlEntityStore(db))
        except Exception:
            logger.warning("default_seeding_failed", exc_info=True)

    yield

    if memory_store is None:
        await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Dulpton API",
        description="Backend API for Dulpton, a blockchain simulation points ledger",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.clock = Clock()
    app.state.locks = UserLocks()
    app.state.memory_store = MemoryEntityStore() if settings.storage_backend == "memory" else None

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(mining_router)
    app.include_router(staking_router)
    app.include_router(rewards_router)
    app.include_router(shop_router)
    app.include_router(referrals_router)
    app.include_router(activities_router)

    return app


app = create_app()
