"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

from fastapi import Depends, Request

from dulpton.database import get_session
from dulpton.ledger.context import Ledger
from dulpton.storage.base import EntityStore
from dulpton.storage.sql import SqlEntityStore


async def get_store(request: Request) -> AsyncGenerator[EntityStore, None]:
    """Yield the entity store for this request.

    The in-memory backend is shared app-wide; the database backend wraps a
    fresh session per request.
    """
    memory_store = getattr(request.app.state, "memory_store", None)
    if memory_store is not None:
        yield memory_store
        return
    async for session in get_session():
        yield SqlEntityStore(session)


async def get_ledger(request: Request, store: EntityStore = Depends(get_store)) -> Ledger:  # noqa: B008
    """Ledger bound to the request's store and the app-wide clock and user locks."""
    return Ledger(store=store, clock=request.app.state.clock, locks=request.app.state.locks)
