"""Redis pool used for rate-limit counters.

Redis is optional for the ledger: nothing balance-related lives there, so
short socket timeouts let callers fall back quickly when it is down.
"""

import redis.asyncio as redis
from redis.exceptions import RedisError

_pool: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 20, socket_timeout: float = 0.5) -> None:
    """Create the shared client. Does not connect until first use."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
    )


async def close_redis() -> None:
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """Return the shared client; RuntimeError if ``init_redis`` has not run."""
    if _pool is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _pool


async def redis_status() -> str:
    """``"ok"`` when Redis answers PING, otherwise a short error string."""
    try:
        await get_redis().ping()
    except (RuntimeError, RedisError) as exc:
        return f"error: {exc}"
    return "ok"
