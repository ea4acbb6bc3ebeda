"""Optional Redis connection used by the rate limiter."""

import redis.asyncio as redis
import structlog

logger = structlog.get_logger()

_pool: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Initialize the Redis pool. An empty URL leaves Redis disabled."""
    global _pool  # noqa: PLW0603
    if not url:
        logger.info("redis_disabled")
        return
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )


async def close_redis() -> None:
    """Close the Redis pool if one was opened."""
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """Get the Redis client; raises RuntimeError when Redis is disabled."""
    if _pool is None:
        msg = "Redis not initialized. Set DUMP_REDIS_URL to enable it."
        raise RuntimeError(msg)
    return _pool
