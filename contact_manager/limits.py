"""Rate limits for the credential endpoints."""

import logging

import redis.asyncio as redis
from fakeredis.aioredis import FakeRedis
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter

from .core import get_settings

logger = logging.getLogger(__name__)

login_limiter = RateLimiter(times=5, seconds=60)
register_limiter = RateLimiter(times=3, seconds=60)


async def init_rate_limiter() -> None:
    """
    Initialize the rate limiter with a Redis backend.

    Falls back to an in-process fakeredis server when Redis is
    unreachable (e.g. during local development).
    """
    client = redis.from_url(
        get_settings().REDIS_URL, encoding="utf-8", decode_responses=True
    )
    try:
        await FastAPILimiter.init(client)
        logger.info("Rate limiter using Redis")
    except Exception:
        logger.warning("Redis unavailable, rate limiter falls back to fakeredis")
        await FastAPILimiter.init(FakeRedis(decode_responses=True))
