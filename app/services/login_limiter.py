# app/services/login_limiter.py
"""
Login attempt counter kept in Redis so every API instance sees the same
count. A key per client IP expires after the login window. Each attempt is
counted with a single ``INCR`` before the password is checked, and the value
it returns decides whether the attempt may go ahead, so concurrent requests
cannot slip past the limit. A successful login clears the key. When Redis is
unreachable the limiter lets requests through.
"""
import logging
import math

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from app.core.config import settings
from app.core.errors import RateLimited

logger = logging.getLogger(__name__)

KEY_PREFIX = "login:failed:"

_client = None


def _get_redis_client():
    global _client
    if _client is None:
        _client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _client


def _key(identity: str) -> str:
    return f"{KEY_PREFIX}{identity}"


async def record_attempt(identity: str) -> int:
    """
    Count one login attempt for ``identity`` and return the running count.
    Raises ``RateLimited`` once the count passes ``MAX_LOGIN_ATTEMPTS``;
    the window starts at the first attempt.
    """
    client = _get_redis_client()
    key = _key(identity)
    try:
        count = await client.incr(key)
        if count == 1:
            await client.expire(key, settings.LOGIN_WINDOW_SECONDS)
        if count <= settings.MAX_LOGIN_ATTEMPTS:
            return count
        ttl = await client.ttl(key)
    except RedisError:
        logger.warning("Redis unavailable, login attempt for %s not counted", identity)
        return 0
    minutes = max(1, math.ceil((ttl if ttl and ttl > 0 else settings.LOGIN_WINDOW_SECONDS) / 60))
    logger.warning("Login blocked for %s after %d attempts", identity, count - 1)
    raise RateLimited(f"Too many failed login attempts. Please try again in {minutes} minutes.")


async def reset(identity: str) -> None:
    client = _get_redis_client()
    try:
        await client.delete(_key(identity))
    except RedisError:
        logger.warning("Redis unavailable, could not reset login counter for %s", identity)


async def close() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
