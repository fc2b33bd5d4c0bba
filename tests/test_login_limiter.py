# tests/test_login_limiter.py
import asyncio

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.config import settings
from app.core.errors import RateLimited
from app.services import login_limiter
from conftest import PASSWORD


class DownRedis:
    async def get(self, key):
        raise RedisConnectionError("connection refused")

    async def incr(self, key):
        raise RedisConnectionError("connection refused")

    async def expire(self, key, seconds):
        raise RedisConnectionError("connection refused")

    async def ttl(self, key):
        raise RedisConnectionError("connection refused")

    async def delete(self, key):
        raise RedisConnectionError("connection refused")


async def _fail_login(client, email, **headers):
    return await client.post("/auth/login", json={"email": email, "password": "Wrong123!"}, headers=headers)


@pytest.mark.asyncio
async def test_window_starts_at_first_attempt(fake_redis):
    assert await login_limiter.record_attempt("10.0.0.1") == 1
    assert fake_redis.ttls["login:failed:10.0.0.1"] == settings.LOGIN_WINDOW_SECONDS
    fake_redis.ttls["login:failed:10.0.0.1"] = 42
    assert await login_limiter.record_attempt("10.0.0.1") == 2
    # later attempts do not extend the window
    assert fake_redis.ttls["login:failed:10.0.0.1"] == 42


@pytest.mark.asyncio
async def test_blocked_message_uses_remaining_minutes(fake_redis):
    fake_redis.values["login:failed:10.0.0.2"] = str(settings.MAX_LOGIN_ATTEMPTS)
    fake_redis.ttls["login:failed:10.0.0.2"] = 61
    with pytest.raises(RateLimited) as exc:
        await login_limiter.record_attempt("10.0.0.2")
    assert "2 minutes" in exc.value.message

    # other addresses are unaffected
    assert await login_limiter.record_attempt("10.0.0.3") == 1


@pytest.mark.asyncio
async def test_concurrent_attempts_never_exceed_the_limit(fake_redis):
    results = await asyncio.gather(
        *[login_limiter.record_attempt("10.0.0.9") for _ in range(settings.MAX_LOGIN_ATTEMPTS * 3)],
        return_exceptions=True,
    )
    allowed = [r for r in results if not isinstance(r, Exception)]
    blocked = [r for r in results if isinstance(r, RateLimited)]
    assert len(allowed) == settings.MAX_LOGIN_ATTEMPTS
    assert len(blocked) == settings.MAX_LOGIN_ATTEMPTS * 2


@pytest.mark.asyncio
async def test_reset_clears_counter(fake_redis):
    await login_limiter.record_attempt("10.0.0.4")
    await login_limiter.reset("10.0.0.4")
    assert "login:failed:10.0.0.4" not in fake_redis.values


@pytest.mark.asyncio
async def test_fails_open_when_redis_is_down(monkeypatch):
    monkeypatch.setattr(login_limiter, "_get_redis_client", lambda: DownRedis())
    assert await login_limiter.record_attempt("10.0.0.5") == 0
    await login_limiter.reset("10.0.0.5")


@pytest.mark.asyncio
async def test_login_works_without_redis(client, register, monkeypatch):
    user = await register("candidate")
    monkeypatch.setattr(login_limiter, "_get_redis_client", lambda: DownRedis())
    r = await client.post("/auth/login", json={"email": user["email"], "password": PASSWORD})
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_rotating_forwarded_header_does_not_reset_the_count(client, register):
    user = await register("candidate")
    statuses = []
    for i in range(settings.MAX_LOGIN_ATTEMPTS + 3):
        r = await _fail_login(client, user["email"], **{"X-Forwarded-For": f"10.9.{i}.1"})
        statuses.append(r.status_code)
    assert statuses[: settings.MAX_LOGIN_ATTEMPTS] == [401] * settings.MAX_LOGIN_ATTEMPTS
    assert set(statuses[settings.MAX_LOGIN_ATTEMPTS:]) == {429}


@pytest.mark.asyncio
async def test_trusted_proxy_hop_is_read_from_the_right(client, register, monkeypatch):
    monkeypatch.setattr(settings, "TRUSTED_PROXY_HOPS", 1)
    user = await register("candidate")
    # the client forges the left part, the proxy appends the real address
    for i in range(settings.MAX_LOGIN_ATTEMPTS):
        await _fail_login(client, user["email"], **{"X-Forwarded-For": f"10.9.{i}.1, 203.0.113.7"})
    r = await client.post("/auth/login", json={"email": user["email"], "password": PASSWORD},
                          headers={"X-Forwarded-For": "198.51.100.1, 203.0.113.7"})
    assert r.status_code == 429

    r = await client.post("/auth/login", json={"email": user["email"], "password": PASSWORD},
                          headers={"X-Forwarded-For": "203.0.113.7, 198.51.100.1"})
    assert r.status_code == 200
