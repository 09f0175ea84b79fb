"""Tests for the fixed-window rate limiters."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from starlette.requests import Request

from core.config import settings
from services import InMemoryRateLimiter, RedisRateLimiter
from services import rate_limiter as rate_limiter_module
from services.rate_limiter import RateLimitResult, default_client_identifier


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryRedis:
    def __init__(self) -> None:
        self.data: dict[str, int] = {}
        self.ttls: dict[str, int] = {}

    async def incr(self, key: str) -> int:
        value = self.data.get(key, 0) + 1
        self.data[key] = value
        return value

    async def expire(self, key: str, ttl: int) -> None:
        self.ttls[key] = ttl

    async def ttl(self, key: str) -> int:
        return self.ttls.get(key, -1)


@pytest.mark.asyncio
async def test_in_memory_limiter_blocks_after_limit():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(clock=clock)

    results = [await limiter.check("comment:user:1", 3, 60) for _ in range(4)]

    assert [result.allowed for result in results] == [True, True, True, False]
    assert [result.remaining for result in results] == [2, 1, 0, 0]
    assert results[-1].reset_at == clock.now + 60


@pytest.mark.asyncio
async def test_in_memory_limiter_resets_after_window():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(clock=clock)

    for _ in range(2):
        await limiter.check("key", 2, 60)
    assert not (await limiter.check("key", 2, 60)).allowed

    clock.advance(59.9)
    assert not (await limiter.check("key", 2, 60)).allowed

    clock.advance(0.1)
    fresh = await limiter.check("key", 2, 60)
    assert fresh.allowed
    assert fresh.remaining == 1
    assert fresh.reset_at == clock.now + 60


@pytest.mark.asyncio
async def test_in_memory_limiter_keys_are_independent():
    limiter = InMemoryRateLimiter(clock=FakeClock())

    assert (await limiter.check("a", 1, 60)).allowed
    assert not (await limiter.check("a", 1, 60)).allowed
    assert (await limiter.check("b", 1, 60)).allowed


@pytest.mark.asyncio
async def test_non_positive_limit_disables_limiting():
    limiter = InMemoryRateLimiter(clock=FakeClock())

    results = [await limiter.check("key", 0, 60) for _ in range(5)]

    assert all(result.allowed for result in results)
    assert len(limiter) == 0


@pytest.mark.asyncio
async def test_sweep_evicts_only_expired_windows():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(clock=clock)

    await limiter.check("old", 5, 10)
    clock.advance(5)
    await limiter.check("new", 5, 10)
    clock.advance(5)

    removed = await limiter.sweep()

    assert removed == 1
    assert len(limiter) == 1
    assert (await limiter.check("new", 5, 10)).remaining == 3


def test_retry_after_rounds_up_and_is_at_least_one():
    result = RateLimitResult(allowed=False, remaining=0, reset_at=100.2)

    assert result.retry_after_seconds(now=90.0) == 11
    assert result.retry_after_seconds(now=100.2) == 1
    assert result.retry_after_seconds(now=150.0) == 1


@pytest.mark.asyncio
async def test_redis_limiter_counts_and_sets_expiry():
    redis = InMemoryRedis()
    limiter = RedisRateLimiter(redis, prefix="test", clock=FakeClock())

    first = await limiter.check("post:user:1", 2, 60)
    second = await limiter.check("post:user:1", 2, 60)
    third = await limiter.check("post:user:1", 2, 60)

    assert (first.allowed, second.allowed, third.allowed) == (True, True, False)
    assert redis.ttls == {"test:post:user:1": 60}
    assert third.retry_after_seconds(now=1_000.0) == 60


@pytest.mark.asyncio
async def test_redis_limiter_restores_missing_expiry():
    redis = InMemoryRedis()
    redis.data["rate-limit:key"] = 1
    limiter = RedisRateLimiter(redis, clock=FakeClock())

    result = await limiter.check("key", 5, 30)

    assert result.allowed
    assert redis.ttls["rate-limit:key"] == 30


@pytest.fixture()
def trusted_proxies() -> Iterator[None]:
    original = settings.rate_limit_trusted_proxies
    settings.rate_limit_trusted_proxies = ["10.0.0.0/8"]
    rate_limiter_module._trusted_proxy_networks.cache_clear()
    try:
        yield
    finally:
        settings.rate_limit_trusted_proxies = original
        rate_limiter_module._trusted_proxy_networks.cache_clear()


def _build_request(*, client_host: str, forwarded_for: str | None = None) -> Request:
    headers: list[tuple[bytes, bytes]] = []
    if forwarded_for is not None:
        headers.append((b"x-forwarded-for", forwarded_for.encode("ascii")))
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": headers,
        "query_string": b"",
        "client": (client_host, 12345),
        "server": ("testserver", 80),
        "scheme": "http",
    }
    return Request(scope)


def test_client_identifier_uses_remote_address_by_default():
    request = _build_request(client_host="203.0.113.9", forwarded_for="198.51.100.1")

    assert default_client_identifier(request) == "203.0.113.9"


def test_client_identifier_trusts_forwarded_header_from_proxy(trusted_proxies):
    request = _build_request(client_host="10.0.0.12", forwarded_for="198.51.100.1, 10.0.0.12")

    assert default_client_identifier(request) == "198.51.100.1"


def test_client_identifier_ignores_forwarded_header_from_untrusted_peer(trusted_proxies):
    request = _build_request(client_host="203.0.113.9", forwarded_for="198.51.100.1")

    assert default_client_identifier(request) == "203.0.113.9"
