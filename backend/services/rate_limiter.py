"""Fixed-window rate limiting.

Two interchangeable backends implement the ``RateLimiter`` protocol: an
in-process map for single-instance deployments and a Redis-backed counter for
deployments that run several workers. A window starts with the first request
for a key and resets fully once it elapses.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from ipaddress import IPv4Address, IPv4Network, IPv6Address, IPv6Network, ip_address, ip_network
from typing import Protocol, runtime_checkable

from redis.asyncio import Redis
from starlette.requests import Request

from core import settings

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float

    def retry_after_seconds(self, now: float | None = None) -> int:
        current = time.time() if now is None else now
        return max(1, math.ceil(self.reset_at - current))


@runtime_checkable
class RateLimiter(Protocol):
    async def check(
        self,
        key: str,
        max_requests: int,
        window_seconds: float,
    ) -> RateLimitResult: ...

    async def sweep(self) -> int: ...


@runtime_checkable
class SupportsRateLimitClient(Protocol):
    async def incr(self, key: str) -> int: ...

    async def expire(self, key: str, ttl: int) -> None: ...

    async def ttl(self, key: str) -> int: ...


@dataclass
class _Window:
    count: int
    reset_at: float


class InMemoryRateLimiter:
    """Fixed-window limiter keeping counters in process memory.

    Counters are not shared across processes. Expired windows are ignored on
    access and removed by ``sweep``.
    """

    def __init__(self, clock: Clock = time.time) -> None:
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def __len__(self) -> int:
        return len(self._windows)

    async def check(
        self,
        key: str,
        max_requests: int,
        window_seconds: float,
    ) -> RateLimitResult:
        now = self._clock()
        if max_requests <= 0 or window_seconds <= 0:
            return RateLimitResult(allowed=True, remaining=max(max_requests, 0), reset_at=now)

        window = self._windows.get(key)
        if window is None or now >= window.reset_at:
            window = _Window(count=1, reset_at=now + window_seconds)
            self._windows[key] = window
            return RateLimitResult(
                allowed=True,
                remaining=max_requests - 1,
                reset_at=window.reset_at,
            )

        if window.count >= max_requests:
            return RateLimitResult(allowed=False, remaining=0, reset_at=window.reset_at)

        window.count += 1
        return RateLimitResult(
            allowed=True,
            remaining=max_requests - window.count,
            reset_at=window.reset_at,
        )

    async def sweep(self) -> int:
        now = self._clock()
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]
        return len(expired)


class RedisRateLimiter:
    """Fixed-window limiter backed by Redis ``INCR`` and ``EXPIRE``."""

    def __init__(
        self,
        redis_client: SupportsRateLimitClient,
        prefix: str = "rate-limit",
        clock: Clock = time.time,
    ) -> None:
        self.redis = redis_client
        self.prefix = prefix
        self._clock = clock

    async def check(
        self,
        key: str,
        max_requests: int,
        window_seconds: float,
    ) -> RateLimitResult:
        now = self._clock()
        if max_requests <= 0 or window_seconds <= 0:
            return RateLimitResult(allowed=True, remaining=max(max_requests, 0), reset_at=now)

        ttl_seconds = max(1, math.ceil(window_seconds))
        redis_key = f"{self.prefix}:{key}"
        count = await self.redis.incr(redis_key)
        if count == 1:
            await self.redis.expire(redis_key, ttl_seconds)
            remaining_ttl = ttl_seconds
        else:
            remaining_ttl = await self.redis.ttl(redis_key)
            if remaining_ttl < 0:
                # The key lost its expiry; restart the window.
                await self.redis.expire(redis_key, ttl_seconds)
                remaining_ttl = ttl_seconds

        return RateLimitResult(
            allowed=count <= max_requests,
            remaining=max(max_requests - count, 0),
            reset_at=now + remaining_ttl,
        )

    async def sweep(self) -> int:
        return 0


@lru_cache
def get_redis_client() -> SupportsRateLimitClient:
    """Return a cached async Redis client."""
    return Redis.from_url(settings.redis_url, decode_responses=False)


def build_rate_limiter() -> RateLimiter:
    if settings.rate_limit_backend == "redis":
        return RedisRateLimiter(get_redis_client())
    return InMemoryRateLimiter()


_cached_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Singleton accessor for the shared rate limiter."""
    global _cached_rate_limiter
    if _cached_rate_limiter is None:
        _cached_rate_limiter = build_rate_limiter()
    return _cached_rate_limiter


def set_rate_limiter(limiter: RateLimiter | None) -> None:
    """Override the cached rate limiter (primarily for tests)."""
    global _cached_rate_limiter
    _cached_rate_limiter = limiter


async def run_rate_limit_sweeper(interval_seconds: float) -> None:
    """Evict expired windows forever. Cancel the task to stop it."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = await get_rate_limiter().sweep()
        except Exception as exc:
            logger.warning("Rate limit sweep failed", exc_info=exc)
            continue
        if removed:
            logger.debug("Swept expired rate limit windows", extra={"removed": removed})


def _parse_networks() -> tuple[IPv4Network | IPv6Network, ...]:
    networks: list[IPv4Network | IPv6Network] = []
    for cidr in settings.rate_limit_trusted_proxies:
        try:
            networks.append(ip_network(cidr, strict=False))
        except ValueError as exc:  # pragma: no cover - invalid configuration
            raise ValueError(f"Invalid CIDR in RATE_LIMIT_TRUSTED_PROXIES: {cidr}") from exc
    return tuple(networks)


@lru_cache
def _trusted_proxy_networks() -> tuple[IPv4Network | IPv6Network, ...]:
    return _parse_networks()


def _forwarded_client_ip(request: Request) -> str | None:
    value = request.headers.get("x-forwarded-for")
    if not value:
        return None
    for candidate in value.split(","):
        ip_candidate = candidate.strip()
        if not ip_candidate:
            continue
        try:
            ip_address(ip_candidate)
        except ValueError:
            continue
        return ip_candidate
    return None


def _remote_ip(request: Request) -> tuple[str | None, IPv4Address | IPv6Address | None]:
    host = request.client.host if request.client else None
    if not host:
        return None, None
    try:
        addr = ip_address(host)
    except ValueError:
        return host, None
    return host, addr


def default_client_identifier(request: Request) -> str:
    """Resolve a client identifier for anonymous callers."""
    remote_host, remote_ip = _remote_ip(request)
    if remote_ip is not None and any(
        remote_ip in network for network in _trusted_proxy_networks()
    ):
        forwarded_ip = _forwarded_client_ip(request)
        if forwarded_ip:
            return forwarded_ip
    if remote_host:
        return remote_host
    return "anonymous"
