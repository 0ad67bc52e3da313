"""Fixed-window rate limiting with a pluggable counter backend.

``InMemoryRateLimiter`` keeps counters in the process and suits a single
worker; ``RedisRateLimiter`` shares counters between workers. The middleware
receives the limiter instance, so tests and deployments choose the backend.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from fgd.config import Settings
from fgd.redis_client import get_redis

logger = structlog.get_logger()

# Paths exempt from rate limiting
_EXEMPT_PATHS = frozenset({"/health", "/ready", "/version"})


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_in: int


class RateLimiter(Protocol):
    limit: int
    window_seconds: int

    async def hit(self, key: str) -> RateLimitDecision:
        """Count one request for ``key`` and decide whether it may proceed."""
        ...


class InMemoryRateLimiter:
    """Per-process fixed window: a counter and a reset time per key."""

    def __init__(
        self,
        limit: int = 100,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[int, float]] = {}

    async def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        count, reset_at = self._windows.get(key, (0, 0.0))
        if now >= reset_at:
            count, reset_at = 0, now + self.window_seconds
            self._prune(now)
        count += 1
        self._windows[key] = (count, reset_at)
        return RateLimitDecision(
            allowed=count <= self.limit,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_in=max(1, int(reset_at - now)),
        )

    def _prune(self, now: float) -> None:
        expired = [k for k, (_, reset_at) in self._windows.items() if reset_at <= now]
        for k in expired:
            del self._windows[k]

    def reset(self) -> None:
        self._windows.clear()


class RedisRateLimiter:
    """Shared fixed window using INCR + EXPIRE on a per-window key."""

    def __init__(self, limit: int = 100, window_seconds: int = 60, prefix: str = "ratelimit") -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix

    async def hit(self, key: str) -> RateLimitDecision:
        now = int(time.time())
        window = now // self.window_seconds
        rate_key = f"{self.prefix}:{key}:{window}"

        redis = get_redis()
        pipe = redis.pipeline()
        pipe.incr(rate_key)
        pipe.expire(rate_key, self.window_seconds + 1)
        results: list[Any] = await pipe.execute()

        count: int = results[0]
        return RateLimitDecision(
            allowed=count <= self.limit,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_in=self.window_seconds - (now % self.window_seconds),
        )


def build_rate_limiter(settings: Settings) -> RateLimiter:
    """Pick the limiter backend named by ``rate_limit_backend``."""
    backend = settings.rate_limit_backend.lower()
    if backend == "memory":
        return InMemoryRateLimiter(settings.rate_limit_requests, settings.rate_limit_window_seconds)
    if backend == "redis":
        return RedisRateLimiter(settings.rate_limit_requests, settings.rate_limit_window_seconds)
    msg = f"Unsupported rate limit backend: {backend}"
    raise ValueError(msg)


def client_identifier(request: Request) -> str:
    """Client IP, honouring proxy headers set by the load balancer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limit requests per client IP, answering 429 once the window is spent."""

    def __init__(self, app: Any, limiter: RateLimiter) -> None:  # noqa: ANN401
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in _EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        try:
            decision = await self.limiter.hit(client_identifier(request))
        except RuntimeError:
            # Redis not initialized, let the request through without rate limiting
            return await call_next(request)

        if not decision.allowed:
            logger.warning("rate_limited", client=client_identifier(request), limit=decision.limit)
            return JSONResponse(
                status_code=429,
                content={"success": False, "error": "Too many requests. Please try again later."},
                headers={
                    "Retry-After": str(decision.reset_in),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Limit": str(decision.limit),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        return response
