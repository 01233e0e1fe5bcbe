import logging
import time

import redis.asyncio as redis
from fastapi import Request

from app.config import settings
from app.exceptions import TooManyRequestsException

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Fixed-window request counter keyed by client IP.

    Each client may issue ``settings.RATE_LIMIT`` requests per window of
    ``settings.RATE_DELAY`` minutes.  Counters live in Redis when it is
    reachable so that every worker process shares them; otherwise (or
    whenever a Redis call fails) an in-process table is used instead.
    """

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None
        # ip -> (window start, request count)
        self._windows: dict[str, tuple[float, int]] = {}
        self._last_sweep = 0.0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        self._redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await self._redis.ping()
            logger.info("Rate limiter using Redis: %s", settings.REDIS_URL)
        except Exception as exc:  # pragma: no cover
            logger.warning("Redis ping failed, counting requests in-process: %s", exc)
            await self._redis.aclose()
            self._redis = None

    async def disconnect(self) -> None:
        """Close the connection pool.  Called once at application shutdown."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    def reset(self) -> None:
        self._windows.clear()
        self._last_sweep = 0.0

    # ------------------------------------------------------------------
    # Counting
    # ------------------------------------------------------------------

    @property
    def window_seconds(self) -> int:
        return settings.RATE_DELAY * 60

    async def hit(self, key: str) -> int:
        """Record one request for *key* and return the count in the current window."""
        if self._redis:
            try:
                redis_key = f"ratelimit:{key}"
                # INCR and EXPIRE run as one MULTI/EXEC so a counter never lives without a TTL.
                async with self._redis.pipeline(transaction=True) as pipe:
                    pipe.incr(redis_key)
                    pipe.expire(redis_key, self.window_seconds, nx=True)
                    count, _ = await pipe.execute()
                return count
            except Exception as exc:
                logger.debug("Rate limit INCR error for key=%r: %s", key, exc)
        return self._hit_local(key)

    def _sweep(self, now: float) -> None:
        """Drop every window that has already expired."""
        window = self.window_seconds
        expired = [ip for ip, (start, _) in self._windows.items() if now - start >= window]
        for ip in expired:
            del self._windows[ip]
        self._last_sweep = now

    def _hit_local(self, key: str) -> int:
        now = time.monotonic()
        # At most one sweep per window keeps the table bounded by recent clients.
        if now - self._last_sweep >= self.window_seconds:
            self._sweep(now)
        start, count = self._windows.get(key, (now, 0))
        if now - start >= self.window_seconds:
            start, count = now, 0
        count += 1
        self._windows[key] = (start, count)
        return count

    async def check(self, key: str) -> None:
        """Raise ``TooManyRequestsException`` once *key* exceeds the limit."""
        count = await self.hit(key)
        if count > settings.RATE_LIMIT:
            logger.info("Rate limit exceeded for %s (%d requests)", key, count)
            raise TooManyRequestsException()


# Module-level singleton shared across all request handlers.
limiter = RateLimiter()


async def rate_limit(request: Request) -> None:
    """Router-level dependency enforcing the per-IP request limit."""
    client = request.client.host if request.client else "unknown"
    await limiter.check(client)
