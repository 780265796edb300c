"""
Per-client sliding-window rate limit for the generation endpoints.

Each client (keyed by remote address) may make ``max_requests`` calls per
``window_seconds``. Rejected calls get a 429 in the usual error envelope and
are not counted. Responses carry the ``RateLimit-*`` headers so a client can
pace itself.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List

from fastapi import Request, Response, status

from api.errors import ApiError

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."

# Stale keys are dropped once the table grows past this many clients.
_SWEEP_THRESHOLD = 10_000


@dataclass(frozen=True)
class RateLimitStatus:
    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int

    def headers(self, window_seconds: float) -> Dict[str, str]:
        return {
            "RateLimit-Policy": f"{self.limit};w={int(window_seconds)}",
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_seconds),
        }


class RateLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self.hits: Dict[str, List[float]] = {}

    @property
    def enabled(self) -> bool:
        return self.max_requests > 0

    def check(self, key: str) -> RateLimitStatus:
        """Count one call for ``key`` unless it is already over the limit."""
        now = self._clock()
        window_start = now - self.window_seconds
        with self._lock:
            timestamps = [ts for ts in self.hits.get(key, []) if ts > window_start]
            allowed = len(timestamps) < self.max_requests
            if allowed:
                timestamps.append(now)
            self.hits[key] = timestamps
            if len(self.hits) > _SWEEP_THRESHOLD:
                self._sweep(window_start)

        oldest = timestamps[0] if timestamps else now
        reset = max(0, math.ceil(oldest + self.window_seconds - now))
        return RateLimitStatus(
            allowed=allowed,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - len(timestamps)),
            reset_seconds=reset,
        )

    def reset(self) -> None:
        with self._lock:
            self.hits.clear()

    def _sweep(self, window_start: float) -> None:
        stale = [k for k, ts in self.hits.items() if not ts or ts[-1] <= window_start]
        for key in stale:
            del self.hits[key]


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def enforce_rate_limit(request: Request, response: Response) -> None:
    """Dependency for the generation routes; raises 429 when over the limit."""
    limiter: RateLimiter = request.app.state.rate_limiter
    if not limiter.enabled:
        return

    key = client_key(request)
    result = limiter.check(key)
    headers = result.headers(limiter.window_seconds)
    if not result.allowed:
        logger.warning("Rate limit hit for %s on %s", key, request.url.path)
        headers["Retry-After"] = str(result.reset_seconds)
        raise ApiError(status.HTTP_429_TOO_MANY_REQUESTS, RATE_LIMIT_MESSAGE, headers=headers)
    response.headers.update(headers)
