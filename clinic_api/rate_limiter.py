"""
Fixed-window rate limiting per client IP

Counters live in process memory, or in Redis when REDIS_URL is set so every
worker shares one budget. Redis errors never block traffic: the request is
counted in memory instead and a warning is logged.
"""
import logging
import math
import time
from threading import Lock
from typing import Dict, NamedTuple, Optional, Tuple

import redis
from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS = "Too many requests from this IP, please try again later."


class RateLimitResult(NamedTuple):
    allowed: bool
    limit: int
    remaining: int
    reset_in: int  # seconds until the window closes


class RateLimiter:
    def __init__(self, limit: int, window_seconds: int, redis_url: str = ""):
        self.limit = limit
        self.window_seconds = window_seconds
        # key -> (window start, count)
        self._counters: Dict[str, Tuple[int, int]] = {}
        self._lock = Lock()
        self._redis: Optional[redis.Redis] = None

        if redis_url:
            self._redis = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            logger.info("📡 Rate limiter using Redis counters")

    def _window_start(self, now: float) -> int:
        return int(now // self.window_seconds) * self.window_seconds

    def _result(self, count: int, window_start: int, now: float) -> RateLimitResult:
        reset_in = max(1, math.ceil(window_start + self.window_seconds - now))
        return RateLimitResult(
            allowed=count <= self.limit,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_in=reset_in,
        )

    def _hit_memory(self, key: str, now: float) -> RateLimitResult:
        window_start = self._window_start(now)
        with self._lock:
            start, count = self._counters.get(key, (window_start, 0))
            if start != window_start:
                start, count = window_start, 0
            count += 1
            self._counters[key] = (start, count)

            # drop counters from earlier windows
            if len(self._counters) > 10000:
                self._counters = {
                    k: v for k, v in self._counters.items() if v[0] == window_start
                }
        return self._result(count, window_start, now)

    def _hit_redis(self, key: str, now: float) -> RateLimitResult:
        window_start = self._window_start(now)
        redis_key = f"rate_limit:{key}:{window_start}"
        pipe = self._redis.pipeline()
        pipe.incr(redis_key)
        pipe.expire(redis_key, self.window_seconds)
        count, _ = pipe.execute()
        return self._result(int(count), window_start, now)

    def hit(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and report whether it is within the limit"""
        now = time.time()
        if self._redis is not None:
            try:
                return self._hit_redis(key, now)
            except redis.RedisError as e:
                logger.warning(f"⚠️ Redis rate limit check failed, counting in memory: {e}")
        return self._hit_memory(key, now)


def get_client_ip(request: Request) -> str:
    """Client IP, honouring the first X-Forwarded-For hop set by a proxy"""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


def rate_limit_headers(result: RateLimitResult) -> Dict[str, str]:
    return {
        "RateLimit-Limit": str(result.limit),
        "RateLimit-Remaining": str(result.remaining),
        "RateLimit-Reset": str(result.reset_in),
    }


def rate_limit_exceeded_response(result: RateLimitResult) -> JSONResponse:
    headers = rate_limit_headers(result)
    headers["Retry-After"] = str(result.reset_in)
    return JSONResponse(
        status_code=429,
        content={"success": False, "message": TOO_MANY_REQUESTS},
        headers=headers,
    )
