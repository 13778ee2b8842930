from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass

import redis  # type: ignore[import-untyped]
from redis.exceptions import RedisError  # type: ignore[import-untyped]

log = logging.getLogger(__name__)


@dataclass
class _Bucket:
    tokens: float
    updated_at: float
    window: float


class RateLimiter:
    """
    Token-bucket limiter keyed by scope and identity (``rl:login:ip:1.2.3.4``).

    Buckets live in Redis when a client is given, so every worker shares
    them; otherwise in this process. A Redis failure degrades to the
    in-process buckets instead of failing the request.
    """

    def __init__(self, r: redis.Redis | None = None) -> None:
        self.r = r
        self._mem: dict[str, _Bucket] = {}
        self._lock = threading.Lock()
        self._next_sweep = 0.0

    def allow(self, key: str, *, limit: int, per_seconds: int) -> bool:
        """Take one token from ``key``'s bucket; ``False`` when it is empty."""
        now = time.time()
        rate = float(limit) / float(per_seconds)
        if self.r is not None:
            try:
                return self._allow_redis(key, limit, per_seconds, rate, now)
            except RedisError as exc:
                log.warning("ratelimit.redis_failed reason=%s", type(exc).__name__)

        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            bucket = self._mem.setdefault(
                key, _Bucket(tokens=float(limit), updated_at=now, window=float(per_seconds))
            )
            bucket.tokens = min(float(limit), bucket.tokens + (now - bucket.updated_at) * rate)
            bucket.updated_at = now
            if bucket.tokens < 1.0:
                return False
            bucket.tokens -= 1.0
            return True

    def _allow_redis(self, key: str, limit: int, per_seconds: int, rate: float, now: float) -> bool:
        tokens_s, ts_s = self.r.hmget(key, "tokens", "ts")
        tokens = float(tokens_s) if tokens_s is not None else float(limit)
        ts = float(ts_s) if ts_s is not None else now
        tokens = min(float(limit), tokens + (now - ts) * rate)
        allowed = tokens >= 1.0
        if allowed:
            tokens -= 1.0
        pipe = self.r.pipeline()
        pipe.hset(key, mapping={"tokens": f"{tokens:.6f}", "ts": f"{now:.6f}"})
        pipe.expire(key, per_seconds * 2)
        pipe.execute()
        return allowed

    def _sweep(self, now: float) -> None:
        # a bucket idle for a whole window has refilled, so forgetting it is lossless
        idle = [key for key, b in self._mem.items() if now - b.updated_at >= b.window]
        for key in idle:
            del self._mem[key]
        self._next_sweep = now + min((b.window for b in self._mem.values()), default=1.0)

    def reset(self) -> None:
        """Forget in-process buckets (Redis keys drain through their TTL)."""
        with self._lock:
            self._mem.clear()
