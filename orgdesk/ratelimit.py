from __future__ import annotations

import hashlib

import redis
from fastapi import HTTPException, Request

from orgdesk.config import settings
from orgdesk.logging_config import get_logger
from orgdesk.redis_client import redis_client

log = get_logger(__name__)

def _hash(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()[:24]

# fixed-window limiter using redis INCR + EXPIRE
def rate_limit(name: str, limit_per_window: int, window_seconds: int = 60):
    async def _dep(request: Request) -> None:
        if not settings.rate_limit_enabled:
            return

        # per bearer token when present, else per client ip
        caller = request.headers.get("authorization") or (request.client.host if request.client else "unknown")
        key = f"rl:{name}:{_hash(caller.strip())}"

        try:
            pipe = redis_client.pipeline()
            pipe.incr(key)
            pipe.expire(key, window_seconds, nx=True)
            count, _ = pipe.execute()
        except redis.RedisError as e:
            # fail-open if redis is down
            log.warning("rate limiter unavailable (%s), allowing request", e.__class__.__name__)
            return

        if int(count) > int(limit_per_window):
            raise HTTPException(status_code=429, detail="rate_limited")

    return _dep
