from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Optional

import redis

from meso import config

logger = logging.getLogger(__name__)

_client: redis.Redis | None = None


def client() -> Optional[redis.Redis]:
    global _client
    if not config.REDIS_URL:
        return None
    if _client is None:
        _client = redis.Redis.from_url(config.REDIS_URL, decode_responses=True)
    return _client


def make_key(prefix: str, obj: Any) -> str:
    s = json.dumps(obj, sort_keys=True, separators=(",", ":"))
    h = hashlib.sha256(s.encode("utf-8")).hexdigest()
    return f"{prefix}:{h}"


def get_text(key: str) -> str | None:
    c = client()
    if not c:
        return None
    try:
        v = c.get(key)
    except redis.RedisError as e:
        logger.warning("cache read failed for %s: %s", key, e)
        return None
    if v:
        logger.debug("cache hit %s", key)
    return v or None


def set_text(key: str, value: str, ttl: int | None = None) -> None:
    c = client()
    if not c:
        return
    try:
        c.set(key, value, ex=ttl or config.CACHE_TTL_SECONDS)
    except redis.RedisError as e:
        logger.warning("cache write failed for %s: %s", key, e)
