import json
import logging

from redis.exceptions import RedisError

from app.infra.redis_client import get_sync_redis

logger = logging.getLogger("recipebox.cache")


def get_or_set_json_sync(key: str, ttl_sec: int, compute_func):
    """Return (value, hit). A redis outage falls through to compute_func."""
    try:
        r = get_sync_redis()
        raw = r.get(key)
        if raw:
            return json.loads(raw), True
    except RedisError as e:
        logger.warning(f"Cache read failed for {key}: {e}")
        return compute_func(), False

    val = compute_func()
    try:
        r.set(key, json.dumps(val), ex=ttl_sec)
    except RedisError as e:
        logger.warning(f"Cache write failed for {key}: {e}")
    return val, False


def invalidate(key: str) -> None:
    try:
        get_sync_redis().delete(key)
    except RedisError as e:
        logger.warning(f"Cache invalidation failed for {key}: {e}")
