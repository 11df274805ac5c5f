import json
import logging

import redis

from nemdash.config import REDIS_URL

logger = logging.getLogger(__name__)

redis_client = redis.Redis.from_url(REDIS_URL, decode_responses=True)


def set_cache(key: str, value, ex: int = 3600):
    try:
        redis_client.set(key, json.dumps(value, default=str), ex=ex)
    except redis.RedisError as e:
        logger.warning(f"Redis set failed for {key}: {e}")

def get_cache(key: str):
    try:
        v = redis_client.get(key)
    except redis.RedisError as e:
        logger.warning(f"Redis get failed for {key}: {e}")
        return None
    if v is None:
        return None
    try:
        return json.loads(v)
    except ValueError:
        return v

def invalidate_cache(key: str):
    try:
        redis_client.delete(key)
    except redis.RedisError as e:
        logger.warning(f"Redis delete failed for {key}: {e}")


def next_generation(key: str) -> int:
    """Issue a new generation number for a refresh of ``key``."""
    return int(redis_client.incr(f"{key}:generation"))

def set_cache_if_current(key: str, generation: int, value, ex: int = 3600) -> bool:
    """Write ``value`` only if no newer refresh of ``key`` has started since ``generation`` was issued.

    The generation key is WATCHed, so a refresh issued between the check and the
    write aborts the transaction instead of being overwritten.
    """
    generation_key = f"{key}:generation"
    try:
        with redis_client.pipeline() as pipe:
            pipe.watch(generation_key)
            latest = pipe.get(generation_key)
            if latest is not None and int(latest) != generation:
                logger.info(f"Discarding stale refresh of {key}: generation {generation}, latest {latest}")
                return False
            pipe.multi()
            pipe.set(key, json.dumps(value, default=str), ex=ex)
            pipe.execute()
            return True
    except redis.WatchError:
        logger.info(f"Discarding stale refresh of {key}: superseded while writing generation {generation}")
        return False
    except redis.RedisError as e:
        logger.warning(f"Redis generation check failed for {key}: {e}")
        return False
