import logging

import redis
from redis.exceptions import RedisError

from dialcrm.core.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed-window counter in Redis; lets requests through when Redis is down."""

    def __init__(self, prefix: str = "login", limit: int = 5, window_seconds: int = 300):
        self.prefix = prefix
        self.limit = limit
        self.window_seconds = window_seconds
        self.client = redis.Redis.from_url(
            settings.redis_url, decode_responses=True, socket_connect_timeout=1
        )

    def hit(self, key: str) -> bool:
        redis_key = f"{self.prefix}:{key}"
        try:
            count = self.client.incr(redis_key)
            if count == 1:
                self.client.expire(redis_key, self.window_seconds)
            return count <= self.limit
        except RedisError:
            logger.warning("Rate limiter unavailable, allowing %s", redis_key)
            return True

    def reset(self, key: str) -> None:
        try:
            self.client.delete(f"{self.prefix}:{key}")
        except RedisError:
            return
