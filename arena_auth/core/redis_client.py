"""Redis connection and the login attempt limiter."""

import redis
import structlog

from arena_auth.config import settings

logger = structlog.get_logger(__name__)

_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return the process-wide Redis client, creating it on first use."""
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password or None,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            health_check_interval=30,
        )

    return _redis_client


def check_redis_connection() -> bool:
    """Whether Redis answers a PING. Blocking; async callers use a worker thread."""
    try:
        return bool(get_redis_client().ping())
    except redis.RedisError:
        return False


def close_redis_connection() -> None:
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class RateLimiter:
    """
    Fixed-window attempt counter.

    The first attempt in a window creates the counter with a TTL of
    ``window`` seconds; attempts beyond ``limit`` are refused until it expires.
    """

    def __init__(self, redis_client: redis.Redis, limit: int, window: int = 60):
        self.redis = redis_client
        self.limit = limit
        self.window = window

    def check_rate_limit(self, key: str) -> bool:
        """
        Count one attempt for ``key``.

        Returns:
            True if the attempt is allowed. Redis errors allow it too.
        """
        try:
            attempts = int(self.redis.incr(key))
            if attempts == 1:
                self.redis.expire(key, self.window)
        except redis.RedisError as e:
            logger.warning("rate_limit_check_failed", key=key, error=str(e))
            return True

        if attempts > self.limit:
            logger.info("rate_limit_exceeded", key=key, attempts=attempts, limit=self.limit)
            return False
        return True
