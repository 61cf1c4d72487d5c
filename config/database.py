"""
Redis connection for the session store.

Only used when SESSION_BACKEND=redis. The client is created lazily on first
use and shares one connection pool for the life of the process.
"""

import logging
from typing import Optional

import redis
from redis import ConnectionPool

from config.settings import settings

logger = logging.getLogger(__name__)


_redis_client: Optional[redis.Redis] = None
_redis_pool: Optional[ConnectionPool] = None


def get_redis_client() -> redis.Redis:
    """
    Get the shared Redis client, connecting on first call.

    Raises:
        ConnectionError: If Redis does not answer a ping
    """
    global _redis_client, _redis_pool

    if _redis_client is not None:
        return _redis_client

    pool = ConnectionPool(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        db=settings.REDIS_DB,
        max_connections=settings.REDIS_MAX_CONNECTIONS,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5
    )
    client = redis.Redis(connection_pool=pool)

    try:
        client.ping()
    except redis.RedisError as e:
        pool.disconnect()
        logger.error(f"Failed to connect to Redis: {e}")
        raise ConnectionError(f"Redis connection failed: {e}")

    _redis_client, _redis_pool = client, pool
    logger.info(f"Connected to Redis at {settings.REDIS_HOST}:{settings.REDIS_PORT}")
    return _redis_client


def ping_redis() -> Optional[str]:
    """Ping the session backend; returns the error text, or None when reachable."""
    try:
        get_redis_client().ping()
    except (ConnectionError, redis.RedisError) as e:
        return str(e)
    return None


def close_redis() -> None:
    """Release the shared client and its pool. Safe to call when never connected."""
    global _redis_client, _redis_pool

    if _redis_pool is not None:
        _redis_pool.disconnect()
        logger.info("Closed Redis connection pool")

    _redis_client = None
    _redis_pool = None
