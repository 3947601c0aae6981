"""
Shared client instances.

The Redis client is created lazily on first access so importing this module
never opens a connection (tests and the sql/memory stores never touch it).
"""
import logging

import redis

from leadboard.config import REDIS_URL

logger = logging.getLogger('leadboard.extensions')

_redis_client = None


def get_redis():
    """Return the process-wide Redis client, creating it on first use."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(REDIS_URL, decode_responses=True)
        logger.info("Redis client initialized for %s", REDIS_URL.split('@')[-1])
    return _redis_client
