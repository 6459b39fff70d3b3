import logging
import redis.asyncio as redis
from typing import Optional
from .settings import settings

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None


async def init_redis(url: Optional[str] = None) -> Optional[redis.Redis]:
    """Initialize Redis connection"""
    global redis_client
    redis_client = redis.from_url(
        url or settings.redis_url,
        decode_responses=True
    )

    # Test connection
    try:
        await redis_client.ping()
        logger.info("Redis connected")
    except redis.RedisError as e:
        # The client stays usable; store calls will surface StoreError until Redis is back
        logger.error(f"Redis connection failed: {e}")

    return redis_client


async def close_redis():
    """Close Redis connection"""
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis connection closed")
