"""
Redis client initialization and connection management.

Redis backs the payment confirmation lock.
"""

import redis.asyncio as redis
from redis.exceptions import RedisError
from parcel_backend.app.core.config import settings


# Create async Redis client
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """
    Get Redis client instance.
    
    Used as a FastAPI dependency so tests can swap the client.
    """
    return redis_client


async def ping_redis(client=None) -> bool:
    """
    Test Redis connection.
    
    Args:
        client: Redis client to ping (defaults to the shared client)
        
    Returns:
        True if connection successful, False otherwise
    """
    try:
        return bool(await (client or redis_client).ping())
    except RedisError:
        return False
