"""
Payment confirmation lock using Redis.

Serializes concurrent confirmations of the same checkout session across
workers. The unique constraint on ``payments.transaction_id`` remains the
authoritative guard; this lock only keeps racing requests from doing the
work twice.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from redis.exceptions import RedisError
from parcel_backend.app.core.config import settings
from parcel_backend.app.core.exceptions import ConflictError

logger = logging.getLogger(__name__)

# Redis key prefix for in-flight confirmations
CONFIRMATION_LOCK_PREFIX = "lock:payment-confirmation:"


class ConfirmationLock:
    
    def __init__(self, redis, ttl_seconds: int = None):
        self.redis = redis
        self.ttl_seconds = ttl_seconds or settings.confirmation_lock_ttl_seconds

    @asynccontextmanager
    async def hold(self, session_id: str):
        """
        Hold the lock for one checkout session.
        
        Raises:
            ConflictError: another request is confirming the same session
        """
        key = f"{CONFIRMATION_LOCK_PREFIX}{session_id}"
        token = uuid.uuid4().hex
        
        try:
            acquired = await self.redis.set(key, token, nx=True, ex=self.ttl_seconds)
        except RedisError:
            # Fall back on the database unique constraint
            logger.warning("Confirmation lock unavailable for session %s", session_id, exc_info=True)
            yield
            return
        
        if not acquired:
            raise ConflictError(
                "Payment confirmation already in progress",
                details={"sessionId": session_id}
            )
        
        try:
            yield
        finally:
            try:
                if await self.redis.get(key) == token:
                    await self.redis.delete(key)
            except RedisError:
                logger.warning("Could not release confirmation lock %s; it expires in %ss", key, self.ttl_seconds)
