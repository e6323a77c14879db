"""
Redis client initialization.

Redis is the pub/sub bus that carries live location, trip and alert events
to the dashboard's subscribers.
"""

import redis.asyncio as redis
from bus_tracking.app.core.config import settings


# Create async Redis client (connects lazily on first command)
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)
