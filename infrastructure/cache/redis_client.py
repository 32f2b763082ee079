"""Async Redis connection factory.

Redis only backs the flow metrics context stash. It is optional: with no
REDIS_URI, or when the server cannot be reached at startup, this returns
None and MetricsContextStore degrades to a no-op.
"""

from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config import RedisSettings
from shared.logging import get_logger

log = get_logger(__name__)


async def create_redis_client(settings: RedisSettings) -> Optional[aioredis.Redis]:
    if not settings.redis_uri:
        log.info("redis_not_configured")
        return None

    client: aioredis.Redis = aioredis.from_url(
        settings.redis_uri, encoding="utf-8", decode_responses=True
    )
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        log.warning(
            "redis_connection_failed", error=str(e), error_type=type(e).__name__
        )
        await client.aclose()
        return None

    log.info("redis_connected", uri=settings.redis_uri.split("@")[-1])
    return client
