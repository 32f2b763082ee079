"""Redis-backed stash of flow metrics context, keyed by token id.

Stored as JSON so entries are debuggable. Redis is optional: with no client
every operation is a no-op and flows simply are not joined across requests.
"""

from typing import Optional

import redis.asyncio as aioredis

from schemas.models.metrics import MetricsContext
from shared.logging import get_logger

log = get_logger(__name__)


class MetricsContextStore:
    def __init__(
        self, redis_client: Optional[aioredis.Redis], ttl_seconds: int = 7200
    ) -> None:
        self._redis = redis_client
        self.ttl_seconds = ttl_seconds

    def _key(self, token_id: str) -> str:
        return f"metrics_context:{token_id}"

    async def stash(self, token_id: str, context: Optional[MetricsContext]) -> None:
        if self._redis is None or context is None:
            return
        try:
            await self._redis.setex(
                self._key(token_id),
                self.ttl_seconds,
                context.model_dump_json(by_alias=True, exclude_none=True),
            )
        except Exception as e:
            log.error("metrics_context_stash_error", token_id=token_id, error=str(e))

    async def get(self, token_id: str) -> Optional[MetricsContext]:
        if self._redis is None:
            return None
        try:
            raw = await self._redis.get(self._key(token_id))
            if raw is None:
                return None
            return MetricsContext.model_validate_json(raw)
        except Exception as e:
            log.warning("metrics_context_get_error", token_id=token_id, error=str(e))
            return None

    async def propagate(self, old_token_id: str, new_token_id: str) -> None:
        """Carry the flow over from a consumed token to its successor."""
        context = await self.get(old_token_id)
        if context is None:
            return
        await self.stash(new_token_id, context)
        try:
            await self._redis.delete(self._key(old_token_id))
        except Exception as e:
            log.error(
                "metrics_context_delete_error", token_id=old_token_id, error=str(e)
            )
