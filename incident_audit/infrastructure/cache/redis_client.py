# incident_audit/infrastructure/cache/redis_client.py

import json
from typing import Any, Dict

import redis.asyncio as redis

from incident_audit.application.exceptions import NotificationFailureError


class RedisClient:
    def __init__(self, url: str):
        self.client = redis.from_url(
            url,
            decode_responses=True,
        )

    async def publish(self, channel: str, message: str) -> int:
        """Publish to a pub/sub channel. Returns the number of subscribers that received it."""
        return await self.client.publish(channel, message)

    async def close(self) -> None:
        await self.client.aclose()


class RedisBroadcastChannel:
    """BroadcastChannel over Redis pub/sub, one channel per record plus a firehose channel."""

    def __init__(self, redis_client: RedisClient, channel_prefix: str) -> None:
        self._redis = redis_client
        self._prefix = channel_prefix

    async def broadcast(self, message: Dict[str, Any]) -> None:
        payload = json.dumps(message, default=str)
        try:
            await self._redis.publish(self._prefix, payload)
            await self._redis.publish(f"{self._prefix}:{message['record_id']}", payload)
        except Exception as e:
            raise NotificationFailureError(f"Redis publish failed: {e}") from e
