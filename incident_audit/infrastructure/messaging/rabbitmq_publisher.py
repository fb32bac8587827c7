# incident_audit/infrastructure/messaging/rabbitmq_publisher.py

import json
from typing import Any, Dict, Optional

import aio_pika

from incident_audit.application.exceptions import NotificationFailureError

ROUTING_RECORD_CHANGED = "incident_log.changed"


class RabbitMQPublisher:
    def __init__(self, url: str):
        self._url = url
        self._connection = None
        self._channel = None

    async def connect(self):
        self._connection = await aio_pika.connect_robust(self._url)
        self._channel = await self._connection.channel()
        await self._channel.set_qos(prefetch_count=10)

    async def close(self):
        if self._connection is not None:
            await self._connection.close()
        self._connection = None
        self._channel = None

    async def publish(
        self,
        exchange_name: str,
        routing_key: str,
        message: dict,
        message_id: Optional[str] = None,
    ):

        if not self._channel:
            await self.connect()

        exchange = await self._channel.declare_exchange(
            exchange_name,
            aio_pika.ExchangeType.TOPIC,
            durable=True,
        )

        msg = aio_pika.Message(
            body=json.dumps(message, default=str).encode(),
            content_type="application/json",
            message_id=message_id,
        )

        await exchange.publish(msg, routing_key=routing_key)


class RabbitMQBroadcastChannel:
    """BroadcastChannel over a RabbitMQ topic exchange. Transient messages; subscribers re-fetch state."""

    def __init__(self, publisher: RabbitMQPublisher, exchange_name: str) -> None:
        self._publisher = publisher
        self._exchange = exchange_name

    async def broadcast(self, message: Dict[str, Any]) -> None:
        try:
            await self._publisher.publish(
                self._exchange,
                ROUTING_RECORD_CHANGED,
                message,
                message_id=message.get("correlation_id"),
            )
        except Exception as e:
            raise NotificationFailureError(f"RabbitMQ publish failed: {e}") from e
