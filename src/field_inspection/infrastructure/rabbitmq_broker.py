"""RabbitMQ message broker implementation."""

import json
from collections.abc import Callable
from typing import Any

import pika
from pika.channel import Channel

from field_inspection.config import QueueConfig, RabbitMQConfig
from field_inspection.exceptions import EventPublishError
from field_inspection.infrastructure.interfaces import MessageBroker
from field_inspection.logging import setup_logging

logger = setup_logging()

# An analysis run holds one inspection for minutes; never buffer a second one.
ANALYSIS_PREFETCH_COUNT = 1

PERSISTENT_JSON = pika.BasicProperties(
    content_type="application/json",
    delivery_mode=pika.DeliveryMode.Persistent,
)


class RabbitMQBroker(MessageBroker):
    """
    Publishes analysis events and consumes analysis requests over RabbitMQ.

    Requests land on a quorum queue whose delivery limit routes repeatedly
    rejected messages to a dead-letter queue.
    """

    def __init__(self, channel: Channel, config: RabbitMQConfig):
        self._channel = channel
        self._config = config

    @property
    def _queue(self) -> QueueConfig:
        return self._config.queue_config

    def publish(self, routing_key: str, payload: dict) -> None:
        """
        Publishes a persistent JSON message to the events exchange.

        Raises:
            EventPublishError: If publishing fails.
        """
        try:
            self._channel.basic_publish(
                exchange=self._config.exchange_name,
                routing_key=routing_key,
                body=json.dumps(payload),
                properties=PERSISTENT_JSON,
            )
        except Exception as e:
            logger.exception(
                "Failed to publish event",
                extra={
                    "routing_key": routing_key,
                    "inspection_id": payload.get("inspection_id"),
                },
            )
            raise EventPublishError(routing_key, cause=e) from e

        logger.info(
            "Event published",
            extra={
                "routing_key": routing_key,
                "inspection_id": payload.get("inspection_id"),
            },
        )

    def acknowledge(self, delivery_tag: int) -> None:
        self._channel.basic_ack(delivery_tag=delivery_tag)

    def reject(self, delivery_tag: int) -> None:
        # Requeued until the quorum delivery limit dead-letters it.
        self._channel.basic_nack(delivery_tag=delivery_tag, requeue=True)

    def consume(
        self, callback: Callable[[bytes, int, dict[str, Any] | None], None]
    ) -> None:
        def on_message(ch, method, properties, body):
            headers = properties.headers if properties else None
            callback(body, method.delivery_tag, headers)

        self._channel.basic_qos(prefetch_count=ANALYSIS_PREFETCH_COUNT)
        self._channel.basic_consume(
            queue=self._queue.name, on_message_callback=on_message
        )
        logger.info("Waiting for analysis requests", extra={"queue": self._queue.name})
        self._channel.start_consuming()

    def setup(self) -> None:
        """Declares the events exchange, the analysis queue and its DLQ."""
        self._declare_dead_letter_route()
        self._declare_analysis_queue()
        logger.info(
            "Analysis queue ready",
            extra={
                "queue": self._queue.name,
                "exchange": self._config.exchange_name,
                "dlq": self._queue.dlq_name,
            },
        )

    def _declare_dead_letter_route(self) -> None:
        queue = self._queue
        self._channel.exchange_declare(
            exchange=queue.dlq_exchange_name, exchange_type="direct", durable=True
        )
        self._channel.queue_declare(queue=queue.dlq_name, durable=True)
        self._channel.queue_bind(
            queue=queue.dlq_name,
            exchange=queue.dlq_exchange_name,
            routing_key=queue.dlq_routing_key,
        )

    def _declare_analysis_queue(self) -> None:
        queue = self._queue
        self._channel.exchange_declare(
            exchange=self._config.exchange_name, exchange_type="topic", durable=True
        )
        self._channel.queue_declare(
            queue=queue.name,
            durable=True,
            arguments={
                "x-queue-type": queue.queue_type,
                "x-delivery-limit": queue.max_delivery_count,
                "x-dead-letter-exchange": queue.dlq_exchange_name,
                "x-dead-letter-routing-key": queue.dlq_routing_key,
            },
        )
        self._channel.queue_bind(
            queue=queue.name,
            exchange=self._config.exchange_name,
            routing_key=queue.expected_routing_key,
        )
