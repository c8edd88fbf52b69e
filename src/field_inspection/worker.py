"""Workers that drive analysis from the queue and drain the sync outbox."""

import json
import threading
from typing import Any

from pydantic import ValidationError

from field_inspection.config import RabbitMQConfig
from field_inspection.domain.models import AnalysisMessage, AnalysisStatus, SyncReport
from field_inspection.exceptions import AnalysisError, NotFoundError
from field_inspection.handlers.analysis_handler import AnalysisHandler
from field_inspection.handlers.sync_handler import SyncHandler
from field_inspection.infrastructure.interfaces import MessageBroker
from field_inspection.logging import setup_logging

logger = setup_logging()


class AnalysisWorker:
    """Consumes analysis requests from the queue and orchestrates processing."""

    def __init__(
        self,
        broker: MessageBroker,
        handler: AnalysisHandler,
        config: RabbitMQConfig,
    ):
        self._broker = broker
        self._handler = handler
        self._config = config

    def start(self) -> None:
        """Starts consuming messages from the queue."""
        logger.info("Worker initialized, starting message consumption")
        self._broker.consume(self._on_message)

    def _on_message(
        self, body: bytes, delivery_tag: int, headers: dict[str, Any] | None
    ) -> None:
        """Callback for each received message."""
        delivery_count = headers.get("x-delivery-count", 1) if headers else 1
        queue_config = self._config.queue_config

        logger.info(
            "Message received",
            extra={
                "attempt": delivery_count,
                "max_attempts": queue_config.max_delivery_count,
            },
        )

        try:
            message = AnalysisMessage.model_validate(json.loads(body))
        except (ValidationError, json.JSONDecodeError) as e:
            logger.exception("Invalid message format", extra={"error": str(e)})
            self._broker.reject(delivery_tag)
            return

        try:
            payload = self._handle(message)
        except (NotFoundError, AnalysisError) as e:
            # Redelivery cannot fix a missing record or a failed caption retry.
            logger.exception(
                "Analysis request failed",
                extra={
                    "inspection_id": message.inspection_id,
                    "photo_id": message.photo_id,
                },
            )
            self._broker.acknowledge(delivery_tag)
            self._broker.publish(
                routing_key=queue_config.failure_routing_key,
                payload={
                    **message.model_dump(),
                    "status": AnalysisStatus.FAILED.value,
                    "error": str(e),
                },
            )
            return
        except Exception:
            logger.exception(
                "Message processing failed",
                extra={"inspection_id": message.inspection_id},
            )
            self._broker.reject(delivery_tag)
            return

        self._broker.acknowledge(delivery_tag)

        routing_key = (
            queue_config.failure_routing_key
            if payload["status"] == AnalysisStatus.FAILED.value
            else queue_config.success_routing_key
        )
        self._broker.publish(routing_key=routing_key, payload=payload)

        logger.info(
            "Message processed successfully",
            extra={"inspection_id": message.inspection_id, "status": payload["status"]},
        )

    def _handle(self, message: AnalysisMessage) -> dict[str, Any]:
        if message.photo_id is not None:
            caption = self._handler.retry_caption(message.photo_id)
            return {
                "inspection_id": message.inspection_id,
                "photo_id": caption.photo_id,
                "status": AnalysisStatus.COMPLETED.value,
                "caption": caption.caption,
            }

        result = self._handler.process(message.inspection_id)
        return {
            "inspection_id": result.inspection_id,
            "status": result.status.value,
            "failed_captions": result.failed_captions,
            "failed_persists": result.failed_persists,
            "error": result.error,
        }


class SyncWorker:
    """Polls the outbox on an interval until stopped."""

    def __init__(self, handler: SyncHandler, poll_interval_seconds: float = 5.0):
        self._handler = handler
        self._poll_interval_seconds = poll_interval_seconds
        self._stop_event = threading.Event()

    def start(self) -> None:
        """Reconciles once, then drains the outbox until stop() is called."""
        logger.info(
            "Sync worker started",
            extra={"poll_interval_seconds": self._poll_interval_seconds},
        )
        self._handler.reconcile()
        while not self._stop_event.is_set():
            self.run_once()
            self._stop_event.wait(self._poll_interval_seconds)
        logger.info("Sync worker stopped")

    def run_once(self) -> SyncReport | None:
        try:
            return self._handler.drain()
        except Exception:
            logger.exception("Outbox drain failed")
            return None

    def stop(self) -> None:
        self._stop_event.set()
