"""Abstract interfaces for the analysis request queue."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

MessageCallback = Callable[[bytes, int, dict[str, Any] | None], None]


class MessagePublisher(ABC):
    """Sends analysis requests and results to the broker."""

    @abstractmethod
    def publish(self, routing_key: str, payload: dict) -> None:
        """
        Publishes a JSON-serializable payload under routing_key.

        Raises:
            EventPublishError: If the broker does not accept the message.
        """


class MessageBroker(MessagePublisher, ABC):
    """A publisher that also consumes the analysis request queue."""

    @abstractmethod
    def acknowledge(self, delivery_tag: int) -> None:
        """Marks a request as handled; it will not be redelivered."""

    @abstractmethod
    def reject(self, delivery_tag: int) -> None:
        """Returns a request to the queue for another attempt."""

    @abstractmethod
    def consume(self, callback: MessageCallback) -> None:
        """
        Blocks, calling callback(body, delivery_tag, headers) per request.

        Headers carry the broker's delivery count when it tracks one.
        """

    @abstractmethod
    def setup(self) -> None:
        """Declares the exchanges and queues the worker relies on."""
