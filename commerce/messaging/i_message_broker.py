"""
Message Broker Interface
Defines the contract the event dispatcher, RPC gateway and RPC responder rely on.

Delivery is at-most-once: messages are acknowledged the moment they are handed
to a handler, so a failing handler never causes redelivery. Handlers must be
idempotent and tolerant of lost messages.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from commerce.messaging.envelope import Envelope


@dataclass(frozen=True)
class BrokerMessage:
    """Transport-neutral view of a received message"""

    body: bytes
    routing_key: str = ""
    correlation_id: Optional[str] = None
    reply_to: Optional[str] = None
    message_type: Optional[str] = None


@dataclass(frozen=True)
class QueueBinding:
    """
    Queue declaration plus its binding to the shared exchange.

    A routing_key of None leaves the queue unbound; it is then only reachable
    by name through the default exchange (used for RPC reply queues).
    """

    queue_name: str
    routing_key: Optional[str] = None
    exclusive: bool = True
    auto_delete: bool = True
    durable: bool = False


MessageHandler = Callable[[BrokerMessage], Awaitable[None]]
ConnectionLostCallback = Callable[[Optional[BaseException]], None]


class IMessageBroker(ABC):
    """Abstract base class for message broker implementations"""

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish connection to the message broker and declare the shared exchange

        Raises:
            TransportError: If the broker cannot be reached
        """

    @abstractmethod
    async def declare_exchange(self, name: str, kind: str = "direct", durable: bool = True) -> None:
        """Declare an exchange (idempotent, safe on every start)"""

    @abstractmethod
    async def publish(
        self,
        destination: str,
        envelope: Envelope,
        correlation_id: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> None:
        """
        Serialize and publish an envelope under routing key `destination`.

        Fire-and-forget: does not wait for any consumer.

        Raises:
            TransportError: If the broker is unreachable; never retried here
        """

    @abstractmethod
    async def reply(
        self,
        reply_to: str,
        body: bytes,
        correlation_id: str,
        message_type: Optional[str] = None,
    ) -> None:
        """
        Publish a raw reply body straight to a reply queue.

        `message_type` travels as the AMQP type property; error replies set it.

        Raises:
            TransportError: If the broker is unreachable
        """

    @abstractmethod
    async def consume(self, binding: QueueBinding, handler: MessageHandler) -> str:
        """
        Declare and bind a queue, then invoke `handler` once per message (auto-ack).

        Args:
            binding: Queue declaration and routing key
            handler: Async callback receiving a BrokerMessage

        Returns:
            The declared queue name
        """

    @abstractmethod
    def add_connection_lost_callback(self, callback: ConnectionLostCallback) -> None:
        """Register a callback fired when the broker connection drops"""

    @abstractmethod
    async def disconnect(self) -> None:
        """
        Close connection to the message broker
        """

    @abstractmethod
    def is_healthy(self) -> bool:
        """
        Check if the broker connection is healthy

        Returns:
            True if connected and ready, False otherwise
        """

    @abstractmethod
    async def get_stats(self) -> Dict[str, Any]:
        """
        Get exchange/queue statistics (for monitoring)

        Returns:
            Dictionary with statistics
        """
