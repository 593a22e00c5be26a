"""
Event Dispatcher
Binds a service's event queue to the shared exchange and routes every inbound
event envelope to the owning service's handler for its kind.
"""

import uuid
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Mapping, Optional

from commerce.core.errors import ErrorResponse, ValidationError
from commerce.core.logger import logger
from commerce.messaging.envelope import EventEnvelope
from commerce.messaging.i_message_broker import BrokerMessage, IMessageBroker, QueueBinding
from commerce.messaging.message_types import EventType

if TYPE_CHECKING:
    from commerce.services.base_service import IService

EventHandler = Callable[[Dict[str, Any]], Awaitable[None]]


async def dispatch_event(
    handlers: Mapping[EventType, EventHandler],
    envelope: EventEnvelope,
    correlation_id: Optional[str] = None,
) -> bool:
    """
    Run the handler registered for the envelope's kind.

    Unknown kinds and kinds without a handler are a no-op. Handler failures are
    logged and swallowed so the consume loop keeps running.

    Returns:
        True if a handler ran to completion
    """
    kind = envelope.kind
    handler = handlers.get(kind) if kind is not None else None

    if handler is None:
        logger.debug(
            f"No handler registered for event: {envelope.event}",
            correlation_id=correlation_id,
            metadata={"event": envelope.event},
        )
        return False

    try:
        await handler(envelope.data)
    except Exception as e:
        logger.error(
            f"Event handler failed: {envelope.event}",
            correlation_id=correlation_id,
            error=e,
            metadata={"event": envelope.event},
        )
        return False

    logger.info(
        f"Processed event: {envelope.event}",
        correlation_id=correlation_id,
        metadata={"event": envelope.event},
    )
    return True


class DispatcherState(str, Enum):
    UNBOUND = "unbound"
    BOUND = "bound"
    CONSUMING = "consuming"
    CLOSED = "closed"


class EventDispatcher:
    """
    Per-service pub/sub consumer.

    Lifecycle: UNBOUND -> BOUND -> CONSUMING -> CLOSED. By default every
    instance of a service consumes the shared `<destination>.events` queue, so
    instances compete and each event is handled once. An exclusive dispatcher
    gets a private `<destination>.events.<id>` queue and sees every event.
    """

    def __init__(
        self,
        broker: IMessageBroker,
        destination: str,
        service: "IService",
        exclusive: bool = False,
    ):
        self.broker = broker
        self.destination = destination
        self.service = service
        self.exclusive = exclusive
        self._queue_suffix = f".{uuid.uuid4().hex}" if exclusive else ""
        self.queue_name: Optional[str] = None
        self.state = DispatcherState.UNBOUND

    @property
    def binding(self) -> QueueBinding:
        return QueueBinding(
            queue_name=f"{self.destination}.events{self._queue_suffix}",
            routing_key=self.destination,
            exclusive=self.exclusive,
            auto_delete=True,
        )

    async def start(self) -> None:
        """Bind the event queue and begin consuming"""
        if self.state is not DispatcherState.UNBOUND:
            raise RuntimeError(f"Event dispatcher already {self.state.value}")

        binding = self.binding
        self.state = DispatcherState.BOUND
        try:
            self.queue_name = await self.broker.consume(binding, self._on_message)
        except ErrorResponse:
            self.state = DispatcherState.UNBOUND
            raise

        self.state = DispatcherState.CONSUMING
        logger.info(
            f"Waiting for events on {self.queue_name}",
            metadata={"destination": self.destination, "queue": self.queue_name},
        )

    async def on_event(self, envelope: EventEnvelope, correlation_id: Optional[str] = None) -> bool:
        """Route one decoded envelope to the service's handler"""
        return await dispatch_event(self.service.event_handlers, envelope, correlation_id)

    async def _on_message(self, message: BrokerMessage) -> None:
        if self.state is DispatcherState.CLOSED:
            return

        try:
            envelope = EventEnvelope.decode(message.body)
        except ValidationError as e:
            logger.error(
                "Dropping malformed event message",
                correlation_id=message.correlation_id,
                error=e,
                metadata={"routingKey": message.routing_key, **e.details},
            )
            return

        logger.debug(
            f"Received {message.routing_key}: {envelope.event}",
            correlation_id=message.correlation_id,
        )
        await self.on_event(envelope, message.correlation_id)

    def close(self) -> None:
        """Stop routing events; the broker owns the underlying queue"""
        self.state = DispatcherState.CLOSED
