"""
RabbitMQ Broker Implementation
Implements the IMessageBroker interface for RabbitMQ using aio-pika for async support
"""

import logging
from typing import Any, Dict, List, Optional

import aio_pika
from aio_pika.exceptions import AMQPError, ChannelInvalidStateError

from commerce.core.errors import TransportError
from commerce.messaging.envelope import Envelope
from commerce.messaging.i_message_broker import (
    BrokerMessage,
    ConnectionLostCallback,
    IMessageBroker,
    MessageHandler,
    QueueBinding,
)

logger = logging.getLogger(__name__)

_BROKER_ERRORS = (AMQPError, ChannelInvalidStateError, OSError)


class RabbitMQBroker(IMessageBroker):
    """RabbitMQ implementation of IMessageBroker with async support"""

    def __init__(
        self,
        rabbitmq_url: str,
        exchange_name: str,
        exchange_type: str = "direct",
        prefetch_count: int = 10,
        heartbeat: int = 600,
    ):
        """
        Initialize RabbitMQ broker

        Args:
            rabbitmq_url: RabbitMQ connection URL
            exchange_name: Name of the exchange shared by all services
            exchange_type: Exchange type ("direct" or "topic")
            prefetch_count: Channel QoS prefetch count
            heartbeat: Connection heartbeat in seconds
        """
        self.rabbitmq_url = rabbitmq_url
        self.exchange_name = exchange_name
        self.exchange_type = exchange_type
        self.prefetch_count = prefetch_count
        self.heartbeat = heartbeat
        self.connection: Optional[aio_pika.abc.AbstractRobustConnection] = None
        self.channel: Optional[aio_pika.abc.AbstractChannel] = None
        self.exchange: Optional[aio_pika.abc.AbstractExchange] = None
        self.queues: List[aio_pika.abc.AbstractQueue] = []
        self._connection_lost_callbacks: List[ConnectionLostCallback] = []
        self._is_connected = False

    async def connect(self) -> None:
        """Connect to RabbitMQ and declare the shared exchange"""
        try:
            logger.info("Connecting to RabbitMQ...")

            self.connection = await aio_pika.connect_robust(
                self.rabbitmq_url,
                heartbeat=self.heartbeat,
            )

            self.channel = await self.connection.channel()
            await self.channel.set_qos(prefetch_count=self.prefetch_count)

            self.exchange = await self.channel.declare_exchange(
                self.exchange_name,
                aio_pika.ExchangeType(self.exchange_type),
                durable=True,
            )

        except _BROKER_ERRORS as e:
            logger.error(f"❌ Failed to connect to RabbitMQ: {e}")
            await self._discard_connection()
            raise TransportError(f"Failed to connect to RabbitMQ: {e}") from e

        self.connection.close_callbacks.add(self._on_connection_closed)
        self.connection.reconnect_callbacks.add(self._on_reconnected)
        self._is_connected = True

        logger.info("✅ RabbitMQ connected successfully")
        logger.info(f"🔀 Exchange: {self.exchange_name} ({self.exchange_type})")

    async def _discard_connection(self) -> None:
        """Drop a half-opened connection after a failed connect"""
        self._is_connected = False
        connection, self.connection = self.connection, None
        self.channel = None
        self.exchange = None
        if connection is not None and not connection.is_closed:
            try:
                await connection.close()
            except _BROKER_ERRORS as e:
                logger.warning(f"⚠️ Failed to close RabbitMQ connection: {e}")

    async def declare_exchange(self, name: str, kind: str = "direct", durable: bool = True) -> None:
        """Declare an exchange (idempotent)"""
        self._ensure_connected()
        try:
            exchange = await self.channel.declare_exchange(
                name,
                aio_pika.ExchangeType(kind),
                durable=durable,
            )
        except _BROKER_ERRORS as e:
            raise TransportError(f"Failed to declare exchange {name}: {e}") from e

        if name == self.exchange_name:
            self.exchange = exchange

    async def publish(
        self,
        destination: str,
        envelope: Envelope,
        correlation_id: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> None:
        """Publish an envelope to the shared exchange under `destination`"""
        self._ensure_connected()
        message = aio_pika.Message(
            body=envelope.encode(),
            content_type="application/json",
            correlation_id=correlation_id,
            reply_to=reply_to,
        )
        try:
            await self.exchange.publish(message, routing_key=destination)
        except _BROKER_ERRORS as e:
            logger.error(f"❌ Failed to publish to {destination}: {e}")
            raise TransportError(
                f"Failed to publish to {destination}",
                details={"destination": destination, "reason": str(e)},
            ) from e

        logger.debug(f"📤 Published to {destination} (correlationId: {correlation_id})")

    async def reply(
        self,
        reply_to: str,
        body: bytes,
        correlation_id: str,
        message_type: Optional[str] = None,
    ) -> None:
        """Publish a reply directly to `reply_to` through the default exchange"""
        self._ensure_connected()
        message = aio_pika.Message(
            body=body,
            content_type="application/json",
            correlation_id=correlation_id,
            type=message_type,
        )
        try:
            await self.channel.default_exchange.publish(message, routing_key=reply_to)
        except _BROKER_ERRORS as e:
            logger.error(f"❌ Failed to reply to {reply_to}: {e}")
            raise TransportError(
                f"Failed to reply to {reply_to}",
                details={"replyTo": reply_to, "reason": str(e)},
            ) from e

    async def consume(self, binding: QueueBinding, handler: MessageHandler) -> str:
        """
        Declare, bind and consume a queue with auto-ack

        Args:
            binding: Queue declaration and routing key
            handler: Async callback function to process messages

        Returns:
            The declared queue name
        """
        self._ensure_connected()

        async def on_message(message: aio_pika.abc.AbstractIncomingMessage) -> None:
            await handler(
                BrokerMessage(
                    body=message.body,
                    routing_key=message.routing_key or "",
                    correlation_id=message.correlation_id,
                    reply_to=message.reply_to,
                    message_type=message.type,
                )
            )

        try:
            queue = await self.channel.declare_queue(
                binding.queue_name,
                exclusive=binding.exclusive,
                auto_delete=binding.auto_delete,
                durable=binding.durable,
            )
            if binding.routing_key is not None:
                await queue.bind(self.exchange, routing_key=binding.routing_key)
            await queue.consume(on_message, no_ack=True)
        except _BROKER_ERRORS as e:
            logger.error(f"❌ Failed to consume from {binding.queue_name}: {e}")
            raise TransportError(
                f"Failed to consume from {binding.queue_name}",
                details={"queue": binding.queue_name, "reason": str(e)},
            ) from e

        self.queues.append(queue)
        logger.info(
            f"🎯 Consuming queue {queue.name} (routingKey: {binding.routing_key})"
        )
        return queue.name

    def add_connection_lost_callback(self, callback: ConnectionLostCallback) -> None:
        self._connection_lost_callbacks.append(callback)

    def _on_connection_closed(self, _sender: Any, *args: Any) -> None:
        exc = next((a for a in args if isinstance(a, BaseException)), None)
        if self._is_connected:
            logger.warning(f"⚠️ RabbitMQ connection lost: {exc}")
        self._is_connected = False
        for callback in list(self._connection_lost_callbacks):
            try:
                callback(exc)
            except Exception as e:
                logger.error(f"❌ Connection-lost callback failed: {e}")

    def _on_reconnected(self, _sender: Any, *args: Any) -> None:
        logger.info("🔁 RabbitMQ connection re-established")
        self._is_connected = True

    def _ensure_connected(self) -> None:
        if not self.is_healthy():
            raise TransportError("RabbitMQ connection is not available")

    async def disconnect(self) -> None:
        """Close RabbitMQ connection"""
        logger.info("🛑 Stopping RabbitMQ broker...")
        try:
            if self.channel and not self.channel.is_closed:
                await self.channel.close()
                logger.info("📦 Channel closed")

            if self.connection and not self.connection.is_closed:
                await self.connection.close()
                logger.info("🔌 RabbitMQ connection closed")
        finally:
            self._is_connected = False
            self.queues = []

    def is_healthy(self) -> bool:
        """Check if broker connection is healthy"""
        return (
            self._is_connected
            and self.connection is not None
            and not self.connection.is_closed
            and self.channel is not None
        )

    async def get_stats(self) -> Dict[str, Any]:
        """Get RabbitMQ statistics"""
        return {
            "exchange": self.exchange_name,
            "exchange_type": self.exchange_type,
            "queues": [queue.name for queue in self.queues],
            "connected": self.is_healthy(),
        }
