"""
Message Broker Factory
Creates the broker instance for the configured transport
"""

from commerce.core.config import Config, config as default_config
from commerce.core.logger import logger
from commerce.messaging.i_message_broker import IMessageBroker
from commerce.messaging.rabbitmq_broker import RabbitMQBroker


class MessageBrokerFactory:
    """Factory for creating message broker instances"""

    @staticmethod
    def create(settings: Config = default_config) -> IMessageBroker:
        """
        Create a message broker from configuration

        Returns:
            IMessageBroker implementation
        """
        logger.info(
            "Creating message broker",
            metadata={"exchange": settings.exchange_name, "exchangeType": settings.exchange_type},
        )

        if settings.exchange_type not in ("direct", "topic"):
            raise ValueError(
                f"Unsupported exchange type: {settings.exchange_type}. "
                f"Supported types: direct, topic"
            )

        return RabbitMQBroker(
            rabbitmq_url=settings.message_broker_url,
            exchange_name=settings.exchange_name,
            exchange_type=settings.exchange_type,
            prefetch_count=settings.broker_prefetch_count,
            heartbeat=settings.broker_heartbeat,
        )
