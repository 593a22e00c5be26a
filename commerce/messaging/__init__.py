"""
Messaging module for the commerce services
Provides the broker abstraction plus the pub/sub and RPC protocols built on it
"""

from .envelope import EventEnvelope, RPCRequest
from .event_dispatcher import EventDispatcher
from .i_message_broker import BrokerMessage, IMessageBroker, QueueBinding
from .message_broker_factory import MessageBrokerFactory
from .message_types import Destination, EventType, RPCType
from .rabbitmq_broker import RabbitMQBroker
from .rpc_gateway import RPCGateway
from .rpc_responder import RPCResponder

__all__ = [
    "BrokerMessage",
    "Destination",
    "EventDispatcher",
    "EventEnvelope",
    "EventType",
    "IMessageBroker",
    "MessageBrokerFactory",
    "QueueBinding",
    "RabbitMQBroker",
    "RPCGateway",
    "RPCRequest",
    "RPCResponder",
    "RPCType",
]
