"""Shared test fixtures"""
import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId

from commerce.core.errors import TransportError
from commerce.messaging.envelope import Envelope
from commerce.messaging.i_message_broker import BrokerMessage, IMessageBroker, QueueBinding
from commerce.messaging.rpc_gateway import RPCGateway

PRODUCT_ID = "507f1f77bcf86cd799439011"
VARIANT_ID = "507f1f77bcf86cd799439022"


@dataclass
class PublishedMessage:
    destination: str
    envelope: Envelope
    correlation_id: Optional[str] = None
    reply_to: Optional[str] = None


class FakeBroker(IMessageBroker):
    """
    In-memory broker: routes published envelopes to bound queues and replies to
    queues by name, delivering each message on its own task like a real consumer.
    """

    def __init__(self, connected: bool = True):
        self.connected = connected
        self.published: List[PublishedMessage] = []
        self.replies: List[BrokerMessage] = []
        self.declared: List[QueueBinding] = []
        self.handlers: Dict[str, Any] = {}
        self.bindings: Dict[str, List[str]] = {}
        self._callbacks = []
        self._tasks = set()

    async def connect(self) -> None:
        self.connected = True

    async def declare_exchange(self, name: str, kind: str = "direct", durable: bool = True) -> None:
        self._ensure_connected()

    def _ensure_connected(self) -> None:
        if not self.connected:
            raise TransportError("Fake broker is disconnected")

    def _deliver(self, queue_name: str, message: BrokerMessage) -> None:
        handler = self.handlers.get(queue_name)
        if handler is None:
            return
        task = asyncio.create_task(handler(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def publish(self, destination, envelope, correlation_id=None, reply_to=None) -> None:
        self._ensure_connected()
        self.published.append(PublishedMessage(destination, envelope, correlation_id, reply_to))
        message = BrokerMessage(
            body=envelope.encode(),
            routing_key=destination,
            correlation_id=correlation_id,
            reply_to=reply_to,
        )
        for queue_name in self.bindings.get(destination, []):
            self._deliver(queue_name, message)

    async def reply(self, reply_to: str, body: bytes, correlation_id: str, message_type: Optional[str] = None) -> None:
        self._ensure_connected()
        message = BrokerMessage(
            body=body,
            routing_key=reply_to,
            correlation_id=correlation_id,
            message_type=message_type,
        )
        self.replies.append(message)
        self._deliver(reply_to, message)

    async def consume(self, binding: QueueBinding, handler) -> str:
        self._ensure_connected()
        self.declared.append(binding)
        self.handlers[binding.queue_name] = handler
        if binding.routing_key is not None:
            self.bindings.setdefault(binding.routing_key, []).append(binding.queue_name)
        return binding.queue_name

    def add_connection_lost_callback(self, callback) -> None:
        self._callbacks.append(callback)

    def drop_connection(self, exc: Optional[BaseException] = None) -> None:
        self.connected = False
        for callback in self._callbacks:
            callback(exc)

    async def disconnect(self) -> None:
        self.connected = False

    def is_healthy(self) -> bool:
        return self.connected

    async def get_stats(self) -> Dict[str, Any]:
        return {"queues": list(self.handlers), "connected": self.connected}

    def published_to(self, destination: str) -> List[PublishedMessage]:
        return [p for p in self.published if p.destination == destination]

    async def drain(self) -> None:
        """Wait until every delivered message (and whatever it triggered) is handled"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


async def wait_until(predicate, attempts: int = 100) -> None:
    """Yield to the event loop until predicate() holds"""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not met")


@pytest.fixture
def broker():
    """Connected in-memory broker"""
    return FakeBroker()


@pytest_asyncio.fixture
async def gateway(broker):
    """Started RPC gateway on the in-memory broker"""
    rpc_gateway = RPCGateway(broker, "TEST_SERVICE", default_timeout=0.5)
    await rpc_gateway.start()
    yield rpc_gateway
    rpc_gateway.close()


@pytest.fixture
def mock_gateway():
    """RPC gateway stand-in whose call() is scripted per test"""
    rpc_gateway = MagicMock(spec=RPCGateway)
    rpc_gateway.call = AsyncMock()
    return rpc_gateway


@pytest.fixture
def mock_collection():
    """Mock motor collection for testing"""
    collection = MagicMock()
    collection.name = "test_collection"
    return collection


@pytest.fixture
def product_doc():
    """Product document as stored in MongoDB"""
    return {
        "_id": ObjectId(PRODUCT_ID),
        "name": "Linen Shirt",
        "description": "Breathable summer shirt",
        "price": 49.99,
        "categories": ["shirts", "summer"],
        "photo_urls": ["https://cdn.example.com/linen-shirt.jpg"],
        "rating": 4.5,
        "reviewed": 2,
        "created_at": datetime(2024, 5, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2024, 5, 1, tzinfo=timezone.utc),
    }


@pytest.fixture
def variant_doc():
    """Product variant document as stored in MongoDB"""
    return {
        "_id": ObjectId(VARIANT_ID),
        "product_id": PRODUCT_ID,
        "color": "blue",
        "size": "M",
        "selling_price": 44.99,
        "quantity": 12,
    }
