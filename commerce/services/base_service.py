"""
Contract every domain service exposes to the messaging layer
"""

from typing import Any, Mapping

from commerce.messaging.envelope import EventEnvelope, RPCRequest
from commerce.messaging.event_dispatcher import EventHandler, dispatch_event
from commerce.messaging.message_types import EventType


class IService:
    """
    Base for domain services reachable over the broker.

    Subclasses list the events they react to in `event_handlers` and answer
    RPC requests in `serve_rpc_request`; anything they do not recognise is
    ignored.
    """

    @property
    def event_handlers(self) -> Mapping[EventType, EventHandler]:
        return {}

    async def subscribe_events(self, payload: bytes) -> None:
        """
        Handle one raw event envelope.

        Raises:
            ValidationError: If the payload is not a valid envelope
        """
        await dispatch_event(self.event_handlers, EventEnvelope.decode(payload))

    async def serve_rpc_request(self, request: RPCRequest) -> Any:
        """Answer an RPC request; None means nothing was found"""
        return None
