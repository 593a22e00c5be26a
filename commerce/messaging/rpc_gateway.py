"""
RPC Gateway
Request/reply emulated over the broker: every request carries a correlation ID
and the name of this process's private reply queue; the reply consumer
resolves the matching pending call.

The pending-call table is only touched from the event loop (reply callback,
callers, connection-lost callback), which makes the loop its single owner.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from commerce.core.errors import (
    ErrorResponse,
    RPCTimeoutError,
    TransportError,
    ValidationError,
    error_from_status,
)
from commerce.core.logger import logger
from commerce.messaging.envelope import RPC_ERROR_TYPE, RPCRequest, decode_payload
from commerce.messaging.i_message_broker import BrokerMessage, IMessageBroker, QueueBinding


@dataclass
class PendingRPCCall:
    correlation_id: str
    destination: str
    future: asyncio.Future
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class RPCGateway:
    """Client side of the emulated RPC protocol"""

    def __init__(self, broker: IMessageBroker, service_name: str, default_timeout: float = 5.0):
        """
        Args:
            broker: Connected message broker
            service_name: Used to name the private reply queue
            default_timeout: Seconds to wait for a reply when call() gets no timeout
        """
        self.broker = broker
        self.service_name = service_name
        self.default_timeout = default_timeout
        self.reply_queue: Optional[str] = None
        self._pending: Dict[str, PendingRPCCall] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def start(self) -> None:
        """Declare the reply queue and consume it for the lifetime of the process"""
        if self.reply_queue is not None:
            return

        self.broker.add_connection_lost_callback(self._on_connection_lost)
        binding = QueueBinding(
            queue_name=f"{self.service_name}.rpc-reply.{uuid.uuid4().hex}",
            routing_key=None,
            exclusive=True,
            auto_delete=True,
        )
        self.reply_queue = await self.broker.consume(binding, self._on_reply)
        logger.info(
            f"RPC gateway listening for replies on {self.reply_queue}",
            metadata={"replyQueue": self.reply_queue},
        )

    def _new_correlation_id(self) -> str:
        correlation_id = uuid.uuid4().hex
        while correlation_id in self._pending:
            correlation_id = uuid.uuid4().hex
        return correlation_id

    async def call(
        self,
        destination: str,
        request: RPCRequest,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Send an RPC request and wait for its reply.

        Args:
            destination: Routing key of the serving service
            request: Request envelope
            timeout: Seconds to wait; defaults to the gateway's default_timeout

        Returns:
            The decoded reply payload; None means the call succeeded but found nothing

        Raises:
            ErrorResponse: The serving side failed; same type as the remote error
            TransportError: Publish failed or the connection dropped mid-call
            RPCTimeoutError: No reply within the timeout
        """
        if self.reply_queue is None:
            raise TransportError("RPC gateway is not started")

        timeout = self.default_timeout if timeout is None else timeout
        correlation_id = self._new_correlation_id()
        future = asyncio.get_running_loop().create_future()
        self._pending[correlation_id] = PendingRPCCall(
            correlation_id=correlation_id,
            destination=destination,
            future=future,
        )

        try:
            await self.broker.publish(
                destination,
                request,
                correlation_id=correlation_id,
                reply_to=self.reply_queue,
            )
            logger.debug(
                f"RPC request sent: {request.type}",
                correlation_id=correlation_id,
                metadata={"destination": destination, "timeout": timeout},
            )
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError as e:
            logger.warning(
                f"RPC request timed out: {request.type}",
                correlation_id=correlation_id,
                metadata={"destination": destination, "timeout": timeout},
            )
            raise RPCTimeoutError(
                f"No reply from {destination} within {timeout}s",
                details={"destination": destination, "type": request.type},
            ) from e
        finally:
            self._pending.pop(correlation_id, None)

    async def _on_reply(self, message: BrokerMessage) -> None:
        call = self._pending.pop(message.correlation_id, None) if message.correlation_id else None
        if call is None or call.future.done():
            # Late reply to a call that already timed out, or a duplicate
            logger.debug(
                "Dropping RPC reply with no pending call",
                correlation_id=message.correlation_id,
            )
            return

        try:
            payload = decode_payload(message.body)
        except ValidationError as e:
            call.future.set_exception(
                TransportError("Malformed RPC reply", details={"destination": call.destination, **e.details})
            )
            return

        if message.message_type == RPC_ERROR_TYPE:
            call.future.set_exception(self._remote_error(call, payload))
            return

        call.future.set_result(payload)

    @staticmethod
    def _remote_error(call: PendingRPCCall, payload: Any) -> ErrorResponse:
        if not isinstance(payload, dict):
            return TransportError("Malformed RPC error reply", details={"destination": call.destination})
        details = payload.get("details") if isinstance(payload.get("details"), dict) else {}
        status_code = payload.get("statusCode")
        return error_from_status(
            payload.get("error") or f"RPC call to {call.destination} failed",
            status_code if isinstance(status_code, int) else 500,
            {**details, "destination": call.destination},
        )

    def _on_connection_lost(self, exc: Optional[BaseException] = None) -> None:
        """Fail every in-flight call instead of letting them time out"""
        pending = list(self._pending.values())
        self._pending.clear()
        for call in pending:
            if not call.future.done():
                call.future.set_exception(
                    TransportError(
                        "Broker connection lost while awaiting RPC reply",
                        details={"destination": call.destination, "reason": str(exc) if exc else None},
                    )
                )
        if pending:
            logger.warning(
                f"Failed {len(pending)} pending RPC calls after connection loss",
                metadata={"pending": len(pending)},
            )

    def close(self) -> None:
        """Fail outstanding calls; used on shutdown"""
        self._on_connection_lost(None)
