"""
RPC Responder
Serving side of the emulated RPC protocol: consumes a service's RPC queue,
hands each request to the service and publishes the result to the caller's
reply queue under the request's correlation ID.
"""

from typing import TYPE_CHECKING, Optional

from commerce.core.errors import ErrorResponse, NotFoundError, TransportError, ValidationError
from commerce.core.logger import logger
from commerce.messaging.envelope import RPC_ERROR_TYPE, RPCRequest, encode_error, encode_payload
from commerce.messaging.i_message_broker import BrokerMessage, IMessageBroker, QueueBinding
from commerce.utils.correlation_id import set_correlation_id

if TYPE_CHECKING:
    from commerce.services.base_service import IService


class RPCResponder:
    """
    Consumes `destination` as a shared queue; several instances of a service
    compete for requests.

    A NotFoundError is answered with a null result. Any other failure is
    answered with an error reply so the caller fails fast with the same
    error category.
    """

    def __init__(self, broker: IMessageBroker, destination: str, service: "IService"):
        self.broker = broker
        self.destination = destination
        self.service = service
        self.queue_name: Optional[str] = None

    async def start(self) -> None:
        binding = QueueBinding(
            queue_name=self.destination,
            routing_key=self.destination,
            exclusive=False,
            auto_delete=False,
        )
        self.queue_name = await self.broker.consume(binding, self._on_request)
        logger.info(
            f"Serving RPC requests on {self.queue_name}",
            metadata={"destination": self.destination},
        )

    async def _on_request(self, message: BrokerMessage) -> None:
        if not message.reply_to or not message.correlation_id:
            logger.warning(
                "Dropping RPC request without replyTo/correlationId",
                metadata={"routingKey": message.routing_key},
            )
            return

        set_correlation_id(message.correlation_id)

        try:
            request = RPCRequest.decode(message.body)
        except ValidationError as e:
            logger.error("Dropping malformed RPC request", error=e, metadata=e.details)
            return

        try:
            result = await self.service.serve_rpc_request(request)
        except NotFoundError:
            result = None
        except ErrorResponse as e:
            logger.warning(
                f"RPC request rejected: {request.type}: {e.message}",
                metadata={"destination": self.destination, "type": request.type, "statusCode": e.status_code},
            )
            await self._send(message, encode_error(e), request.type, RPC_ERROR_TYPE)
            return
        except Exception as e:
            logger.error(
                f"RPC request failed: {request.type}",
                error=e,
                metadata={"destination": self.destination, "type": request.type},
            )
            failure = ErrorResponse(f"Failed to serve {request.type}", status_code=500)
            await self._send(message, encode_error(failure), request.type, RPC_ERROR_TYPE)
            return

        if await self._send(message, encode_payload(result), request.type):
            logger.debug(
                f"Replied to RPC request: {request.type}",
                metadata={"replyTo": message.reply_to, "found": result is not None},
            )

    async def _send(
        self,
        message: BrokerMessage,
        body: bytes,
        request_type: str,
        message_type: Optional[str] = None,
    ) -> bool:
        try:
            await self.broker.reply(message.reply_to, body, message.correlation_id, message_type)
        except TransportError as e:
            logger.error(
                f"Could not deliver RPC reply: {request_type}",
                error=e,
                metadata={"replyTo": message.reply_to},
            )
            return False
        return True
