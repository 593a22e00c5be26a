"""
Message envelopes and JSON encoding for the broker wire format

Events travel as {"event": str, "data": object}; RPC requests as
{"type": str, "data": object}. Correlation ID and reply queue of an RPC request
are message properties, never part of the body.
"""

import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from bson import ObjectId
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from commerce.core.errors import ErrorResponse, ValidationError
from commerce.messaging.message_types import EventType, RPCType

# AMQP type property of a reply that carries a failure instead of a result
RPC_ERROR_TYPE = "error"


def _json_default(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_payload(payload: Any) -> bytes:
    """Serialize any reply/payload value (None becomes JSON null)"""
    return json.dumps(payload, default=_json_default).encode("utf-8")


def encode_error(error: ErrorResponse) -> bytes:
    """Serialize a serving-side failure for an error reply"""
    return encode_payload({**error.to_dict(), "statusCode": error.status_code})


def decode_payload(body: bytes) -> Any:
    """
    Parse a JSON message body.

    Raises:
        ValidationError: If the body is not valid UTF-8 JSON
    """
    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError("Malformed message body", details={"reason": str(e)}) from e


class Envelope(BaseModel):
    """Base for everything published through the broker"""

    data: Dict[str, Any] = Field(default_factory=dict)

    def encode(self) -> bytes:
        return encode_payload(self.model_dump(by_alias=True))

    @classmethod
    def decode(cls, body: bytes):
        raw = decode_payload(body)
        if not isinstance(raw, dict):
            raise ValidationError(f"{cls.__name__} must be a JSON object")
        try:
            return cls.model_validate(raw)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Malformed {cls.__name__}",
                details={"errors": e.errors(include_url=False)},
            ) from e


class EventEnvelope(Envelope):
    """Pub/sub event"""

    event: str

    @property
    def kind(self) -> Optional[EventType]:
        return EventType.parse(self.event)


class RPCRequest(Envelope):
    """Request half of an emulated RPC call"""

    type: str

    @property
    def kind(self) -> Optional[RPCType]:
        return RPCType.parse(self.type)
