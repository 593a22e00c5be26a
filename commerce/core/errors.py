"""
Error types shared by every commerce service

ErrorResponse carries the HTTP status an outer request layer should map the
failure to; the subclasses below are the taxonomy used by the messaging core
and the domain services.
"""

from typing import Any, Dict, Optional


class ErrorResponse(Exception):
    """Custom exception for application errors"""

    def __init__(self, message: str, status_code: int = 400, details: Optional[dict] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Body an HTTP layer would return for this error"""
        return {"error": self.message, "details": self.details}


class ValidationError(ErrorResponse):
    """Malformed request attribute, value or message envelope"""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, status_code=400, details=details)


class NotFoundError(ErrorResponse):
    """Referenced entity does not exist"""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, status_code=404, details=details)


class TransportError(ErrorResponse):
    """
    Broker unreachable or connection dropped.

    Fatal to in-flight RPC calls; the broker client recovers by reconnecting.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, status_code=503, details=details)


class RPCTimeoutError(ErrorResponse):
    """No RPC reply arrived before the deadline"""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, status_code=504, details=details)


_ERRORS_BY_STATUS = {
    400: ValidationError,
    404: NotFoundError,
    503: TransportError,
    504: RPCTimeoutError,
}


def error_from_status(message: str, status_code: int, details: Optional[dict] = None) -> ErrorResponse:
    """Rebuild the error type matching `status_code` (used for remote RPC failures)"""
    error_class = _ERRORS_BY_STATUS.get(status_code)
    if error_class is None:
        return ErrorResponse(message, status_code=status_code, details=details)
    return error_class(message, details=details)
