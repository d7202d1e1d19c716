from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Standardized error codes for connection data operations."""
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    QUERY_ERROR = "QUERY_ERROR"
    DECODE_ERROR = "DECODE_ERROR"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    RESOURCE_EXHAUSTED = "RESOURCE_EXHAUSTED"
    CANCELLED = "CANCELLED"


SAFE_ERROR_MESSAGES = {
    ErrorCode.CONNECTION_ERROR: "Unable to reach the backing datastore for this connection.",
    ErrorCode.QUERY_ERROR: "An internal database error occurred while reading metadata or rows.",
    ErrorCode.UPSTREAM_ERROR: "The text generation service returned an unusable response.",
    ErrorCode.UNAUTHORIZED: "You do not have access to this connection.",
}


class ConnectionDataError(Exception):
    """Base error for every failure surfaced by the connection data layer.

    Attributes:
        error_code (ErrorCode): The standardized error code.
        message (str): A human-readable error message.
        details (Dict[str, Any]): Operation name and identifiers for logging.
    """

    error_code: ErrorCode = ErrorCode.QUERY_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{k}={v}" for k, v in sorted(self.details.items()))
        return f"{self.message} ({context})"

    def get_safe_message(self) -> str:
        """Returns a sanitized message safe for exposure to end users.

        If a safe mapping exists for the error code, it is returned.
        Otherwise, the original message is used.
        """
        return SAFE_ERROR_MESSAGES.get(self.error_code, self.message)


class BadRequestError(ConnectionDataError):
    error_code = ErrorCode.BAD_REQUEST


class UnauthorizedError(ConnectionDataError):
    error_code = ErrorCode.UNAUTHORIZED


class NotFoundError(ConnectionDataError):
    error_code = ErrorCode.NOT_FOUND


class NotImplementedConnectionError(ConnectionDataError):
    """Raised for unsupported backend kinds or unsupported operation modes."""
    error_code = ErrorCode.NOT_IMPLEMENTED


class ConnectionFailedError(ConnectionDataError):
    """The backend could not be reached or rejected the credentials."""
    error_code = ErrorCode.CONNECTION_ERROR


class QueryError(ConnectionDataError):
    error_code = ErrorCode.QUERY_ERROR


class DecodeError(ConnectionDataError):
    """Malformed gzip or JSON payload, or a model response that is not valid JSON."""
    error_code = ErrorCode.DECODE_ERROR


class UpstreamError(ConnectionDataError):
    error_code = ErrorCode.UPSTREAM_ERROR


class ResourceExhaustedError(UpstreamError):
    """The completion model stopped on its token limit."""
    error_code = ErrorCode.RESOURCE_EXHAUSTED


class CancelledError(ConnectionDataError):
    error_code = ErrorCode.CANCELLED
