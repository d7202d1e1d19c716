import pytest

from conndata.common.cancellation import CancellationToken
from conndata.common.errors import (
    CancelledError,
    ConnectionDataError,
    ConnectionFailedError,
    DecodeError,
    ErrorCode,
    NotImplementedConnectionError,
    ResourceExhaustedError,
    UpstreamError,
)


def test_error_string_includes_sorted_details():
    # Validates log-friendly formatting because callers surface operation and identifiers.
    # Arrange
    err = NotImplementedConnectionError(
        "truncate unsupported", details={"operation": "get_truncate_statement", "connection_id": "pg-1"}
    )

    # Act
    text = str(err)

    # Assert
    assert text == "truncate unsupported (connection_id=pg-1, operation=get_truncate_statement)"
    assert err.error_code == ErrorCode.NOT_IMPLEMENTED


def test_safe_message_hides_driver_details():
    # Validates sanitization because driver messages may contain hostnames.
    # Arrange
    err = ConnectionFailedError("could not connect to server at 10.0.0.5")

    # Act / Assert
    assert "10.0.0.5" not in err.get_safe_message()
    assert DecodeError("bad gzip").get_safe_message() == "bad gzip"


def test_resource_exhausted_is_an_upstream_error():
    # Validates the hierarchy because callers catch UpstreamError for every model failure.
    assert issubclass(ResourceExhaustedError, UpstreamError)
    assert issubclass(UpstreamError, ConnectionDataError)
    assert ResourceExhaustedError("limit").error_code == ErrorCode.RESOURCE_EXHAUSTED


def test_cancellation_token_raises_once_cancelled():
    # Validates cooperative cancellation because long scans must stop promptly.
    # Arrange
    token = CancellationToken()
    token.raise_if_cancelled("stream_rows")

    # Act
    token.cancel()

    # Assert
    assert token.is_cancelled()
    with pytest.raises(CancelledError) as exc_info:
        token.raise_if_cancelled("stream_rows")
    assert exc_info.value.details == {"operation": "stream_rows"}
