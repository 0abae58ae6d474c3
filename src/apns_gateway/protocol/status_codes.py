"""Status codes carried by gateway error-response frames."""

from __future__ import annotations

from enum import IntEnum


class StatusCode(IntEnum):
    """Status byte of an error-response frame."""

    NO_ERRORS = 0
    PROCESSING_ERROR = 1
    MISSING_DEVICE_TOKEN = 2
    MISSING_TOPIC = 3
    MISSING_PAYLOAD = 4
    INVALID_TOKEN_SIZE = 5
    INVALID_TOPIC_SIZE = 6
    INVALID_PAYLOAD_SIZE = 7
    INVALID_TOKEN = 8
    SHUTDOWN = 10
    PROTOCOL_ERROR = 128
    UNKNOWN = 255


_DESCRIPTIONS: dict[int, str] = {
    StatusCode.NO_ERRORS: "No errors encountered",
    StatusCode.PROCESSING_ERROR: "Processing error",
    StatusCode.MISSING_DEVICE_TOKEN: "Missing device token",
    StatusCode.MISSING_TOPIC: "Missing topic",
    StatusCode.MISSING_PAYLOAD: "Missing payload",
    StatusCode.INVALID_TOKEN_SIZE: "Invalid token size",
    StatusCode.INVALID_TOPIC_SIZE: "Invalid topic size",
    StatusCode.INVALID_PAYLOAD_SIZE: "Invalid payload size",
    StatusCode.INVALID_TOKEN: "Invalid token",
    StatusCode.SHUTDOWN: "Shutdown",
    StatusCode.PROTOCOL_ERROR: "Protocol error",
    StatusCode.UNKNOWN: "None (unknown)",
}


def describe_status(status: int) -> str:
    """Human-readable description for a status byte.

    Example:
        >>> describe_status(8)
        'Invalid token'
        >>> describe_status(42)
        'Unrecognized status 42'

    """
    return _DESCRIPTIONS.get(status, f"Unrecognized status {status}")
