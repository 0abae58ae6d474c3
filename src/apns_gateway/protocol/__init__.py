"""APNs protocol package - frame encoding and decoding.

Public API:
- Frame constants (COMMAND_*, *_LENGTH)
- Frame dataclasses (Notification, NotificationFrame, ErrorResponse, FeedbackTuple)
- Codec functions (encode_notification, decode_error_response, decode_feedback_tuple)
"""

from apns_gateway.protocol.exceptions import (
    APNsProtocolError,
    FrameDecodeError,
    FrameEncodeError,
    InvalidPayloadError,
    MalformedTokenError,
    TruncatedFrameError,
)
from apns_gateway.protocol.frame_types import (
    COMMAND_ENHANCED_NOTIFICATION,
    COMMAND_ERROR_RESPONSE,
    DEVICE_TOKEN_LENGTH,
    ERROR_RESPONSE_LENGTH,
    FEEDBACK_TUPLE_LENGTH,
    ErrorResponse,
    FeedbackTuple,
    Notification,
    NotificationFrame,
)
from apns_gateway.protocol.frames import (
    decode_error_response,
    decode_feedback_tuple,
    decode_notification,
    encode_notification,
    generate_identifier,
)
from apns_gateway.protocol.status_codes import StatusCode, describe_status

__all__ = [
    # Codec
    "decode_error_response",
    "decode_feedback_tuple",
    "decode_notification",
    "encode_notification",
    "generate_identifier",
    # Constants
    "COMMAND_ENHANCED_NOTIFICATION",
    "COMMAND_ERROR_RESPONSE",
    "DEVICE_TOKEN_LENGTH",
    "ERROR_RESPONSE_LENGTH",
    "FEEDBACK_TUPLE_LENGTH",
    "StatusCode",
    "describe_status",
    # Dataclasses
    "ErrorResponse",
    "FeedbackTuple",
    "Notification",
    "NotificationFrame",
    # Exceptions
    "APNsProtocolError",
    "FrameDecodeError",
    "FrameEncodeError",
    "InvalidPayloadError",
    "MalformedTokenError",
    "TruncatedFrameError",
]
