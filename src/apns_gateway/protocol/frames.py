"""APNs frame encoder/decoder.

Pure functions converting notifications to wire bytes and gateway bytes to
structured records. No I/O and no state.
"""

from __future__ import annotations

import json
import logging
import random
import re
import struct
from collections.abc import Mapping
from typing import Any

from apns_gateway.protocol.exceptions import (
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
    NO_EXPIRY,
    NOTIFICATION_HEADER_LENGTH,
    ErrorResponse,
    FeedbackTuple,
    NotificationFrame,
)

logger = logging.getLogger(__name__)

# Characters people paste along with tokens: "<7b2a... 91fe>"
_TOKEN_FORMATTING = re.compile(r"[\s|<>]")

_NOTIFICATION_HEADER = struct.Struct("!BIIH")
_PAYLOAD_LENGTH = struct.Struct("!H")
_ERROR_RESPONSE = struct.Struct("!BBI")
_FEEDBACK_TUPLE = struct.Struct(f"!IH{DEVICE_TOKEN_LENGTH}s")

MAX_IDENTIFIER = 0xFFFFFFFF
MAX_PAYLOAD_LENGTH = 0xFFFF


def generate_identifier() -> int:
    """Random 32-bit notification identifier."""
    return random.getrandbits(32)


def pack_token(token: str) -> bytes:
    """Convert a hex device token to its 32 raw bytes.

    Whitespace, ``|`` and angle brackets are stripped first, so the
    ``<aaaa bbbb ...>`` form printed by iOS is accepted as-is.

    Raises:
        MalformedTokenError: If the stripped token is not 64 hex digits

    Example:
        >>> len(pack_token("<" + "ab" * 16 + " " + "cd" * 16 + ">"))
        32

    """
    if not isinstance(token, str):
        raise MalformedTokenError("not_a_string", token)

    cleaned = _TOKEN_FORMATTING.sub("", token)
    try:
        packed = bytes.fromhex(cleaned)
    except ValueError:
        raise MalformedTokenError("invalid_hex", token) from None

    if len(packed) != DEVICE_TOKEN_LENGTH:
        raise MalformedTokenError("invalid_token_length", token)
    return packed


def pack_payload(payload: str | Mapping[str, Any]) -> bytes:
    """Serialize a message to JSON payload bytes.

    A plain string becomes ``{"aps":{"alert":<string>}}``; a mapping is
    serialized as-is.

    Raises:
        InvalidPayloadError: If payload is neither, is not JSON-serializable
            (NaN and infinities included), or does not fit the 16-bit length field

    """
    if isinstance(payload, str):
        document: Any = {"aps": {"alert": payload}}
    elif isinstance(payload, Mapping):
        document = dict(payload)
    else:
        raise InvalidPayloadError("unsupported_type", payload)

    try:
        encoded = json.dumps(
            document,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        ).encode("utf-8")
    except (TypeError, ValueError):
        raise InvalidPayloadError("not_json_serializable", payload) from None

    if len(encoded) > MAX_PAYLOAD_LENGTH:
        raise InvalidPayloadError("payload_too_large", payload)
    return encoded


def encode_notification(
    token: str,
    payload: str | Mapping[str, Any],
    identifier: int | None = None,
) -> bytes:
    """Encode one enhanced-format notification frame.

    Args:
        token: Device token as hex string
        payload: Alert string or structured mapping
        identifier: 32-bit identifier echoed back in error responses
            (random when not given)

    Returns:
        Complete frame bytes

    Raises:
        MalformedTokenError: Token does not decode to 32 bytes
        InvalidPayloadError: Payload cannot be serialized
        FrameEncodeError: Identifier outside the unsigned 32-bit range

    """
    if identifier is None:
        identifier = generate_identifier()
    if not 0 <= identifier <= MAX_IDENTIFIER:
        raise FrameEncodeError("invalid_identifier", f"identifier={identifier}")

    packed_token = pack_token(token)
    packed_payload = pack_payload(payload)

    frame = b"".join(
        (
            _NOTIFICATION_HEADER.pack(
                COMMAND_ENHANCED_NOTIFICATION,
                identifier,
                NO_EXPIRY,
                DEVICE_TOKEN_LENGTH,
            ),
            packed_token,
            _PAYLOAD_LENGTH.pack(len(packed_payload)),
            packed_payload,
        ),
    )

    logger.debug(
        "Encoded notification: identifier=%d, payload_bytes=%d",
        identifier,
        len(packed_payload),
    )
    return frame


def decode_notification(data: bytes) -> NotificationFrame:
    """Decode an enhanced-format notification frame.

    Raises:
        TruncatedFrameError: Data shorter than the lengths it declares
        FrameDecodeError: Wrong command byte

    """
    fixed_length = NOTIFICATION_HEADER_LENGTH + DEVICE_TOKEN_LENGTH + _PAYLOAD_LENGTH.size
    if len(data) < fixed_length:
        raise TruncatedFrameError(fixed_length, data)

    command, identifier, expiry, token_length = _NOTIFICATION_HEADER.unpack_from(data)
    if command != COMMAND_ENHANCED_NOTIFICATION:
        raise FrameDecodeError("unexpected_command", data)

    offset = NOTIFICATION_HEADER_LENGTH
    token = data[offset : offset + token_length]
    offset += token_length
    (payload_length,) = _PAYLOAD_LENGTH.unpack_from(data, offset)
    offset += _PAYLOAD_LENGTH.size

    total = offset + payload_length
    if len(data) < total:
        raise TruncatedFrameError(total, data)

    return NotificationFrame(
        identifier=identifier,
        expiry=expiry,
        token=token,
        payload=data[offset:total],
        raw=data[:total],
    )


def decode_error_response(data: bytes) -> ErrorResponse:
    """Decode the 6-byte error response the gateway sends before closing.

    Raises:
        TruncatedFrameError: Fewer than 6 bytes
        FrameDecodeError: Command byte is not 8

    Example:
        >>> decode_error_response(bytes([8, 8, 0, 0, 0, 7])).identifier
        7

    """
    if len(data) < ERROR_RESPONSE_LENGTH:
        raise TruncatedFrameError(ERROR_RESPONSE_LENGTH, data)

    command, status, identifier = _ERROR_RESPONSE.unpack_from(data)
    if command != COMMAND_ERROR_RESPONSE:
        raise FrameDecodeError("unexpected_command", data)

    logger.debug("Decoded error response: status=%d, identifier=%d", status, identifier)
    return ErrorResponse(command=command, status=status, identifier=identifier)


def decode_feedback_tuple(data: bytes) -> FeedbackTuple:
    """Decode one 38-byte feedback tuple.

    Raises:
        TruncatedFrameError: Fewer than 38 bytes

    """
    if len(data) < FEEDBACK_TUPLE_LENGTH:
        raise TruncatedFrameError(FEEDBACK_TUPLE_LENGTH, data)

    timestamp, length, token = _FEEDBACK_TUPLE.unpack_from(data)
    return FeedbackTuple(timestamp=timestamp, length=length, device_token=token.hex())
