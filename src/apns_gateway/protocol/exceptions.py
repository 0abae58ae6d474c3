"""Custom exception types for APNs frame encoding and decoding.

Caller input defects (bad token, bad payload) and malformed gateway data are
raised immediately and never retried.
"""

from __future__ import annotations


class APNsProtocolError(Exception):
    """Base exception for all APNs protocol errors."""


class FrameEncodeError(APNsProtocolError):
    """Notification cannot be encoded into a frame.

    Attributes:
        reason: Specific failure reason (e.g., "invalid_token_length")
    """

    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        self.detail = detail
        message = f"Frame encode failed: {reason}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class MalformedTokenError(FrameEncodeError):
    """Device token is not 64 hex digits once formatting is stripped.

    Attributes:
        token: Token as given by the caller
    """

    def __init__(self, reason: str, token: str):
        self.token = token
        super().__init__(reason, f"token={token!r}")


class InvalidPayloadError(FrameEncodeError):
    """Message is neither an alert string nor a JSON-serializable mapping.

    Attributes:
        payload_type: Type name of the rejected payload
    """

    def __init__(self, reason: str, payload: object):
        self.payload_type = type(payload).__name__
        super().__init__(reason, f"type={self.payload_type}")


class FrameDecodeError(APNsProtocolError):
    """Frame received from the gateway cannot be decoded.

    Attributes:
        reason: Specific failure reason (e.g., "unexpected_command")
        data_preview: First 16 bytes of frame data
    """

    def __init__(self, reason: str, data: bytes = b""):
        self.reason = reason
        # Only keep a prefix, feedback frames carry device tokens
        self.data_preview = data[:16] if data else b""
        super().__init__(f"Frame decode failed: {reason}")


class TruncatedFrameError(FrameDecodeError):
    """Fewer bytes available than the fixed frame size requires.

    Attributes:
        expected: Required frame size in bytes
        received: Bytes actually available
    """

    def __init__(self, expected: int, data: bytes = b""):
        self.expected = expected
        self.received = len(data)
        super().__init__(f"truncated ({self.received} of {expected} bytes)", data)
