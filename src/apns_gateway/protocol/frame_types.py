"""APNs binary frame constants and dataclass structures.

Frame Overview (all integers big-endian):
- Notification (provider → gateway, "enhanced" format):
    u8 command=1 | u32 identifier | u32 expiry | u16 token_len=32 | token | u16 payload_len | payload
- Error response (gateway → provider):
    u8 command=8 | u8 status | u32 identifier
- Feedback tuple (feedback service → provider):
    u32 timestamp | u16 token_len=32 | token
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from apns_gateway.protocol.status_codes import describe_status

# Command bytes
COMMAND_ENHANCED_NOTIFICATION = 0x01
COMMAND_ERROR_RESPONSE = 0x08

# Fixed sizes
DEVICE_TOKEN_LENGTH = 32
NOTIFICATION_HEADER_LENGTH = 11  # command (1) + identifier (4) + expiry (4) + token_len (2)
ERROR_RESPONSE_LENGTH = 6
FEEDBACK_TUPLE_LENGTH = 38

# Expiry 0: the gateway does not store the notification if it cannot deliver
NO_EXPIRY = 0


@dataclass(frozen=True)
class Notification:
    """One notification as handed over by the caller.

    Attributes:
        token: Device token, hex string (may contain spaces and angle brackets)
        payload: Alert string or structured mapping serialized to JSON

    """

    token: str
    payload: str | dict[str, Any]


@dataclass(frozen=True)
class NotificationFrame:
    """Decoded enhanced-format notification frame.

    Attributes:
        identifier: 32-bit correlation key echoed back in error responses
        expiry: Expiry as seconds since the epoch (0 = no expiry)
        token: 32 raw token bytes
        payload: JSON payload bytes
        raw: Complete frame bytes

    """

    identifier: int
    expiry: int
    token: bytes
    payload: bytes
    raw: bytes


@dataclass(frozen=True)
class ErrorResponse:
    """Error response sent by the gateway for the first rejected frame.

    Attributes:
        command: Command byte (always 8)
        status: Status byte (see StatusCode)
        identifier: Identifier of the rejected notification

    """

    command: int
    status: int
    identifier: int

    @property
    def description(self) -> str:
        """Human-readable status description."""
        return describe_status(self.status)


@dataclass(frozen=True)
class FeedbackTuple:
    """One stale device token reported by the feedback service.

    Attributes:
        timestamp: Seconds since the epoch when the service decided the app is gone
        length: Token length field (always 32)
        device_token: Token as 64 lowercase hex digits

    """

    timestamp: int
    length: int
    device_token: str

    @property
    def feedback_at(self) -> datetime:
        """Timestamp as an aware UTC datetime."""
        return datetime.fromtimestamp(self.timestamp, UTC)

    def to_dict(self) -> dict[str, Any]:
        return {
            "feedback_at": self.feedback_at,
            "length": self.length,
            "device_token": self.device_token,
        }
