"""In-memory stand-ins for the gateway and its TLS sessions.

A ``FakeGateway`` is passed to ``ConnectionManager`` as its session factory.
Every session it opens parses the frames flushed to it and answers according
to a script of per-flush plans:

- ``None``: accept silently (no error response)
- ``int`` k: reject the k-th frame of that flush (1-indexed)
- ``bytes``: answer with exactly these bytes
- ``BaseException``: raise it from ``flush()``
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from apns_gateway.protocol.frame_types import COMMAND_ERROR_RESPONSE, NotificationFrame
from apns_gateway.protocol.frames import decode_notification
from apns_gateway.protocol.status_codes import StatusCode

Plan = int | bytes | BaseException | None


def split_frames(data: bytes) -> list[NotificationFrame]:
    """Decode back-to-back notification frames."""
    frames: list[NotificationFrame] = []
    offset = 0
    while offset < len(data):
        frame = decode_notification(data[offset:])
        frames.append(frame)
        offset += len(frame.raw)
    return frames


def error_response(identifier: int, status: int = StatusCode.INVALID_TOKEN) -> bytes:
    return struct.pack("!BBI", COMMAND_ERROR_RESPONSE, status, identifier)


def feedback_tuple(timestamp: int, token_hex: str) -> bytes:
    return struct.pack("!IH32s", timestamp, 32, bytes.fromhex(token_hex))


def make_token(index: int) -> str:
    """Distinct valid 64-hex-digit device token."""
    return f"{index:064x}"


class FakeSession:
    """Session double recording flushed bytes and serving scripted replies."""

    def __init__(self, gateway: FakeGateway, host: str, port: int, incoming: bytes = b""):
        self.gateway = gateway
        self.host = host
        self.port = port
        self.flushed: list[bytes] = []
        self.wait_timeouts: list[float] = []
        self.read_timeouts: list[float | None] = []
        self._buffer = bytearray()
        self._incoming = bytearray(incoming)
        self._closed = False

    def write(self, data: bytes) -> None:
        self._buffer += data

    def flush(self) -> None:
        data = bytes(self._buffer)
        self._buffer.clear()
        self.gateway.on_flush(self, data)
        self.flushed.append(data)

    def wait_readable(self, timeout: float) -> bool:
        self.wait_timeouts.append(timeout)
        return bool(self._incoming) or self.gateway.hangup_after_flush or self.gateway.readable_without_data

    def read(self, size: int, timeout: float | None = None) -> bytes:
        self.read_timeouts.append(timeout)
        chunk = bytes(self._incoming[:size])
        del self._incoming[:size]
        return chunk

    def feed(self, data: bytes) -> None:
        self._incoming += data

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def peer_closed(self) -> bool:
        return self.gateway.hangup_after_flush and not self._incoming


@dataclass
class FakeGateway:
    """Session factory that scripts gateway behaviour."""

    plans: list[Plan] = field(default_factory=list)
    status: int = StatusCode.INVALID_TOKEN
    feedback_data: bytes = b""
    hangup_after_flush: bool = False
    # Wakes the post-flush wait without sending bytes, like a TLS 1.3 session ticket
    readable_without_data: bool = False
    connect_failures: list[BaseException] = field(default_factory=list)
    sessions: list[FakeSession] = field(default_factory=list)
    received: list[list[NotificationFrame]] = field(default_factory=list)
    connect_calls: int = 0

    def __call__(self, host: str, port: int, context: object, connect_timeout: float) -> FakeSession:
        self.connect_calls += 1
        if self.connect_failures:
            raise self.connect_failures.pop(0)
        session = FakeSession(self, host, port, incoming=self.feedback_data)
        self.sessions.append(session)
        return session

    def on_flush(self, session: FakeSession, data: bytes) -> None:
        plan = self.plans.pop(0) if self.plans else None
        if isinstance(plan, BaseException):
            raise plan
        frames = split_frames(data)
        self.received.append(frames)
        if isinstance(plan, bytes):
            session.feed(plan)
        elif isinstance(plan, int):
            session.feed(error_response(frames[plan - 1].identifier, self.status))

    @property
    def received_tokens(self) -> list[list[str]]:
        """Hex tokens per flush, in write order."""
        return [[frame.token.hex() for frame in frames] for frames in self.received]
