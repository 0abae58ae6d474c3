"""Notification sending with error-response driven resend.

The gateway processes frames in the order written and, on the first frame it
rejects, writes one 6-byte error response naming that frame's identifier and
closes the channel. Frames written before the rejected one were accepted;
frames written after it were dropped unread and must be sent again.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import partial
from typing import Any

from apns_gateway.correlation import correlation_context
from apns_gateway.logging_abstraction import get_logger
from apns_gateway.metrics import registry
from apns_gateway.protocol.exceptions import InvalidPayloadError
from apns_gateway.protocol.frame_types import ERROR_RESPONSE_LENGTH, ErrorResponse, Notification
from apns_gateway.protocol.frames import (
    decode_error_response,
    encode_notification,
    generate_identifier,
    pack_payload,
    pack_token,
)
from apns_gateway.transport.connection_manager import ConnectionManager
from apns_gateway.transport.socket_abstraction import TLSSession

logger = get_logger(__name__)


@dataclass(frozen=True)
class Rejection:
    """A notification the gateway refused, with the status it gave."""

    notification: Notification
    error: ErrorResponse

    @property
    def status(self) -> int:
        return self.error.status


@dataclass
class _PassOutcome:
    """Result of writing one batch: what to resend, and what was refused."""

    resend: list[Notification]
    rejection: Rejection | None = None


class NotificationSender:
    """Writes notification frames to the gateway and resends after failures."""

    def __init__(
        self,
        connections: ConnectionManager,
        host: str,
        port: int,
        error_wait_timeout: float = 5.0,
    ) -> None:
        """Initialize sender.

        Args:
            connections: Session provider
            host: Gateway host
            port: Gateway port
            error_wait_timeout: Seconds to wait for an error response after a
                batch is flushed before declaring it accepted

        """
        self.connections = connections
        self.host = host
        self.port = port
        self.error_wait_timeout = error_wait_timeout

    def send_one(self, token: str, payload: str | Mapping[str, Any]) -> None:
        """Write a single notification.

        No error response is awaited; use ``send_batch`` when delivery
        failures must be detected.

        Raises:
            MalformedTokenError: Token does not decode to 32 bytes
            InvalidPayloadError: Payload cannot be serialized

        """
        frame = encode_notification(token, payload)

        def _write(session: TLSSession) -> None:
            session.write(frame)
            session.flush()

        self.connections.with_session(self.host, self.port, _write)
        registry.record_notifications_sent("single")

    def send_batch(self, notifications: Iterable[Notification | tuple[str, Any]]) -> list[Rejection]:
        """Write a batch, resending everything after each rejected notification.

        Each pass writes the pending notifications in one session use, then
        waits for an error response. A response naming item k leaves items
        k+1..N pending for the next pass; silence ends the batch.

        Returns:
            Rejections reported by the gateway, in the order received

        Raises:
            MalformedTokenError: A token does not decode to 32 bytes (before
                anything is written)
            InvalidPayloadError: A payload cannot be serialized, or an item is
                neither a Notification nor a (token, payload) pair

        """
        pending = [self._as_notification(item) for item in notifications]
        for notification in pending:
            pack_token(notification.token)
            pack_payload(notification.payload)
        rejections: list[Rejection] = []
        if not pending:
            return rejections

        start_time = time.perf_counter()
        with correlation_context():
            logger.info("Sending batch", extra={"notifications": len(pending)})
            passes = 0
            while pending:
                passes += 1
                outcome = self.connections.with_session(
                    self.host,
                    self.port,
                    partial(self._transmit, batch=pending),
                )
                if outcome.rejection is not None:
                    rejections.append(outcome.rejection)
                if outcome.resend:
                    registry.record_resend(len(outcome.resend))
                    logger.info(
                        "Resending notifications written after the rejected one",
                        extra={"resend": len(outcome.resend), "pass": passes},
                    )
                pending = outcome.resend

            duration = time.perf_counter() - start_time
            registry.record_batch_duration(duration)
            logger.info(
                "Batch complete",
                extra={"passes": passes, "rejected": len(rejections), "elapsed_s": round(duration, 3)},
            )
        return rejections

    def _transmit(self, session: TLSSession, batch: list[Notification]) -> _PassOutcome:
        """Write one pass of the batch and interpret the gateway's answer."""
        sent: list[tuple[int, Notification]] = []
        used: set[int] = set()
        for notification in batch:
            identifier = generate_identifier()
            # The identifier is the only way back from an error response to its notification
            while identifier in used:
                identifier = generate_identifier()
            used.add(identifier)
            session.write(encode_notification(notification.token, notification.payload, identifier))
            sent.append((identifier, notification))
        session.flush()
        registry.record_notifications_sent("batch", len(sent))

        deadline = time.monotonic() + self.error_wait_timeout
        if not session.wait_readable(self.error_wait_timeout):
            return _PassOutcome(resend=[])

        data = session.read(ERROR_RESPONSE_LENGTH, timeout=max(deadline - time.monotonic(), 0.0))
        if not data:
            if session.peer_closed:
                # Closed without an error frame; nothing in this pass was refused
                logger.warning("Gateway closed the session without an error response")
                session.close()
            else:
                logger.debug("No error response within %.1fs", self.error_wait_timeout)
            return _PassOutcome(resend=[])

        # The gateway disconnects after reporting; make the next acquire reconnect
        session.close()
        error = decode_error_response(data)
        registry.record_error_response(error.status)

        index = next((i for i, (identifier, _) in enumerate(sent) if identifier == error.identifier), None)
        if index is None:
            registry.record_unmatched_error_response()
            logger.warning(
                "Error response matches no notification in this batch, not resending",
                extra={"identifier": error.identifier, "status": error.status, "batch_size": len(sent)},
            )
            return _PassOutcome(resend=[])

        rejected = sent[index][1]
        logger.warning(
            "Gateway rejected notification: %s",
            error.description,
            extra={"identifier": error.identifier, "status": error.status, "position": index + 1},
        )
        return _PassOutcome(
            resend=[notification for _, notification in sent[index + 1 :]],
            rejection=Rejection(notification=rejected, error=error),
        )

    @staticmethod
    def _as_notification(item: Notification | tuple[str, Any]) -> Notification:
        if isinstance(item, Notification):
            return item
        if not isinstance(item, (tuple, list)) or len(item) != 2:
            raise InvalidPayloadError("not_a_notification", item)
        token, payload = item
        return Notification(token=token, payload=payload)
