"""Feedback service reader.

The feedback service streams one 38-byte tuple per device token that should no
longer receive notifications, then closes. Reading it drains the list on the
server side, so the channel is always read to the end on a fresh session.
"""

from __future__ import annotations

from apns_gateway.correlation import correlation_context
from apns_gateway.logging_abstraction import get_logger
from apns_gateway.metrics import registry
from apns_gateway.protocol.frame_types import FEEDBACK_TUPLE_LENGTH, FeedbackTuple
from apns_gateway.protocol.frames import decode_feedback_tuple
from apns_gateway.transport.connection_manager import ConnectionManager
from apns_gateway.transport.socket_abstraction import TLSSession

logger = get_logger(__name__)


class FeedbackReader:
    """Drains stale-token tuples from the feedback service."""

    def __init__(self, connections: ConnectionManager, host: str, port: int) -> None:
        self.connections = connections
        self.host = host
        self.port = port

    def fetch_feedback(self) -> list[FeedbackTuple]:
        """Read every pending feedback tuple.

        Caching is forced off for the call and restored afterwards, whatever
        the outcome.

        Returns:
            Decoded tuples in the order received (empty if none are pending)

        Raises:
            TruncatedFrameError: Stream ended in the middle of a tuple

        """
        with correlation_context(), self.connections.caching_disabled():
            tuples = self.connections.with_session(self.host, self.port, self._drain)
        registry.record_feedback_tuples(len(tuples))
        logger.info("Feedback fetched", extra={"stale_tokens": len(tuples)})
        return tuples

    @staticmethod
    def _drain(session: TLSSession) -> list[FeedbackTuple]:
        tuples: list[FeedbackTuple] = []
        while data := session.read(FEEDBACK_TUPLE_LENGTH):
            tuples.append(decode_feedback_tuple(data))
        return tuples
