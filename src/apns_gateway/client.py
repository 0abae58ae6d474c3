"""Public entry point tying configuration, connections, sender and feedback together."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import TracebackType
from typing import Any

from apns_gateway.config import GatewayConfig
from apns_gateway.feedback import FeedbackReader
from apns_gateway.protocol.frame_types import FeedbackTuple, Notification
from apns_gateway.sender import NotificationSender, Rejection
from apns_gateway.transport.connection_manager import ConnectionManager


class APNsClient:
    """Send notifications through the binary gateway and read feedback.

    Example:
        config = GatewayConfig(pem="/etc/apns/push.pem", cache_connections=True)
        with APNsClient(config) as client:
            client.send_notifications([(token, "Hello"), (other, {"aps": {"badge": 3}})])
            stale = client.fetch_feedback()

    """

    def __init__(
        self,
        config: GatewayConfig | None = None,
        connections: ConnectionManager | None = None,
    ) -> None:
        self.config = config or GatewayConfig.from_env()
        self.connections = connections or ConnectionManager(self.config)
        self.sender = NotificationSender(
            self.connections,
            self.config.host,
            self.config.port,
            error_wait_timeout=self.config.error_wait_timeout,
        )
        self.feedback = FeedbackReader(
            self.connections,
            self.config.feedback_host,
            self.config.feedback_port,
        )

    def send_notification(self, token: str, message: str | Mapping[str, Any]) -> None:
        self.sender.send_one(token, message)

    def send_notifications(
        self,
        notifications: Iterable[Notification | tuple[str, Any]],
    ) -> list[Rejection]:
        """Send a batch; see ``NotificationSender.send_batch``."""
        return self.sender.send_batch(notifications)

    def fetch_feedback(self) -> list[FeedbackTuple]:
        return self.feedback.fetch_feedback()

    def has_open_connection(self) -> bool:
        """Whether a cached session to the gateway exists."""
        return self.connections.has_connection(self.config.host, self.config.port)

    def establish_connection(self) -> bool:
        """Open and cache a gateway session ahead of the first send."""
        return self.connections.establish_connection(self.config.host, self.config.port)

    def close(self) -> None:
        self.connections.close_all()

    def __enter__(self) -> APNsClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
