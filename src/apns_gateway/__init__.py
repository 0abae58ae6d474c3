"""Client for the legacy binary APNs gateway and its feedback service."""

__version__ = "0.4.0"

from apns_gateway.client import APNsClient  # noqa: E402
from apns_gateway.config import GatewayConfig  # noqa: E402
from apns_gateway.protocol.frame_types import FeedbackTuple, Notification  # noqa: E402
from apns_gateway.sender import Rejection  # noqa: E402

__all__ = [
    "APNsClient",
    "FeedbackTuple",
    "GatewayConfig",
    "Notification",
    "Rejection",
    "__version__",
]
