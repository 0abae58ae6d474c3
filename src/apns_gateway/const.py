import os

from apns_gateway import __version__

__all__ = [
    "APNS_CACHE_CONNECTIONS",
    "APNS_CERT",
    "APNS_CONNECT_TIMEOUT",
    "APNS_DEBUG",
    "APNS_ERROR_WAIT_TIMEOUT",
    "APNS_FEEDBACK_HOST",
    "APNS_FEEDBACK_PORT",
    "APNS_HOST",
    "APNS_LOG_FORMAT",
    "APNS_LOG_HUMAN_OUTPUT",
    "APNS_LOG_JSON_FILE",
    "APNS_METRICS_PORT",
    "APNS_PASSPHRASE",
    "APNS_PEM",
    "APNS_PORT",
    "APNS_VERSION",
    "FEEDBACK_HOST_PRODUCTION",
    "FEEDBACK_HOST_SANDBOX",
    "GATEWAY_HOST_PRODUCTION",
    "GATEWAY_HOST_SANDBOX",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
APNS_VERSION: str = __version__

# production: gateway.push.apple.com / feedback.push.apple.com
GATEWAY_HOST_PRODUCTION: str = "gateway.push.apple.com"
GATEWAY_HOST_SANDBOX: str = "gateway.sandbox.push.apple.com"
FEEDBACK_HOST_PRODUCTION: str = "feedback.push.apple.com"
FEEDBACK_HOST_SANDBOX: str = "feedback.sandbox.push.apple.com"

APNS_HOST: str = os.environ.get("APNS_HOST", GATEWAY_HOST_SANDBOX)
APNS_PORT: int = int(os.environ.get("APNS_PORT", "2195"))
APNS_FEEDBACK_HOST: str = os.environ.get("APNS_FEEDBACK_HOST", FEEDBACK_HOST_SANDBOX)
APNS_FEEDBACK_PORT: int = int(os.environ.get("APNS_FEEDBACK_PORT", "2196"))

APNS_PEM: str | None = os.environ.get("APNS_PEM")
APNS_CERT: str | None = os.environ.get("APNS_CERT")
APNS_PASSPHRASE: str | None = os.environ.get("APNS_PASSPHRASE")
APNS_CACHE_CONNECTIONS: bool = os.environ.get("APNS_CACHE_CONNECTIONS", "0").casefold() in YES_ANSWER

# Seconds to wait for an error response after a batch is flushed
APNS_ERROR_WAIT_TIMEOUT: float = float(os.environ.get("APNS_ERROR_WAIT_TIMEOUT", "5.0"))
APNS_CONNECT_TIMEOUT: float = float(os.environ.get("APNS_CONNECT_TIMEOUT", "10.0"))

APNS_DEBUG: bool = os.environ.get("APNS_DEBUG", "0").casefold() in YES_ANSWER
APNS_LOG_FORMAT: str = os.environ.get("APNS_LOG_FORMAT", "human").casefold()
APNS_LOG_JSON_FILE: str | None = os.environ.get("APNS_LOG_JSON_FILE")
APNS_LOG_HUMAN_OUTPUT: str = os.environ.get("APNS_LOG_HUMAN_OUTPUT", "stderr")

# Prometheus exporter port; unset or 0 leaves the exporter off
APNS_METRICS_PORT: int = int(os.environ.get("APNS_METRICS_PORT", "0"))
