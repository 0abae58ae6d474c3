"""Transport package - TLS sessions, session cache and retrying connection manager."""

from apns_gateway.transport.connection_manager import ConnectionManager
from apns_gateway.transport.exceptions import TRANSIENT_CONNECTION_ERRORS, ConfigurationError
from apns_gateway.transport.retry_policy import RetryPolicy
from apns_gateway.transport.session_cache import SessionCache
from apns_gateway.transport.socket_abstraction import TLSSession

__all__ = [
    "TRANSIENT_CONNECTION_ERRORS",
    "ConfigurationError",
    "ConnectionManager",
    "RetryPolicy",
    "SessionCache",
    "TLSSession",
]
