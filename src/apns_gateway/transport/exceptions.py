"""Custom exception types for the transport layer.

Transient I/O failures are not wrapped: once the retry budget is spent the
underlying OS error propagates unchanged, so callers can keep catching
``ConnectionResetError`` and friends.
"""

from __future__ import annotations

from apns_gateway.protocol.exceptions import APNsProtocolError

# Raised mid-operation when the gateway drops the channel; retried with eviction
TRANSIENT_CONNECTION_ERRORS: tuple[type[OSError], ...] = (
    ConnectionAbortedError,
    BrokenPipeError,
    ConnectionResetError,
)


class ConfigurationError(APNsProtocolError):
    """Credentials are missing or point at files that do not exist.

    Fatal, never retried.

    Attributes:
        setting: Name of the offending setting ("pem" or "cert")
        path: Configured path, if any

    """

    def __init__(self, setting: str, path: str | None = None) -> None:
        self.setting: str = setting
        self.path: str | None = path
        if path is None:
            message = f"The path to your {setting} file is not set"
        else:
            message = f"Your {setting} file ({path}) does not exist"
        super().__init__(message)
