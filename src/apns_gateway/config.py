"""Gateway endpoints, credentials and connection preferences."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel

from apns_gateway import const
from apns_gateway.transport.exceptions import ConfigurationError


class GatewayConfig(BaseModel):
    """Settings consumed by the connection manager, sender and feedback reader.

    ``pem`` is the private key (usually a PEM file that also holds the
    certificate); ``cert`` defaults to ``pem`` when unset.
    """

    host: str = const.GATEWAY_HOST_SANDBOX
    port: int = 2195
    feedback_host: str = const.FEEDBACK_HOST_SANDBOX
    feedback_port: int = 2196
    pem: str | None = None
    cert: str | None = None
    passphrase: str | None = None
    cache_connections: bool = False
    error_wait_timeout: float = 5.0
    connect_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> GatewayConfig:
        """Build a config from the APNS_* environment variables.

        Read at call time rather than from the import-time constants so a
        process that loads an env file late still sees its values.
        """
        return cls(
            host=os.environ.get("APNS_HOST", const.APNS_HOST),
            port=int(os.environ.get("APNS_PORT", const.APNS_PORT)),
            feedback_host=os.environ.get("APNS_FEEDBACK_HOST", const.APNS_FEEDBACK_HOST),
            feedback_port=int(os.environ.get("APNS_FEEDBACK_PORT", const.APNS_FEEDBACK_PORT)),
            pem=os.environ.get("APNS_PEM", const.APNS_PEM),
            cert=os.environ.get("APNS_CERT", const.APNS_CERT),
            passphrase=os.environ.get("APNS_PASSPHRASE", const.APNS_PASSPHRASE),
            cache_connections=(
                os.environ.get("APNS_CACHE_CONNECTIONS", str(const.APNS_CACHE_CONNECTIONS)).casefold()
                in const.YES_ANSWER
            ),
            error_wait_timeout=float(os.environ.get("APNS_ERROR_WAIT_TIMEOUT", const.APNS_ERROR_WAIT_TIMEOUT)),
            connect_timeout=float(os.environ.get("APNS_CONNECT_TIMEOUT", const.APNS_CONNECT_TIMEOUT)),
        )

    def production(self) -> GatewayConfig:
        """Copy of this config pointed at the production gateway."""
        return self.model_copy(
            update={
                "host": const.GATEWAY_HOST_PRODUCTION,
                "feedback_host": const.FEEDBACK_HOST_PRODUCTION,
            },
        )

    def sandbox(self) -> GatewayConfig:
        """Copy of this config pointed at the sandbox gateway."""
        return self.model_copy(
            update={
                "host": const.GATEWAY_HOST_SANDBOX,
                "feedback_host": const.FEEDBACK_HOST_SANDBOX,
            },
        )

    def resolve_credentials(self) -> tuple[Path, Path]:
        """Return ``(cert_path, key_path)`` after checking both files exist.

        Raises:
            ConfigurationError: If the key path is unset, or either file is missing

        """
        if not self.pem:
            raise ConfigurationError("pem")
        cert = self.cert or self.pem

        key_path = Path(self.pem).expanduser()
        if not key_path.exists():
            raise ConfigurationError("pem", self.pem)
        cert_path = Path(cert).expanduser()
        if not cert_path.exists():
            raise ConfigurationError("cert", cert)
        return cert_path, key_path
