"""Unit tests for transport layer exceptions."""

from __future__ import annotations

from apns_gateway.protocol.exceptions import APNsProtocolError
from apns_gateway.transport.exceptions import TRANSIENT_CONNECTION_ERRORS, ConfigurationError


class TestConfigurationError:
    """Tests for ConfigurationError."""

    def test_inherits_from_protocol_error(self):
        assert issubclass(ConfigurationError, APNsProtocolError)

    def test_unset_path(self):
        error = ConfigurationError("pem")
        assert error.setting == "pem"
        assert error.path is None
        assert str(error) == "The path to your pem file is not set"

    def test_missing_file(self):
        error = ConfigurationError("cert", "/etc/apns/cert.pem")
        assert error.path == "/etc/apns/cert.pem"
        assert str(error) == "Your cert file (/etc/apns/cert.pem) does not exist"


def test_transient_errors_are_channel_drops():
    assert set(TRANSIENT_CONNECTION_ERRORS) == {
        ConnectionAbortedError,
        BrokenPipeError,
        ConnectionResetError,
    }
    # Refused connects are handled by the connect retry budget instead
    assert ConnectionRefusedError not in TRANSIENT_CONNECTION_ERRORS
