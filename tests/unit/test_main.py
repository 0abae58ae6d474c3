"""Unit tests for the apns-gateway command line."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from apns_gateway import const
from apns_gateway.main import build_config, main, parse_cli
from apns_gateway.protocol.exceptions import MalformedTokenError
from apns_gateway.protocol.frame_types import ErrorResponse, FeedbackTuple, Notification
from apns_gateway.sender import Rejection

# Test constants
TOKEN = "740f4707bebcf74f9b7c25d48e3358945f6aa01da5ddb387462c7eaf61bb78ad"


@pytest.fixture
def client():
    """Patch APNsClient inside main and return the instance main will use."""
    with patch("apns_gateway.main.APNsClient") as client_cls:
        instance = MagicMock()
        client_cls.return_value.__enter__.return_value = instance
        instance.send_notifications.return_value = []
        instance.fetch_feedback.return_value = []
        yield instance


class TestParseCli:
    """Tests for argument parsing."""

    def test_send(self):
        args = parse_cli(["--pem", "/etc/apns/push.pem", "send", TOKEN, "Hello"])

        assert args.command == "send"
        assert args.token == TOKEN
        assert args.message == "Hello"
        assert args.json is False
        assert args.pem == "/etc/apns/push.pem"
        assert args.production is False

    def test_feedback_with_flags(self):
        args = parse_cli(["--production", "-D", "feedback"])

        assert args.command == "feedback"
        assert args.production is True
        assert args.debug is True

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_cli([])


class TestBuildConfig:
    """Tests for turning arguments into a GatewayConfig."""

    def test_overrides(self, monkeypatch):
        monkeypatch.delenv("APNS_PEM", raising=False)
        args = parse_cli(["--pem", "key.pem", "--cert", "cert.pem", "--passphrase", "pw", "feedback"])

        config = build_config(args)

        assert (config.pem, config.cert, config.passphrase) == ("key.pem", "cert.pem", "pw")
        assert config.host == const.GATEWAY_HOST_SANDBOX

    def test_production(self, monkeypatch):
        monkeypatch.delenv("APNS_HOST", raising=False)

        config = build_config(parse_cli(["--production", "feedback"]))

        assert config.host == const.GATEWAY_HOST_PRODUCTION
        assert config.feedback_host == const.FEEDBACK_HOST_PRODUCTION

    def test_environment_kept_without_flags(self, monkeypatch):
        monkeypatch.setenv("APNS_PEM", "/env/push.pem")

        config = build_config(parse_cli(["feedback"]))

        assert config.pem == "/env/push.pem"


class TestMain:
    """Tests for main() exit codes and output."""

    def test_send_accepted(self, client):
        assert main(["send", TOKEN, "Hello"]) == 0

        client.send_notifications.assert_called_once_with([(TOKEN, "Hello")])

    def test_send_json_payload(self, client):
        assert main(["send", TOKEN, '{"aps": {"badge": 2}}', "--json"]) == 0

        client.send_notifications.assert_called_once_with([(TOKEN, {"aps": {"badge": 2}})])

    def test_send_rejected(self, client, capsys):
        client.send_notifications.return_value = [
            Rejection(Notification(TOKEN, "Hello"), ErrorResponse(command=8, status=8, identifier=1)),
        ]

        assert main(["send", TOKEN, "Hello"]) == 1

        assert "rejected: Invalid token (status 8)" in capsys.readouterr().out

    def test_feedback(self, client, capsys):
        client.fetch_feedback.return_value = [FeedbackTuple(timestamp=0, length=32, device_token=TOKEN)]

        assert main(["feedback"]) == 0

        assert capsys.readouterr().out == f"1970-01-01T00:00:00+00:00 {TOKEN}\n"

    @pytest.mark.parametrize(
        "error",
        [ConnectionRefusedError("refused"), MalformedTokenError("invalid_hex", "zz")],
    )
    def test_failures_exit_2(self, client, capsys, error):
        client.send_notifications.side_effect = error

        assert main(["send", TOKEN, "Hello"]) == 2

        assert "error: " in capsys.readouterr().err

    def test_invalid_json(self, client):
        assert main(["send", TOKEN, "{not json", "--json"]) == 2
        client.send_notifications.assert_not_called()

    def test_debug_flag(self, client):
        with patch("apns_gateway.main.set_package_level") as set_level:
            main(["-D", "feedback"])

        set_level.assert_called_once()


class TestMetricsServer:
    """Tests for the Prometheus exporter switch."""

    def test_started_from_flag(self, client):
        with patch("apns_gateway.main.start_metrics_server") as start:
            assert main(["--metrics-port", "9401", "feedback"]) == 0

        start.assert_called_once_with(9401)

    def test_started_from_environment_setting(self, client, monkeypatch):
        monkeypatch.setattr("apns_gateway.main.APNS_METRICS_PORT", 9402)

        with patch("apns_gateway.main.start_metrics_server") as start:
            main(["feedback"])

        start.assert_called_once_with(9402)

    def test_off_by_default(self, client, monkeypatch):
        monkeypatch.setattr("apns_gateway.main.APNS_METRICS_PORT", 0)

        with patch("apns_gateway.main.start_metrics_server") as start:
            main(["feedback"])

        start.assert_not_called()

    def test_port_in_use(self, client):
        with patch("apns_gateway.main.start_metrics_server", side_effect=OSError("Address already in use")):
            assert main(["--metrics-port", "9401", "send", TOKEN, "Hello"]) == 2

        client.send_notifications.assert_not_called()
