from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence

from apns_gateway.client import APNsClient
from apns_gateway.config import GatewayConfig
from apns_gateway.const import APNS_DEBUG, APNS_METRICS_PORT, APNS_VERSION
from apns_gateway.correlation import correlation_context
from apns_gateway.logging_abstraction import get_logger, set_package_level
from apns_gateway.metrics import start_metrics_server
from apns_gateway.protocol.exceptions import APNsProtocolError

logger = get_logger(__name__)


def parse_cli(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="apns-gateway",
        description="Send notifications through the binary APNs gateway and read feedback",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {APNS_VERSION}")
    parser.add_argument(
        "--production",
        action="store_true",
        help="Use the production gateway instead of the sandbox",
    )
    parser.add_argument("--pem", help="Path to the private key (PEM, may include the certificate)")
    parser.add_argument("--cert", help="Path to the certificate if not inside --pem")
    parser.add_argument("--passphrase", help="Passphrase for the private key")
    parser.add_argument(
        "-D",
        "--debug",
        action="store_true",
        help="Enable debug mode",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=None,
        help="Serve Prometheus metrics on this port (default: APNS_METRICS_PORT, off if 0)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    send = subparsers.add_parser("send", help="Send one notification and wait for an error response")
    send.add_argument("token", help="Device token (64 hex digits)")
    send.add_argument("message", help="Alert text, or a JSON object when --json is given")
    send.add_argument("--json", action="store_true", help="Treat MESSAGE as a JSON payload")

    subparsers.add_parser("feedback", help="Print stale device tokens from the feedback service")

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> GatewayConfig:
    config = GatewayConfig.from_env()
    overrides = {
        key: value
        for key, value in (("pem", args.pem), ("cert", args.cert), ("passphrase", args.passphrase))
        if value is not None
    }
    if overrides:
        config = config.model_copy(update=overrides)
    if args.production:
        config = config.production()
    return config


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the apns-gateway command."""
    args = parse_cli(argv)

    if args.debug or APNS_DEBUG:
        set_package_level(logging.DEBUG)
        logger.debug("Debug logging enabled")

    metrics_port = APNS_METRICS_PORT if args.metrics_port is None else args.metrics_port
    if metrics_port:
        try:
            start_metrics_server(metrics_port)
        except OSError as e:
            logger.error("Failed to start metrics server: %s", e, extra={"port": metrics_port})
            return 2
        logger.info("Metrics server started on port %d", metrics_port)

    config = build_config(args)

    with correlation_context(), APNsClient(config) as client:
        try:
            if args.command == "send":
                message = json.loads(args.message) if args.json else args.message
                rejections = client.send_notifications([(args.token, message)])
                for rejection in rejections:
                    print(f"rejected: {rejection.error.description} (status {rejection.status})")
                return 1 if rejections else 0

            for item in client.fetch_feedback():
                print(f"{item.feedback_at.isoformat()} {item.device_token}")
        except (APNsProtocolError, OSError, json.JSONDecodeError) as e:
            logger.error("Command failed: %s", e, extra={"command": args.command})
            print(f"error: {e}", file=sys.stderr)
            return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
