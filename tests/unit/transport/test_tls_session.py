"""TLSSession and the sender against a real local TLS 1.3 server.

A TLS 1.3 server sends session tickets right after the handshake, so the
client socket turns readable without any application data. A gateway that
accepts a batch says nothing, and the post-flush wait must still end within
its budget.
"""

from __future__ import annotations

import shutil
import socket
import ssl
import subprocess
import threading
import time
from unittest.mock import MagicMock

import pytest

from apns_gateway.config import GatewayConfig
from apns_gateway.protocol.frame_types import ERROR_RESPONSE_LENGTH
from apns_gateway.sender import NotificationSender
from apns_gateway.transport.connection_manager import ConnectionManager
from apns_gateway.transport.socket_abstraction import TLSSession
from tests.helpers.fake_gateway import make_token, split_frames

# Test constants
LOCALHOST = "127.0.0.1"
WAIT_BUDGET = 0.3
MAX_ELAPSED = 3.0  # generous bound for a wait that must give up after WAIT_BUDGET
SERVER_TIMEOUT = 5.0


@pytest.fixture(scope="module")
def server_credentials(tmp_path_factory):
    """Self-signed certificate and key for the local server."""
    openssl = shutil.which("openssl")
    if openssl is None:
        pytest.skip("openssl is not installed")
    directory = tmp_path_factory.mktemp("tls")
    cert, key = directory / "cert.pem", directory / "key.pem"
    subprocess.run(
        [
            openssl,
            "req",
            "-x509",
            "-newkey",
            "rsa:2048",
            "-nodes",
            "-keyout",
            str(key),
            "-out",
            str(cert),
            "-days",
            "1",
            "-subj",
            "/CN=localhost",
        ],
        check=True,
        capture_output=True,
    )
    return cert, key


class SilentGateway:
    """TLS 1.3 server that reads one batch and never answers."""

    def __init__(self, cert, key):
        self.context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        self.context.minimum_version = ssl.TLSVersion.TLSv1_3
        self.context.load_cert_chain(cert, key)
        self.listener = socket.create_server((LOCALHOST, 0))
        self.listener.settimeout(SERVER_TIMEOUT)
        self.port = self.listener.getsockname()[1]
        self.received = b""
        self.got_batch = threading.Event()
        self.release = threading.Event()
        self.thread = threading.Thread(target=self._serve, daemon=True)

    def _serve(self):
        raw, _ = self.listener.accept()
        raw.settimeout(SERVER_TIMEOUT)
        with self.context.wrap_socket(raw, server_side=True) as tls:
            self.received = tls.recv(65536)
            self.got_batch.set()
            self.release.wait(SERVER_TIMEOUT)


@pytest.fixture
def silent_gateway(server_credentials):
    server = SilentGateway(*server_credentials)
    server.thread.start()
    yield server
    server.release.set()
    server.thread.join(SERVER_TIMEOUT)
    server.listener.close()


@pytest.fixture
def client_context():
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    context.minimum_version = ssl.TLSVersion.TLSv1_3
    return context


def test_silent_gateway_read_ends_within_budget(silent_gateway, client_context):
    session = TLSSession.connect(LOCALHOST, silent_gateway.port, client_context, SERVER_TIMEOUT)
    try:
        assert session.sock.version() == "TLSv1.3"
        session.write(b"batch")
        session.flush()
        assert silent_gateway.got_batch.wait(SERVER_TIMEOUT)

        start = time.monotonic()
        data = b""
        if session.wait_readable(WAIT_BUDGET):
            data = session.read(ERROR_RESPONSE_LENGTH, timeout=WAIT_BUDGET)
        elapsed = time.monotonic() - start

        assert data == b""
        assert elapsed < MAX_ELAPSED
        assert session.peer_closed is False
    finally:
        session.close()


def test_batch_accepted_by_silent_gateway(silent_gateway, client_context):
    config = GatewayConfig(host=LOCALHOST, port=silent_gateway.port, error_wait_timeout=WAIT_BUDGET)
    manager = ConnectionManager(config)
    manager.create_ssl_context = MagicMock(return_value=client_context)
    sender = NotificationSender(manager, config.host, config.port, error_wait_timeout=WAIT_BUDGET)

    start = time.monotonic()
    rejections = sender.send_batch([(make_token(1), "Hello")])
    elapsed = time.monotonic() - start

    assert rejections == []
    assert elapsed < MAX_ELAPSED
    assert silent_gateway.got_batch.wait(SERVER_TIMEOUT)
    assert [frame.token.hex() for frame in split_frames(silent_gateway.received)] == [make_token(1)]
