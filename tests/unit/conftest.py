"""
Shared fixtures for unit tests.

Sessions come from a scripted FakeGateway; no sockets or TLS are involved
except in the socket abstraction tests, which use socket pairs.
"""

from unittest.mock import MagicMock

import pytest

from apns_gateway.config import GatewayConfig
from apns_gateway.transport.connection_manager import ConnectionManager
from apns_gateway.transport.retry_policy import RetryPolicy
from tests.helpers.fake_gateway import FakeGateway

GATEWAY_HOST = "gateway.test"
GATEWAY_PORT = 2195
FEEDBACK_HOST = "feedback.test"
FEEDBACK_PORT = 2196


@pytest.fixture
def pem_file(tmp_path):
    """Placeholder PEM file; contents never parsed because the SSL context is mocked."""
    path = tmp_path / "push.pem"
    path.write_text("-----BEGIN CERTIFICATE-----\n-----END CERTIFICATE-----\n")
    return path


@pytest.fixture
def config(pem_file):
    return GatewayConfig(
        host=GATEWAY_HOST,
        port=GATEWAY_PORT,
        feedback_host=FEEDBACK_HOST,
        feedback_port=FEEDBACK_PORT,
        pem=str(pem_file),
        error_wait_timeout=0.01,
    )


@pytest.fixture
def cached_config(config):
    return config.model_copy(update={"cache_connections": True})


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def sleep_calls():
    return []


def build_manager(config, gateway, sleep_calls):
    manager = ConnectionManager(
        config,
        session_factory=gateway,
        connect_policy=RetryPolicy(max_attempts=5, delay_seconds=1.0),
        sleep=sleep_calls.append,
    )
    manager.create_ssl_context = MagicMock(return_value=MagicMock(name="ssl_context"))
    return manager


@pytest.fixture
def manager(config, gateway, sleep_calls):
    """ConnectionManager with caching disabled and a recorded (not real) sleep."""
    return build_manager(config, gateway, sleep_calls)


@pytest.fixture
def cached_manager(cached_config, gateway, sleep_calls):
    """ConnectionManager with caching enabled."""
    return build_manager(cached_config, gateway, sleep_calls)
