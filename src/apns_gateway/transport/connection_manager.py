"""Connection management: session cache, reconnects and bounded retries.

This module implements the ConnectionManager class, which owns the cached TLS
sessions for every (host, port) endpoint it talks to, opens fresh sessions
when caching is off, and retries transient failures with a hard cap.
"""

from __future__ import annotations

import contextlib
import ssl
import time
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, TypeVar

from apns_gateway.logging_abstraction import get_logger
from apns_gateway.metrics import registry
from apns_gateway.transport.exceptions import TRANSIENT_CONNECTION_ERRORS
from apns_gateway.transport.retry_policy import (
    RetryPolicy,
    connect_retry_policy,
    operation_retry_policy,
)
from apns_gateway.transport.session_cache import SessionCache
from apns_gateway.transport.socket_abstraction import TLSSession

if TYPE_CHECKING:
    from apns_gateway.config import GatewayConfig

logger = get_logger(__name__)

T = TypeVar("T")

SessionFactory = Callable[[str, int, ssl.SSLContext, float], TLSSession]


class ConnectionManager:
    """Owns zero or more sessions keyed by (host, port).

    **Ownership**: with caching enabled the cache owns every session it hands
    out and callers must not close them. With caching disabled each
    ``acquire()`` opens a fresh session owned by the caller; ``with_session()``
    closes it when the operation ends.

    **Thread Safety**: none. The cache is shared mutable state and each
    operation assumes exclusive use of its endpoint's session; concurrent
    callers must serialize around ``with_session()``.
    """

    def __init__(
        self,
        config: GatewayConfig,
        cache: SessionCache | None = None,
        session_factory: SessionFactory = TLSSession.connect,
        connect_policy: RetryPolicy | None = None,
        operation_policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize connection manager.

        Args:
            config: Credentials and connection preferences
            cache: Session store to use (a new private one if None)
            session_factory: Opens one TLS session; replaced in tests
            connect_policy: Retry budget for opening sessions (5 attempts, 1s apart)
            operation_policy: Retry budget for operations hit by a dropped channel
            sleep: Used between connect retries

        """
        self.config: GatewayConfig = config
        self.cache: SessionCache = cache if cache is not None else SessionCache()
        self.cache_connections: bool = config.cache_connections
        self.connect_policy: RetryPolicy = connect_policy or connect_retry_policy()
        self.operation_policy: RetryPolicy = operation_policy or operation_retry_policy()
        self._session_factory: SessionFactory = session_factory
        self._sleep: Callable[[float], None] = sleep

    def create_ssl_context(self) -> ssl.SSLContext:
        """Build a client context from the configured certificate and key.

        Raises:
            ConfigurationError: Key path unset, or either file missing

        """
        cert_path, key_path = self.config.resolve_credentials()
        context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
        context.load_cert_chain(
            certfile=cert_path,
            keyfile=key_path,
            password=self.config.passphrase,
        )
        return context

    def open_session(self, host: str, port: int, policy: RetryPolicy | None = None) -> TLSSession:
        """Open a new TLS session, retrying OS-level connect failures.

        TLS errors (bad certificate, rejected client) are not retried.

        Raises:
            ConfigurationError: Credentials missing (before any socket is opened)
            OSError: Last connect failure once the retry budget is spent

        """
        policy = policy or self.connect_policy
        context = self.create_ssl_context()
        endpoint = f"{host}:{port}"

        attempt = 0
        while True:
            attempt += 1
            try:
                session = self._session_factory(host, port, context, self.config.connect_timeout)
            except ssl.SSLError:
                registry.record_session_opened(endpoint, "failure")
                logger.exception("TLS handshake rejected", extra={"endpoint": endpoint})
                raise
            except OSError as e:
                registry.record_session_opened(endpoint, "failure")
                if not policy.should_retry(attempt):
                    logger.error(
                        "Giving up connecting after %d attempts",
                        attempt,
                        extra={"endpoint": endpoint, "error": str(e)},
                    )
                    raise
                delay = policy.get_delay(attempt)
                logger.warning(
                    "Connect attempt %d/%d failed, retrying in %.1fs",
                    attempt,
                    policy.max_attempts,
                    delay,
                    extra={"endpoint": endpoint, "error": str(e), "error_type": type(e).__name__},
                )
                registry.record_connection_retry(endpoint, type(e).__name__)
                self._sleep(delay)
            else:
                registry.record_session_opened(endpoint, "success")
                return session

    def has_connection(self, host: str, port: int) -> bool:
        """Whether a session for this endpoint is cached. Never opens sockets."""
        return (host, port) in self.cache

    def establish_connection(self, host: str, port: int) -> bool:
        """Warm the cache for this endpoint.

        Returns:
            True if a cached session is now available; always False with
            caching disabled. Failures are logged, never raised.

        """
        if not self.cache_connections:
            return False
        try:
            self.acquire(host, port)
        except Exception:
            # Warming is opportunistic; the next send will surface the error
            logger.exception(
                "Failed to establish cached connection",
                extra={"endpoint": f"{host}:{port}"},
            )
            return False
        return True

    def acquire(self, host: str, port: int) -> TLSSession:
        """Return a usable session for this endpoint.

        With caching disabled the session is new and owned by the caller.
        Otherwise the cached one is returned (opened or reconnected as needed)
        and stays owned by the cache.
        """
        if not self.cache_connections:
            return self.open_session(host, port)

        session = self.cache.get(host, port)
        if session is None:
            return self._create_connection(host, port)
        if session.closed:
            logger.info("Cached session closed, reconnecting", extra={"endpoint": f"{host}:{port}"})
            return self._reconnect_connection(host, port)
        return session

    def with_session(
        self,
        host: str,
        port: int,
        operation: Callable[[TLSSession], T],
        policy: RetryPolicy | None = None,
    ) -> T:
        """Run ``operation`` with a session, retrying if the channel drops.

        On ``ConnectionAbortedError``, ``BrokenPipeError`` or
        ``ConnectionResetError`` the cached entry is evicted and the whole
        acquire + operation sequence runs again, up to the policy's cap.
        Sessions not owned by the cache are closed when the operation ends.

        Returns:
            Whatever ``operation`` returns

        """
        policy = policy or self.operation_policy
        endpoint = f"{host}:{port}"

        attempt = 0
        while True:
            attempt += 1
            owned = not self.cache_connections
            session: TLSSession | None = None
            try:
                session = self.acquire(host, port)
                return operation(session)
            except TRANSIENT_CONNECTION_ERRORS as e:
                if not policy.should_retry(attempt):
                    logger.error(
                        "Operation failed after %d attempts",
                        attempt,
                        extra={"endpoint": endpoint, "error": str(e), "error_type": type(e).__name__},
                    )
                    raise
                logger.warning(
                    "Channel dropped during operation (attempt %d/%d), retrying",
                    attempt,
                    policy.max_attempts,
                    extra={"endpoint": endpoint, "error_type": type(e).__name__},
                )
                registry.record_connection_retry(endpoint, type(e).__name__)
                self.remove_connection(host, port)
                delay = policy.get_delay(attempt)
                if delay > 0:
                    self._sleep(delay)
            finally:
                if owned and session is not None:
                    session.close()

    def remove_connection(self, host: str, port: int) -> None:
        """Evict and close the cached session for this endpoint, if any."""
        session = self.cache.pop(host, port)
        if session is None:
            return
        session.close()
        registry.record_session_cache_size(len(self.cache))

    def close_all(self) -> None:
        """Evict and close every cached session."""
        for host, port in self.cache:
            self.remove_connection(host, port)

    @contextlib.contextmanager
    def caching_disabled(self) -> Iterator[None]:
        """Force caching off; the previous preference is restored on exit."""
        previous = self.cache_connections
        self.cache_connections = False
        try:
            yield
        finally:
            self.cache_connections = previous

    def _create_connection(self, host: str, port: int) -> TLSSession:
        session = self.open_session(host, port)
        self.cache.put(host, port, session)
        registry.record_session_cache_size(len(self.cache))
        return session

    def _reconnect_connection(self, host: str, port: int) -> TLSSession:
        self.remove_connection(host, port)
        return self._create_connection(host, port)
