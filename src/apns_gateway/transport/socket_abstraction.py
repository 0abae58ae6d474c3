"""Blocking TLS session abstraction with buffered writes and bounded waits."""

from __future__ import annotations

import logging
import select
import socket
import ssl
import time

logger = logging.getLogger(__name__)


class TLSSession:
    """One encrypted channel to a gateway endpoint.

    Writes are buffered until ``flush()`` so a whole batch goes out in one
    ``sendall``. Reads block; ``wait_readable()`` is the only bounded wait.
    """

    def __init__(self, sock: socket.socket, host: str, port: int):
        """
        Wrap an already connected socket.

        Args:
            sock: Connected socket (an ``ssl.SSLSocket`` in production)
            host: Remote host the socket is bound to
            port: Remote port the socket is bound to
        """
        self.sock = sock
        self.host = host
        self.port = port
        self._write_buffer = bytearray()
        self._closed = False
        self._peer_closed = False

    @classmethod
    def connect(
        cls,
        host: str,
        port: int,
        context: ssl.SSLContext,
        connect_timeout: float = 10.0,
    ) -> TLSSession:
        """
        Open a TCP connection and perform the TLS handshake.

        Raises:
            OSError: Connect failure (including ``ssl.SSLError`` on handshake)
        """
        start_time = time.perf_counter()
        logger.info(
            "Connecting to %s:%d (timeout: %.1fs)",
            host,
            port,
            connect_timeout,
            extra={"host": host, "port": port, "timeout": connect_timeout},
        )
        raw = socket.create_connection((host, port), timeout=connect_timeout)
        try:
            tls = context.wrap_socket(raw, server_hostname=host)
        except BaseException:
            raw.close()
            raise
        # Handshake is done, everything after this blocks
        tls.settimeout(None)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "TLS session to %s:%d established in %.1fms",
            host,
            port,
            elapsed_ms,
            extra={"host": host, "port": port, "elapsed_ms": elapsed_ms},
        )
        return cls(tls, host, port)

    def write(self, data: bytes) -> None:
        """Buffer data for the next ``flush()``."""
        if self._closed:
            raise BrokenPipeError(f"session to {self.host}:{self.port} is closed")
        self._write_buffer += data

    def flush(self) -> None:
        """Send all buffered data.

        Raises:
            OSError: ``BrokenPipeError``/``ConnectionResetError`` when the peer is gone
        """
        if self._closed:
            raise BrokenPipeError(f"session to {self.host}:{self.port} is closed")
        if not self._write_buffer:
            return
        pending = bytes(self._write_buffer)
        self._write_buffer.clear()
        logger.debug(
            "Sending %d bytes to %s:%d",
            len(pending),
            self.host,
            self.port,
            extra={"bytes": len(pending), "host": self.host, "port": self.port},
        )
        self.sock.sendall(pending)

    def wait_readable(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds for data (or EOF) to arrive."""
        if self._closed:
            return False
        # Decrypted bytes already buffered inside the SSL object are invisible to select()
        pending = getattr(self.sock, "pending", None)
        if pending is not None and pending() > 0:
            return True
        readable, _, _ = select.select([self.sock], [], [], timeout)
        return bool(readable)

    def read(self, size: int, timeout: float | None = None) -> bytes:
        """Read exactly ``size`` bytes, or fewer if the peer closes first.

        With ``timeout`` set, stop at the deadline and return whatever has
        arrived. ``select()`` also wakes for TLS records that carry no
        application data (TLS 1.3 session tickets), so a read following
        ``wait_readable()`` must not block past the caller's budget.

        Returns:
            Received bytes; ``b""`` at end of stream or when nothing arrived in time
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        chunks: list[bytes] = []
        remaining = size
        try:
            while remaining > 0:
                if deadline is not None:
                    self.sock.settimeout(max(deadline - time.monotonic(), 0.0))
                try:
                    chunk = self.sock.recv(remaining)
                except ssl.SSLZeroReturnError:
                    chunk = b""
                except (TimeoutError, ssl.SSLWantReadError):
                    break
                if not chunk:
                    self._peer_closed = True
                    break
                chunks.append(chunk)
                remaining -= len(chunk)
        finally:
            if deadline is not None and not self._closed:
                self.sock.settimeout(None)
        data = b"".join(chunks)
        logger.debug(
            "Received %d of %d bytes from %s:%d",
            len(data),
            size,
            self.host,
            self.port,
            extra={"bytes": len(data), "host": self.host, "port": self.port},
        )
        return data

    def close(self) -> None:
        """Close the session. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._write_buffer.clear()
        logger.info(
            "Closing session to %s:%d",
            self.host,
            self.port,
            extra={"host": self.host, "port": self.port},
        )
        try:
            self.sock.close()
        except OSError as e:
            # Peer may already have torn the channel down
            logger.warning(
                "Error closing session: %s",
                e,
                extra={"host": self.host, "port": self.port, "error_type": type(e).__name__},
            )

    @property
    def closed(self) -> bool:
        """True once ``close()`` has been called."""
        return self._closed

    @property
    def peer_closed(self) -> bool:
        """True once a read has hit end of stream."""
        return self._peer_closed

    def __repr__(self) -> str:
        status = "closed" if self._closed else "open"
        return f"TLSSession({self.host}:{self.port}, {status})"
