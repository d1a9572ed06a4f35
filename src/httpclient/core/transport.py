"""
=============================================================================
BYTE TRANSPORTS
=============================================================================

The protocol engine never touches sockets directly. It talks to a
Transport: anything with blocking write/readinto/close.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     TRANSPORT ABSTRACTION                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   RequestContext ──write()────►  ┌──────────────────┐                │
    │                                  │    Transport     │ ──► peer       │
    │   RequestContext ◄─readinto()──  │  (Protocol)      │ ◄── peer       │
    │                                  └────────┬─────────┘                │
    │                                           │                          │
    │                         ┌─────────────────┴──────────────┐           │
    │                         │                                │           │
    │                  SocketTransport                  TLSTransport       │
    │                  (plain TCP)                      (ssl + SNI)        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Which implementation is used is decided once, when the connection is
opened. Tests plug in an in-memory transport with the same three methods.

=============================================================================
READ CONTRACT
=============================================================================

    readinto(buffer) → n

    n > 0   n fresh bytes are at buffer[0:n]
    n == 0  the peer closed the connection cleanly
    raise   TransportError on any I/O error or timeout

=============================================================================
TLS CONTEXT
=============================================================================

Building an ssl.SSLContext loads the system CA store, which is slow.
The verifying default context is built lazily by the first TLS connection
and shared by every later one. A lock makes "first caller wins" hold even
when several threads open connections at once.

=============================================================================
"""

import logging
import socket
import ssl
import threading
from typing import Optional, Protocol, Union

from ..errors import TransportError


logger = logging.getLogger(__name__)

HTTP_PORT = 80
HTTPS_PORT = 443


class Transport(Protocol):
    """A blocking, byte-oriented, optionally secured channel."""

    def write(self, data: bytes) -> None:
        """Send all of data or raise TransportError."""
        ...

    def readinto(self, buffer: Union[bytearray, memoryview]) -> int:
        """Read at least one byte into buffer; 0 means clean closure."""
        ...

    def close(self) -> None:
        ...


_tls_context: Optional[ssl.SSLContext] = None
_tls_lock = threading.Lock()


def default_tls_context() -> ssl.SSLContext:
    """
    Return the shared verifying TLS context, creating it on first use.

    Thread-safe; the context is built at most once per process and never
    torn down.
    """
    global _tls_context

    if _tls_context is None:
        with _tls_lock:
            if _tls_context is None:
                _tls_context = ssl.create_default_context()
                logger.debug("Initialized default TLS context")
    return _tls_context


def _unverified_tls_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


class SocketTransport:
    """
    Plain TCP transport over a connected socket.

    Timeouts are a property of the socket (settimeout); a timeout during
    read or write becomes a TransportError like any other I/O failure.
    """

    def __init__(self, sock: socket.socket):
        self.socket = sock

    def write(self, data: bytes) -> None:
        try:
            # sendall() blocks until everything is out or the socket fails
            self.socket.sendall(data)
        except OSError as e:
            raise TransportError(f"Write failed: {e}") from e

    def readinto(self, buffer: Union[bytearray, memoryview]) -> int:
        try:
            return self.socket.recv_into(buffer)
        except OSError as e:
            raise TransportError(f"Read failed: {e}") from e

    def close(self) -> None:
        try:
            self.socket.close()
        except OSError:
            pass  # Already gone


class TLSTransport(SocketTransport):
    """
    TLS transport: wraps a connected TCP socket and performs the handshake.

    The hostname is used for SNI and, when verifying, for certificate
    hostname matching.
    """

    def __init__(
        self,
        sock: socket.socket,
        hostname: str,
        context: Optional[ssl.SSLContext] = None,
    ):
        context = context or default_tls_context()
        try:
            wrapped = context.wrap_socket(sock, server_hostname=hostname)
        except (ssl.SSLError, OSError) as e:
            sock.close()
            raise TransportError(f"TLS handshake with '{hostname}' failed: {e}") from e
        super().__init__(wrapped)
        self.hostname = hostname


def open_transport(
    host: str,
    port: Optional[int] = None,
    use_tls: bool = False,
    timeout: Optional[float] = None,
    verify: bool = True,
) -> SocketTransport:
    """
    Connect to host:port and return a ready transport.

    Args:
        host: Host name or IP address.
        port: TCP port. Defaults to 443 with TLS, 80 without.
        use_tls: Wrap the socket in TLS.
        timeout: Socket timeout in seconds (None = block forever).
        verify: Check the peer certificate and host name (TLS only).

    Raises:
        TransportError: If the connection or TLS handshake fails.
    """
    if port is None:
        port = HTTPS_PORT if use_tls else HTTP_PORT

    try:
        sock = socket.create_connection((host, port), timeout=timeout)
    except OSError as e:
        raise TransportError(f"Can not connect to '{host}:{port}': {e}") from e

    if use_tls:
        context = default_tls_context() if verify else _unverified_tls_context()
        transport = TLSTransport(sock, host, context)
    else:
        transport = SocketTransport(sock)

    logger.debug(f"Connected to {host}:{port}{' via TLS' if use_tls else ''}")
    return transport
