"""
=============================================================================
CONNECTION
=============================================================================

A Connection is a transport plus the identity of the host on the other
end. The protocol engine borrows it for one request/response exchange; the
caller owns it and closes it.

=============================================================================
WHAT THE HOST IS FOR
=============================================================================

HTTP/1.1 requires a Host header on every request (RFC 7230 §5.4). Many
sites share one IP address (virtual hosting), and the Host header is how
the server picks the right one:

    GET / HTTP/1.1\r\n
    Host: example.com\r\n         ◄── from Connection.host_header
    \r\n

The port is only added when it is not the default for the scheme:

    example.com:80   (plain)  → "example.com"
    example.com:8080 (plain)  → "example.com:8080"
    example.com:443  (TLS)    → "example.com"

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    Connection.open() ──► OPEN ──(request, request, ...)──► close() ──► CLOSED

No connection reuse or pooling is done here: after a response is read the
caller decides whether to send another request or close.

=============================================================================
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..config import ClientConfig
from .transport import HTTP_PORT, HTTPS_PORT, Transport, open_transport


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states."""
    OPEN = "open"        # Transport connected, requests may be sent
    CLOSED = "closed"    # Transport released


@dataclass
class Connection:
    """
    A transport bound to a host.

    Attributes:
        transport: The byte channel (plain socket, TLS, or a test double).
        host: Host name used for the Host request header.
        port: Remote port, used for the Host header and logging.
        use_tls: Whether the transport is secured.
        id: Short connection identifier for log lines.
        state: Current connection state.
        requests_sent: Number of requests written on this connection.
    """

    transport: Transport
    host: str
    port: Optional[int] = None
    use_tls: bool = False

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.OPEN
    requests_sent: int = 0

    @classmethod
    def open(
        cls,
        host: str,
        port: Optional[int] = None,
        use_tls: bool = False,
        config: Optional[ClientConfig] = None,
    ) -> "Connection":
        """
        Connect to a host and wrap the transport.

        Raises:
            TransportError: If the TCP connect or TLS handshake fails.
        """
        config = config or ClientConfig()
        transport = open_transport(
            host,
            port,
            use_tls=use_tls,
            timeout=config.timeout,
            verify=config.verify_tls,
        )
        conn = cls(transport=transport, host=host, port=port, use_tls=use_tls)
        logger.debug(f"[{conn.id}] Opened connection to {conn.host_header}")
        return conn

    @property
    def host_header(self) -> str:
        """Value for the Host request header."""
        default_port = HTTPS_PORT if self.use_tls else HTTP_PORT
        if self.port is None or self.port == default_port:
            return self.host
        return f"{self.host}:{self.port}"

    @property
    def is_open(self) -> bool:
        return self.state == ConnectionState.OPEN

    def close(self) -> None:
        """Release the transport. Safe to call more than once."""
        if self.state == ConnectionState.CLOSED:
            return

        self.transport.close()
        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.requests_sent} requests")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
