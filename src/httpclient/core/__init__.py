"""
=============================================================================
CORE NETWORKING COMPONENTS
=============================================================================

The layer below the HTTP engine: getting bytes to and from the server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ TRANSPORT (transport.py)                                            │
    │   Transport protocol: write / readinto / close                      │
    │   SocketTransport - plain TCP                                       │
    │   TLSTransport    - TLS with SNI, shared lazily-built context       │
    │   open_transport  - connect and pick one of the above               │
    ├─────────────────────────────────────────────────────────────────────┤
    │ CONNECTION (connection.py)                                          │
    │   Connection - transport + host identity for the Host header        │
    └─────────────────────────────────────────────────────────────────────┘

The HTTP engine only ever sees the Transport protocol, so tests can swap
in an in-memory transport without touching a socket.

=============================================================================
"""

from .transport import (
    Transport,
    SocketTransport,
    TLSTransport,
    open_transport,
    default_tls_context,
)
from .connection import Connection, ConnectionState

__all__ = [
    "Transport",            # What the HTTP engine reads from / writes to
    "SocketTransport",      # Plain TCP
    "TLSTransport",         # TLS over TCP
    "open_transport",       # Connect + choose transport
    "default_tls_context",  # Shared verifying TLS context
    "Connection",           # Transport bound to a host
    "ConnectionState",      # OPEN / CLOSED
]
