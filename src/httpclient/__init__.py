"""
=============================================================================
HTTPCLIENT - Bounded-Memory HTTP/1.1 Client Built From Scratch
=============================================================================

This package implements an HTTP/1.1 client on raw sockets whose memory
use per request is fixed up front, no matter how big the response is.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    HTTPCLIENT ARCHITECTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. REQUEST FORMATTING                                             │
    │      - printf-style sendf() streaming through a scratch buffer      │
    │      - Host and Content-Length handled for you                      │
    │                                                                      │
    │   2. INCREMENTAL RESPONSE PARSING                                   │
    │      - Byte-driven state machine for status line and headers        │
    │      - Survives any split of the stream across socket reads         │
    │      - Headers pulled one at a time, never collected               │
    │                                                                      │
    │   3. BODY DECODING                                                  │
    │      - Content-Length and chunked transfer encoding                 │
    │      - Body pulled as slices of the read buffer (zero copy)         │
    │                                                                      │
    │   4. SWAPPABLE TRANSPORTS                                           │
    │      - Plain TCP or TLS, picked when the connection opens           │
    │      - Anything with write/readinto/close works (tests, proxies)    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    httpclient/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m httpclient)
    ├── config.py            # ClientConfig dataclass
    ├── errors.py            # Exception hierarchy
    ├── core/                # Getting bytes in and out
    │   ├── transport.py     # Transport protocol, TCP and TLS transports
    │   └── connection.py    # Connection (transport + host)
    └── http/                # HTTP protocol engine
        ├── formatter.py     # Request formatting (sendf)
        ├── response.py      # Status line / header state machine
        ├── body.py          # Content-Length and chunked body decoding
        ├── context.py       # RequestContext, send_request()
        ├── headers.py       # Case-insensitive compare, strict integers
        └── request.py       # Parse raw requests back (inspection)

=============================================================================
QUICK START
=============================================================================

    from httpclient import Connection, send_request

    with Connection.open("example.com", use_tls=True) as conn:
        ctx = send_request(conn, "GET", "/", headers={"Accept": "*/*"})

        print(ctx.read_status())
        for name, value in ctx.headers():
            print(f"{name}: {value}")

        body = ctx.read_body()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ClientConfig
from .errors import (
    HTTPClientError,
    TransportError,
    SendError,
    ConnectionClosedError,
    ProtocolError,
    BufferExhaustedError,
)
from .core import Connection
from .http import RequestContext, send_request

__all__ = [
    "ClientConfig",
    "Connection",
    "RequestContext",
    "send_request",
    "HTTPClientError",
    "TransportError",
    "SendError",
    "ConnectionClosedError",
    "ProtocolError",
    "BufferExhaustedError",
    "__version__",
]
