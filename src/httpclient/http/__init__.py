"""
=============================================================================
HTTP/1.1 CLIENT PROTOCOL ENGINE
=============================================================================

Everything that knows about HTTP lives here: writing requests, and
parsing responses incrementally out of a fixed-size read buffer.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Request / Response Flow                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   caller ──send_request()──► formatter.py ──write()──► Transport    │
    │                                                                      │
    │   Transport ──readinto()──► response.py ──► body.py ──► caller      │
    │                             (status line,   (Content-Length          │
    │                              headers)        or chunked)             │
    │                                                                      │
    │   context.py holds the buffers and state shared by all of these.    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
MODULE COMPONENTS
=============================================================================

    formatter.py   sendf() and request streaming through a scratch buffer
    response.py    status line + header state machine
    body.py        content-length / chunked / read-until-close decoding
    context.py     RequestContext, send_request()
    headers.py     header_eq(), parse_u64(), parse_hex_u64(), Header
    request.py     parse a raw request back into parts (inspection)

=============================================================================
"""

from .context import RequestContext, send_request
from .formatter import sendf, format_header_lines
from .headers import Header, header_eq, parse_u64, parse_hex_u64
from .response import BodyFraming, PairRole, ParseState
from .request import HTTPRequest, RequestParser, parse_request

__all__ = [
    # Request/response exchange
    "RequestContext",
    "send_request",

    # Formatting
    "sendf",
    "format_header_lines",

    # Header helpers
    "Header",
    "header_eq",
    "parse_u64",
    "parse_hex_u64",

    # Parser states
    "BodyFraming",
    "PairRole",
    "ParseState",

    # Request inspection
    "HTTPRequest",
    "RequestParser",
    "parse_request",
]
