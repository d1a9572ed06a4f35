"""
=============================================================================
HTTP CLIENT ERRORS
=============================================================================

Every failure the client can report is an HTTPClientError. The three
branches tell the caller WHAT went wrong, not just THAT it went wrong:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ERROR TAXONOMY                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTPClientError                                                   │
    │   ├── TransportError          socket/TLS failure, timeout           │
    │   │   ├── SendError           request could not be written          │
    │   │   └── ConnectionClosedError  peer hung up mid-message           │
    │   ├── ProtocolError           peer broke HTTP/1.1 framing rules     │
    │   └── BufferExhaustedError    a header or chunk line outgrew the    │
    │                               fixed scratch buffers                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

None of these are retried internally. Once one is raised the request
context is in its terminal ERROR state and must be thrown away.

=============================================================================
"""


class HTTPClientError(Exception):
    """Base class for all client errors."""


class TransportError(HTTPClientError):
    """
    The byte transport failed.

    Raised for connect failures, read/write errors and socket timeouts.
    The original OSError (if any) is chained as __cause__.
    """


class SendError(TransportError):
    """Writing the request to the transport failed part way."""


class ConnectionClosedError(TransportError):
    """The peer closed the connection before the response was complete."""


class ProtocolError(HTTPClientError):
    """
    The response violates HTTP/1.1 framing.

    Examples:
        - status line without the "HTTP" prefix or a 3-digit code
        - both Content-Length and chunked transfer declared
        - a malformed chunk-size line
        - more body bytes than Content-Length declared
    """


class BufferExhaustedError(HTTPClientError):
    """
    A fixed-capacity scratch buffer would have to grow.

    Header keys, header values and chunk-size lines are assembled in
    buffers whose size is set by ClientConfig. Oversized input is rejected,
    never truncated.
    """

    def __init__(self, message: str, capacity: int):
        super().__init__(message)
        self.capacity = capacity
