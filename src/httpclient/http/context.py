"""
=============================================================================
REQUEST CONTEXT
=============================================================================

One RequestContext carries all mutable state for a single request/response
exchange over one Connection.

=============================================================================
LIFECYCLE
=============================================================================

    send_request()
         │   request line + headers + body streamed out
         ▼
    ┌──────────┐  next_header() ...  ┌──────────┐ next_body_chunk() ...
    │ HEADERS  │ ──────────────────► │   BODY   │ ─────────────────────┐
    └────┬─────┘   (None = no more)  └────┬─────┘                      │
         │                                │                            ▼
         │        any HTTPClientError     │                      ┌──────────┐
         └───────────────┬────────────────┘                      │   DONE   │
                         ▼                                       └──────────┘
                    ┌──────────┐
                    │  ERROR   │   terminal: every later pull returns None
                    └──────────┘

A context is never reused. Send a new request to get a new one.

=============================================================================
USAGE
=============================================================================

    with Connection.open("example.com") as conn:
        ctx = send_request(conn, "GET", "/")

        print(ctx.read_status())            # 200
        for header in ctx.iter_headers():
            print(header.name, header.text)

        for chunk in ctx.iter_body():
            sys.stdout.buffer.write(chunk)  # chunk is only valid until
                                            # the next pull

=============================================================================
"""

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, Optional, Union

from ..config import ClientConfig
from ..errors import HTTPClientError, SendError, TransportError
from . import body as _body
from . import response as _response
from .formatter import HeaderSpec, send_request_head
from .headers import Header
from .response import BodyFraming, PairRole, ParseState

if TYPE_CHECKING:
    from ..core.connection import Connection


logger = logging.getLogger(__name__)

# RFC 7230 token characters for the method; the route just can't break
# the request line.
METHOD_PATTERN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
ROUTE_PATTERN = re.compile(r"[^\s]+")


@dataclass
class RequestContext:
    """
    State for one request/response exchange.

    =========================================================================
    BUFFERS (allocated once, never resized)
    =========================================================================

        buffer   read buffer; unconsumed bytes are buffer[pos:pos + size]
        key      scratch for one header name (or chunk-size line)
        value    scratch for one header value

    =========================================================================
    PARSER STATE
    =========================================================================

        state           line-boundary state, or DONE / ERROR
        pair            KEY / VALUE / NONE
        framing         NONE / CONTENT_LENGTH / CHUNKED
        content_length  declared body size (chunked: bytes decoded so far)
        content_read    body bytes delivered (chunked: left in this chunk)
        status_code     parsed status, 0 until the status line is seen
        status_line     the status line as received, without CRLF

    =========================================================================
    """

    connection: "Connection"
    method: str
    route: str
    config: ClientConfig = field(default_factory=ClientConfig)

    buffer: bytearray = field(init=False, repr=False)
    pos: int = field(default=0, init=False, repr=False)
    size: int = field(default=0, init=False, repr=False)

    key: bytearray = field(init=False, repr=False)
    key_len: int = field(default=0, init=False, repr=False)
    value: bytearray = field(init=False, repr=False)
    value_len: int = field(default=0, init=False, repr=False)

    state: ParseState = field(default=ParseState.IDLE, init=False)
    pair: PairRole = field(default=PairRole.KEY, init=False, repr=False)
    chunk_state: ParseState = field(default=ParseState.IDLE, init=False, repr=False)
    chunk_crlf_pending: bool = field(default=False, init=False, repr=False)

    framing: BodyFraming = field(default=BodyFraming.NONE, init=False)
    content_length: int = field(default=0, init=False)
    content_read: int = field(default=0, init=False)
    status_code: int = field(default=0, init=False)
    status_line: bytes = field(default=b"", init=False, repr=False)

    def __post_init__(self):
        self.buffer = bytearray(self.config.buffer_size)
        self.key = bytearray(self.config.entry_size)
        self.value = bytearray(self.config.entry_size)
        self.buffer_view = memoryview(self.buffer)
        self.key_view = memoryview(self.key)
        self.value_view = memoryview(self.value)

    # =========================================================================
    # SENDING
    # =========================================================================

    @classmethod
    def send(
        cls,
        connection: "Connection",
        method: str,
        route: str,
        headers: HeaderSpec = None,
        body: Optional[Union[bytes, str]] = None,
        config: Optional[ClientConfig] = None,
    ) -> "RequestContext":
        """
        Write a request to the connection and return its context.

        Args:
            connection: An open Connection (borrowed, not closed).
            method: Request method, e.g. "GET".
            route: Request target, e.g. "/search?q=x".
            headers: Extra headers as raw text, a mapping, or pairs.
            body: Optional request body (str is sent as UTF-8); adds
                  Content-Length when non-empty.
            config: Buffer sizes; defaults to ClientConfig().

        Raises:
            ValueError: Invalid method/route/header or configuration.
            SendError: The transport failed while writing.
        """
        config = config or ClientConfig()
        config.validate()

        if not METHOD_PATTERN.fullmatch(method):
            raise ValueError(f"Invalid method: {method!r}")
        if not ROUTE_PATTERN.fullmatch(route):
            raise ValueError(f"Invalid route: {route!r}")
        if not connection.is_open:
            raise TransportError(f"[{connection.id}] Connection is closed")

        ctx = cls(connection=connection, method=method, route=route, config=config)

        try:
            send_request_head(
                connection.transport.write,
                ctx.buffer,
                method,
                route,
                connection.host_header,
                headers,
                body or b"",
            )
        except SendError as e:
            ctx._fail(e)
            raise

        connection.requests_sent += 1
        return ctx

    # =========================================================================
    # BUFFER MANAGEMENT
    # =========================================================================

    def fill(self) -> int:
        """
        Refill the read buffer from the transport.

        Only called once every buffered byte has been consumed. Returns the
        number of bytes read; 0 means the peer closed the connection.
        """
        try:
            n = self.connection.transport.readinto(self.buffer)
        except OSError as e:
            raise TransportError(f"Read failed: {e}") from e

        self.pos = 0
        self.size = n
        return n

    def take(self, n: int) -> memoryview:
        """Consume n buffered bytes and return them as a view."""
        chunk = self.buffer_view[self.pos:self.pos + n]
        self.pos += n
        self.size -= n
        return chunk

    def _fail(self, error: Exception) -> None:
        self.state = ParseState.ERROR
        logger.warning(f"[{self.connection.id}] {self.method} {self.route} failed: {error}")

    # =========================================================================
    # PULL API
    # =========================================================================

    def read_status(self) -> int:
        """
        Return the response status code, reading the status line if needed.
        """
        try:
            return _response.read_status(self)
        except HTTPClientError as e:
            self._fail(e)
            raise

    def next_header(self) -> Optional[Header]:
        """
        Pull the next header, or None when the header block is over.

        The returned Header is a view; copy it before pulling again.
        """
        try:
            return _response.next_header(self)
        except HTTPClientError as e:
            self._fail(e)
            raise

    def next_body_chunk(self) -> Optional[memoryview]:
        """
        Pull the next body slice, or None when the body is complete.

        The returned memoryview is only valid until the next pull.
        """
        try:
            return _body.next_body_chunk(self)
        except HTTPClientError as e:
            self._fail(e)
            raise

    def iter_headers(self) -> Iterator[Header]:
        while True:
            header = self.next_header()
            if header is None:
                return
            yield header

    def iter_body(self) -> Iterator[memoryview]:
        while True:
            chunk = self.next_body_chunk()
            if chunk is None:
                return
            yield chunk

    def headers(self) -> list[tuple[str, str]]:
        """Pull all remaining headers as owned (name, value) strings."""
        return [(header.name, header.text) for header in self.iter_headers()]

    def read_body(self) -> bytes:
        """Pull the rest of the body into one owned bytes object."""
        data = bytearray()
        for chunk in self.iter_body():
            data += chunk
        return bytes(data)

    @property
    def done(self) -> bool:
        return self.state == ParseState.DONE

    @property
    def failed(self) -> bool:
        return self.state == ParseState.ERROR


def send_request(
    connection: "Connection",
    method: str,
    route: str,
    headers: HeaderSpec = None,
    body: Optional[Union[bytes, str]] = None,
    config: Optional[ClientConfig] = None,
) -> RequestContext:
    """
    Send a request and return the context to read the response from.

    Convenience wrapper around RequestContext.send().
    """
    return RequestContext.send(connection, method, route, headers, body, config)
