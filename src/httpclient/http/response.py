"""
=============================================================================
RESPONSE HEADER PARSER
=============================================================================

An incremental, byte-at-a-time parser for the status line and headers of
an HTTP/1.1 response. It never needs the whole header block in memory:
bytes are consumed straight out of the read buffer, and each header is
assembled in fixed-size key/value scratch buffers.

=============================================================================
WHY BYTE AT A TIME?
=============================================================================

TCP is a byte stream. A header can be split across reads anywhere:

    read 1:  "HTTP/1.1 200 OK\r\nX-Fo"
    read 2:  "o: bar\r\n\r\n"

A parser that works on whole lines would have to buffer "X-Fo" somewhere
and glue it to the next read. Here the partial key simply stays in the key
scratch buffer, and parsing resumes with the next byte after a refill.

=============================================================================
TWO STATE AXES
=============================================================================

1. LINE BOUNDARY (ParseState) - where are we relative to CRLFs?

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │          '\r'          '\n'          '\r'          '\n'              │
    │   IDLE ───────►  R  ───────►  RN ───────►  RNR ───────►  BODY        │
    │    ▲             │             │             │                       │
    │    └─────────────┴─────────────┴─────────────┘                       │
    │              any other byte (or out-of-order CR/LF)                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

   "\r\n\r\n" (end of a line followed by an empty line) reaches BODY.

2. PAIR ROLE (PairRole) - what is the current byte part of?

    KEY ──':'──► VALUE ──'\r'──► NONE ──(next line starts)──► KEY

   The first line is special: it is the status line, and its '\r' checks
   for "HTTP/x.y NNN" instead of producing a header.

        H T T P / 1 . 1 ␠ 2 0 0 ␠ O K
        0 1 2 3 4 5 6 7 8 9 ...
                          └─┬─┘
                      status code at offset 9

=============================================================================
BODY FRAMING
=============================================================================

While headers go past, two of them decide how the body will be read:

    Content-Length: N              → BodyFraming.CONTENT_LENGTH
    Transfer-Encoding: chunked     → BodyFraming.CHUNKED

Seeing both (or either one twice) is a request smuggling red flag and is
rejected as a ProtocolError.

=============================================================================
INTERIM RESPONSES
=============================================================================

A server may send any number of 1xx heads before the real one:

    HTTP/1.1 100 Continue\r\n
    \r\n
    HTTP/1.1 200 OK\r\n             ← the response the caller sees
    Content-Length: 5\r\n
    \r\n
    hello

Interim heads are parsed and thrown away; their headers are never handed
out. 101 Switching Protocols is final: the connection stops being HTTP.

=============================================================================
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..errors import BufferExhaustedError, ConnectionClosedError, ProtocolError
from .headers import Header, header_eq, parse_u64

if TYPE_CHECKING:
    from .context import RequestContext


logger = logging.getLogger(__name__)

CR = 0x0D
LF = 0x0A
COLON = 0x3A
SP = 0x20
HT = 0x09

HTTP_PREFIX = b"HTTP"
STATUS_OFFSET = len(b"HTTP/1.1 ")
SWITCHING_PROTOCOLS = 101


class ParseState(Enum):
    """Line-boundary states, plus the two terminal states."""
    IDLE = "idle"      # Inside a line
    R = "r"            # Saw '\r'
    RN = "rn"          # Saw '\r\n' - a line just ended
    RNR = "rnr"        # Saw '\r\n\r' - an empty line is ending
    BODY = "body"      # Headers done, body decoding may start
    DONE = "done"      # Body fully decoded
    ERROR = "error"    # Failed; the context must be discarded


class PairRole(Enum):
    """Which half of a "Key: Value" line the parser is filling."""
    NONE = "none"      # Between lines
    KEY = "key"
    VALUE = "value"


class BodyFraming(Enum):
    """How the end of the body is found."""
    NONE = "none"                      # Until the peer closes
    CONTENT_LENGTH = "content-length"  # Exactly N bytes
    CHUNKED = "chunked"                # Hex-size prefixed chunks


def is_interim(code: int) -> bool:
    """True for 1xx statuses that are followed by another response head."""
    return 100 <= code < 200 and code != SWITCHING_PROTOCOLS


def _advance_line_state(state: ParseState, c: int) -> ParseState:
    if c == CR:
        if state == ParseState.IDLE:
            return ParseState.R
        if state == ParseState.RN:
            return ParseState.RNR
        return ParseState.IDLE
    if c == LF:
        if state == ParseState.R:
            return ParseState.RN
        if state == ParseState.RNR:
            return ParseState.BODY
        return ParseState.IDLE
    return ParseState.IDLE


def _append(buffer: bytearray, length: int, c: int, what: str) -> int:
    if length >= len(buffer):
        raise BufferExhaustedError(
            f"Header {what} longer than {len(buffer)} bytes",
            capacity=len(buffer),
        )
    buffer[length] = c
    return length + 1


def _parse_status_line(ctx: "RequestContext") -> None:
    line = bytes(ctx.key[:ctx.key_len])

    if not line.startswith(HTTP_PREFIX):
        raise ProtocolError(f"Status line does not start with HTTP: {line!r}")

    if len(line) < STATUS_OFFSET + 3:
        raise ProtocolError(f"Status line has no status code: {line!r}")

    try:
        code = parse_u64(line[STATUS_OFFSET:STATUS_OFFSET + 3])
    except ValueError:
        raise ProtocolError(f"Invalid status code in: {line!r}") from None

    if code < 100:
        raise ProtocolError(f"Invalid status code: {code}")

    ctx.status_code = code
    ctx.status_line = line
    logger.debug(f"[{ctx.connection.id}] Status {code}")


def _classify(ctx: "RequestContext", key: memoryview, value: memoryview) -> None:
    """Pick the body framing from Content-Length / Transfer-Encoding."""
    if header_eq(key, b"content-length"):
        try:
            length = parse_u64(value)
        except ValueError:
            raise ProtocolError(f"Invalid Content-Length: {bytes(value)!r}") from None

        if ctx.framing != BodyFraming.NONE:
            raise ProtocolError("Body framing was already specified")

        ctx.framing = BodyFraming.CONTENT_LENGTH
        ctx.content_length = length
        ctx.content_read = 0

    elif header_eq(key, b"transfer-encoding") and header_eq(value, b"chunked"):
        if ctx.framing != BodyFraming.NONE:
            raise ProtocolError("Body framing was already specified")

        ctx.framing = BodyFraming.CHUNKED
        ctx.content_length = 0
        ctx.content_read = 0


def _end_header(ctx: "RequestContext") -> Header:
    # Drop trailing optional whitespace
    while ctx.value_len and ctx.value[ctx.value_len - 1] in (SP, HT):
        ctx.value_len -= 1

    header = Header(
        key=ctx.key_view[:ctx.key_len],
        value=ctx.value_view[:ctx.value_len],
    )
    if not is_interim(ctx.status_code):
        _classify(ctx, header.key, header.value)

    ctx.pair = PairRole.NONE
    ctx.key_len = 0
    ctx.value_len = 0
    return header


def _reset_for_next_head(ctx: "RequestContext") -> None:
    """Forget an interim response and start over at a new status line."""
    logger.debug(f"[{ctx.connection.id}] Skipping interim {ctx.status_code} response")

    ctx.status_code = 0
    ctx.status_line = b""
    ctx.framing = BodyFraming.NONE
    ctx.content_length = 0
    ctx.content_read = 0
    ctx.state = ParseState.IDLE
    ctx.pair = PairRole.KEY
    ctx.key_len = 0
    ctx.value_len = 0


def _step(ctx: "RequestContext", c: int) -> Optional[Header]:
    """Feed one byte. Returns a Header when one is complete."""
    before = ctx.state
    ctx.state = _advance_line_state(before, c)

    if before == ParseState.RN and ctx.state == ParseState.IDLE:
        # First byte of a new header line
        ctx.pair = PairRole.KEY
        ctx.key_len = 0
        ctx.value_len = 0

    if ctx.pair == PairRole.KEY:
        if c == COLON and ctx.status_code:
            ctx.pair = PairRole.VALUE
        elif c == CR:
            if ctx.status_code:
                raise ProtocolError(
                    f"Header line without ':': {bytes(ctx.key[:ctx.key_len])!r}"
                )
            _parse_status_line(ctx)
            ctx.pair = PairRole.NONE
            ctx.key_len = 0
        elif c == LF:
            raise ProtocolError("Bare LF in header line")
        else:
            ctx.key_len = _append(ctx.key, ctx.key_len, c, "name")

    elif ctx.pair == PairRole.VALUE:
        if c == CR:
            return _end_header(ctx)
        if c == LF:
            raise ProtocolError("Bare LF in header value")
        if ctx.value_len == 0 and c in (SP, HT):
            return None  # Leading whitespace after ':'
        ctx.value_len = _append(ctx.value, ctx.value_len, c, "value")

    else:
        # Between lines only the CRLF bytes are legal
        if c == CR or (c == LF and before in (ParseState.R, ParseState.RNR)):
            return None
        raise ProtocolError(f"Unexpected byte {bytes([c])!r} between header lines")

    return None


def _pump(ctx: "RequestContext", stop_at_status: bool = False) -> Optional[Header]:
    while True:
        if ctx.size == 0 and ctx.fill() == 0:
            raise ConnectionClosedError("Connection closed before end of headers")

        buffer = ctx.buffer
        while ctx.size > 0:
            c = buffer[ctx.pos]
            ctx.pos += 1
            ctx.size -= 1

            header = _step(ctx, c)
            interim = is_interim(ctx.status_code)
            if header is not None and not interim:
                return header

            if ctx.state == ParseState.BODY:
                if interim:
                    _reset_for_next_head(ctx)
                    continue
                logger.debug(
                    f"[{ctx.connection.id}] Headers done, framing={ctx.framing.value}"
                )
                return None

            if stop_at_status and ctx.status_code and not interim:
                return None


def next_header(ctx: "RequestContext") -> Optional[Header]:
    """
    Pull the next response header.

    Returns:
        The next Header, or None once the blank line ending the headers
        has been consumed (the body framing is then known).

    Raises:
        ProtocolError: Malformed status line or header, conflicting framing.
        BufferExhaustedError: A header name or value outgrew its scratch.
        TransportError: The read failed or the peer closed early.
    """
    if ctx.state in (ParseState.BODY, ParseState.DONE, ParseState.ERROR):
        return None
    return _pump(ctx)


def read_status(ctx: "RequestContext") -> int:
    """Parse just far enough to know the status code, and return it."""
    if not ctx.status_code and ctx.state not in (ParseState.DONE, ParseState.ERROR):
        _pump(ctx, stop_at_status=True)
    return ctx.status_code
