"""
=============================================================================
BODY DECODER
=============================================================================

Turns the bytes after the header block into a pull-sequence of body
slices. Which algorithm runs was decided by the header parser:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       BODY FRAMING MODES                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  CONTENT_LENGTH   Content-Length: 5                                  │
    │                   hello                                              │
    │                   └─ exactly 5 bytes, then done                      │
    │                                                                      │
    │  CHUNKED          Transfer-Encoding: chunked                         │
    │                   4\r\nWiki\r\n5\r\npedia\r\n0\r\n\r\n               │
    │                   └─ size line, data, CRLF ... until a 0 size        │
    │                                                                      │
    │  NONE             no framing header                                  │
    │                   └─ everything until the server closes              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Some responses never have a body whatever their headers say (RFC 7230
§3.3.3): responses to HEAD, 1xx, 204 No Content and 304 Not Modified.
Of the 1xx codes only 101 Switching Protocols ever reaches the body
decoder; the header parser skips the others.

=============================================================================
CHUNKED DECODING
=============================================================================

    chunk       = chunk-size [ ";" extension ] CRLF
                  chunk-data CRLF
    last-chunk  = "0" CRLF

    ┌──────────────┐  size > 0   ┌──────────────┐  chunk used up
    │  SIZE LINE   │ ──────────► │  CHUNK DATA  │ ──────────────┐
    │ (hex digits) │             │ (stream out) │               │
    └──────┬───────┘             └──────────────┘               │
           │  ▲                                                 │
           │  └──── consume the CRLF after the data ◄───────────┘
           │ size == 0
           ▼
         DONE

The size line is collected in the key scratch buffer, so it too survives
being split across reads. Any malformed size line is fatal: an empty line
where a size is due, a stray byte after the chunk data, or non-hex digits.

=============================================================================
"""

import logging
from typing import TYPE_CHECKING, Optional

from ..errors import BufferExhaustedError, ConnectionClosedError, ProtocolError
from .headers import parse_hex_u64
from .response import CR, LF, BodyFraming, ParseState, next_header

if TYPE_CHECKING:
    from .context import RequestContext


logger = logging.getLogger(__name__)

# Status codes that never carry a body
_NO_BODY_STATUS = {204, 304}


def _has_no_body(ctx: "RequestContext") -> bool:
    return (
        ctx.method == "HEAD"
        or 100 <= ctx.status_code < 200
        or ctx.status_code in _NO_BODY_STATUS
    )


def _mark_done(ctx: "RequestContext") -> None:
    ctx.state = ParseState.DONE
    logger.debug(f"[{ctx.connection.id}] Body done ({ctx.content_length} bytes)")


def _read_content_length(ctx: "RequestContext") -> Optional[memoryview]:
    remaining = ctx.content_length - ctx.content_read
    if remaining == 0:
        _mark_done(ctx)
        return None

    if ctx.size == 0 and ctx.fill() == 0:
        raise ConnectionClosedError(
            f"Connection closed after {ctx.content_read} of "
            f"{ctx.content_length} body bytes"
        )

    if ctx.size > remaining:
        raise ProtocolError(
            f"Server sent more than the declared Content-Length "
            f"({ctx.content_read + ctx.size} > {ctx.content_length})"
        )

    chunk = ctx.take(ctx.size)
    ctx.content_read += len(chunk)
    if ctx.content_read == ctx.content_length:
        _mark_done(ctx)
    return chunk


def _read_chunk_size(ctx: "RequestContext") -> int:
    """Consume one chunk-size line (and any pending data CRLF before it)."""
    while True:
        if ctx.size == 0 and ctx.fill() == 0:
            raise ConnectionClosedError("Connection closed inside a chunk-size line")

        c = ctx.buffer[ctx.pos]
        ctx.pos += 1
        ctx.size -= 1

        if c == CR:
            if ctx.chunk_state == ParseState.R:
                raise ProtocolError("Unexpected CR in chunk-size line")
            ctx.chunk_state = ParseState.R
            continue

        if c == LF:
            if ctx.chunk_state != ParseState.R:
                raise ProtocolError("Chunk-size line not terminated by CRLF")
            ctx.chunk_state = ParseState.IDLE

            if ctx.key_len == 0:
                # The CRLF closing the previous chunk's data
                if not ctx.chunk_crlf_pending:
                    raise ProtocolError("Empty chunk-size line")
                ctx.chunk_crlf_pending = False
                continue

            line = bytes(ctx.key[:ctx.key_len])
            ctx.key_len = 0

            size_field = line.split(b";", 1)[0].strip(b" \t")
            try:
                return parse_hex_u64(size_field)
            except ValueError:
                raise ProtocolError(f"Malformed chunk size: {line!r}") from None

        if ctx.chunk_state == ParseState.R:
            raise ProtocolError("CR not followed by LF in chunk-size line")
        if ctx.chunk_crlf_pending:
            raise ProtocolError("Missing CRLF after chunk data")

        if ctx.key_len >= len(ctx.key):
            raise BufferExhaustedError(
                f"Chunk-size line longer than {len(ctx.key)} bytes",
                capacity=len(ctx.key),
            )
        ctx.key[ctx.key_len] = c
        ctx.key_len += 1


def _read_chunked(ctx: "RequestContext") -> Optional[memoryview]:
    if ctx.content_read == 0:
        size = _read_chunk_size(ctx)
        if size == 0:
            _mark_done(ctx)
            return None
        ctx.content_read = size

    if ctx.size == 0 and ctx.fill() == 0:
        raise ConnectionClosedError(
            f"Connection closed with {ctx.content_read} bytes of the chunk missing"
        )

    chunk = ctx.take(min(ctx.size, ctx.content_read))
    ctx.content_read -= len(chunk)
    ctx.content_length += len(chunk)
    if ctx.content_read == 0:
        ctx.chunk_crlf_pending = True
    return chunk


def _read_until_close(ctx: "RequestContext") -> Optional[memoryview]:
    if ctx.size == 0 and ctx.fill() == 0:
        _mark_done(ctx)
        return None

    chunk = ctx.take(ctx.size)
    ctx.content_length += len(chunk)
    return chunk


def next_body_chunk(ctx: "RequestContext") -> Optional[memoryview]:
    """
    Pull the next slice of the response body.

    Any headers not yet pulled are parsed (and discarded) first.

    Returns:
        A memoryview into the read buffer, valid until the next pull, or
        None once the body is complete.

    Raises:
        ProtocolError: Too many bytes for Content-Length, bad chunk framing.
        BufferExhaustedError: A chunk-size line outgrew the key scratch.
        TransportError: The read failed or the peer closed early.
    """
    if ctx.state not in (ParseState.BODY, ParseState.DONE, ParseState.ERROR):
        while next_header(ctx) is not None:
            pass

    if ctx.state in (ParseState.DONE, ParseState.ERROR):
        return None

    if _has_no_body(ctx):
        _mark_done(ctx)
        return None

    if ctx.framing == BodyFraming.CONTENT_LENGTH:
        return _read_content_length(ctx)
    if ctx.framing == BodyFraming.CHUNKED:
        return _read_chunked(ctx)
    return _read_until_close(ctx)
