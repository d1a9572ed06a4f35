"""
=============================================================================
REQUEST FORMATTER
=============================================================================

Streams an HTTP request to the transport through a small fixed-size
scratch buffer. Memory use does not depend on how big the request is: a
1 GB upload goes out through the same 8 KB buffer as a bare GET.

=============================================================================
HOW STREAMING WORKS
=============================================================================

    format: "%s %s HTTP/1.1\r\nHost: %s\r\n..."
               │
               ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  scratch buffer (capacity N)                                        │
    │  ┌──────────────────────────────────────┬──────────────────────┐   │
    │  │ GET /index.html HTTP/1.1\r\nHost: ex │      free            │   │
    │  └──────────────────────────────────────┴──────────────────────┘   │
    │                                                                      │
    │  append fragment ──► buffer full? ──yes──► write(buffer), reset     │
    │                                                                      │
    │  end of format   ──► anything left? ──yes──► write(remainder)       │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
FORMAT DIRECTIVES
=============================================================================

    %c      one character (str of length 1, or an int byte value)
    %s      a string (str is UTF-8 encoded) or bytes-like
    %d      a signed integer, rendered in decimal
    %.*s    two arguments: a length and a str/bytes; sends that many bytes
    %%      a literal percent sign

Anything else after a "%" is sent as-is.

=============================================================================
"""

import logging
from typing import Any, Callable, Iterable, Mapping, Union

from ..errors import SendError, TransportError


logger = logging.getLogger(__name__)

WriteFunc = Callable[[bytes], Any]
HeaderSpec = Union[str, bytes, Mapping[str, str], Iterable[tuple[str, str]], None]


def _to_bytes(value: Any) -> memoryview:
    # Zero-copy for bytes-like input
    if isinstance(value, str):
        value = value.encode("utf-8")
    return memoryview(value).cast("B")


class _BufferedSender:
    """
    Append-and-flush writer over a caller-owned scratch buffer.

    The buffer is never resized; when it fills up its contents are handed
    to write() and filling starts again from offset 0.
    """

    def __init__(self, write: WriteFunc, buffer: bytearray):
        if not buffer:
            raise ValueError("Scratch buffer must have a non-zero capacity")
        self._write = write
        self._buffer = buffer
        self._view = memoryview(buffer)
        self._used = 0
        self.sent = 0

    def send(self, data: Union[bytes, memoryview]) -> None:
        capacity = len(self._buffer)
        offset = 0
        while offset < len(data):
            n = min(capacity - self._used, len(data) - offset)
            self._view[self._used:self._used + n] = data[offset:offset + n]
            self._used += n
            offset += n
            if self._used == capacity:
                self._flush()

    def finish(self) -> None:
        if self._used:
            self._flush()
        self._view.release()

    def _flush(self) -> None:
        chunk = bytes(self._view[:self._used])
        try:
            self._write(chunk)
        except (TransportError, OSError) as e:
            self._view.release()
            raise SendError(f"Failed to send request: {e}") from e
        self.sent += self._used
        self._used = 0


def sendf(write: WriteFunc, buffer: bytearray, fmt: str, *args: Any) -> int:
    """
    Format a message and stream it through write().

    Args:
        write: Callable that sends all given bytes or raises.
        buffer: Scratch buffer; its length is the flush threshold.
        fmt: Format string (see module docstring for directives).
        *args: Values consumed by the directives, in order.

    Returns:
        Total number of bytes written.

    Raises:
        SendError: If write() fails. Nothing is retried.
        ValueError: If fmt needs more arguments than were given.

    Example:
        sendf(transport.write, bytearray(64), "%s %s HTTP/1.1\\r\\n", "GET", "/")
    """
    sender = _BufferedSender(write, buffer)
    arguments = iter(args)

    def next_arg() -> Any:
        try:
            return next(arguments)
        except StopIteration:
            raise ValueError(f"Not enough arguments for format {fmt!r}") from None

    last = 0
    i = 0
    while i < len(fmt):
        if fmt[i] != "%" or i + 1 >= len(fmt):
            i += 1
            continue

        directive = fmt[i + 1]
        if directive in ("c", "s", "d", "%"):
            width = 2
        elif fmt.startswith(".*s", i + 1):
            width = 4
        else:
            # Unknown directive: leave it in the literal text
            i += 1
            continue

        sender.send(fmt[last:i].encode("utf-8"))

        if directive == "c":
            char = next_arg()
            sender.send(bytes([char]) if isinstance(char, int) else _to_bytes(char)[:1])
        elif directive == "s":
            sender.send(_to_bytes(next_arg()))
        elif directive == "d":
            sender.send(b"%d" % int(next_arg()))
        elif directive == "%":
            sender.send(b"%")
        else:
            length = int(next_arg())
            sender.send(_to_bytes(next_arg())[:length])

        i += width
        last = i

    sender.send(fmt[last:].encode("utf-8"))
    sender.finish()
    return sender.sent


def format_header_lines(headers: HeaderSpec) -> bytes:
    """
    Render extra request headers as CRLF-terminated lines.

    Accepts raw header text (passed through, with a trailing CRLF added if
    missing), a mapping, or an iterable of (name, value) pairs. Names and
    values given as pairs may not contain CR or LF.

    Example:
        format_header_lines({"Accept": "*/*"})  # b"Accept: */*\\r\\n"
    """
    if headers is None:
        return b""

    if isinstance(headers, (str, bytes)):
        raw = headers.encode("utf-8") if isinstance(headers, str) else headers
        if raw and not raw.endswith(b"\r\n"):
            raw += b"\r\n"
        return raw

    pairs = headers.items() if isinstance(headers, Mapping) else headers
    lines = []
    for name, value in pairs:
        name, value = str(name), str(value)
        if any(c in name or c in value for c in "\r\n"):
            raise ValueError(f"Header {name!r} contains a line break")
        if not name or ":" in name:
            raise ValueError(f"Invalid header name: {name!r}")
        lines.append(f"{name}: {value}\r\n")
    return "".join(lines).encode("utf-8")


def send_request_head(
    write: WriteFunc,
    buffer: bytearray,
    method: str,
    route: str,
    host: str,
    headers: HeaderSpec = None,
    body: Union[bytes, str] = b"",
) -> int:
    """
    Stream a complete request: request line, Host, extra headers, body.

    Content-Length is only sent when the body is non-empty. A str body is
    sent as UTF-8.

    Returns:
        Total number of bytes written.
    """
    extra = format_header_lines(headers)
    if isinstance(body, str):
        # Content-Length counts bytes, not characters
        body = body.encode("utf-8")

    if body:
        sent = sendf(
            write, buffer,
            "%s %s HTTP/1.1\r\n"
            "Host: %s\r\n"
            "%s"
            "Content-Length: %d\r\n"
            "\r\n"
            "%.*s",
            method, route, host, extra, len(body), len(body), body,
        )
    else:
        sent = sendf(
            write, buffer,
            "%s %s HTTP/1.1\r\n"
            "Host: %s\r\n"
            "%s"
            "\r\n",
            method, route, host, extra,
        )

    logger.debug(f"Sent {method} {route} to {host} ({sent} bytes)")
    return sent
