"""
=============================================================================
HEADER LOOKUP HELPERS
=============================================================================

Small, strict helpers shared by the response parser and by callers that
inspect headers by name.

=============================================================================
CASE-INSENSITIVE COMPARISON
=============================================================================

Header names are case-insensitive (RFC 7230 §3.2), so all of these name the
same header:

    Content-Length      content-length      CONTENT-LENGTH

Only ASCII letters are folded. bytes.lower() does exactly that and leaves
every other byte alone, which is the behaviour we want for wire data.

=============================================================================
STRICT NUMBER PARSING
=============================================================================

int() is too forgiving for wire values: it accepts "+5", " 5", "5_000"
and "0x10". A Content-Length or chunk size must be nothing but digits:

    parse_u64(b"42")     → 42
    parse_u64(b"42 ")    → ValueError
    parse_u64(b"")       → ValueError
    parse_hex_u64(b"1A") → 26

=============================================================================
"""

from dataclasses import dataclass
from typing import Union


BytesLike = Union[bytes, bytearray, memoryview]

_DIGITS = frozenset(b"0123456789")
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")


def _as_bytes(data: Union[BytesLike, str]) -> bytes:
    if isinstance(data, str):
        return data.encode("latin-1")
    return bytes(data)


def header_eq(a: Union[BytesLike, str], b: Union[BytesLike, str]) -> bool:
    """
    Compare two header names (or values) ignoring ASCII case.

    Example:
        header_eq(b"CONTENT-length", "Content-Length")  # True
    """
    a = _as_bytes(a)
    b = _as_bytes(b)
    return len(a) == len(b) and a.lower() == b.lower()


def parse_u64(data: Union[BytesLike, str]) -> int:
    """
    Parse an unsigned decimal integer that spans the whole range.

    Raises:
        ValueError: If the range is empty or holds a non-digit.
    """
    raw = _as_bytes(data)
    if not raw or any(c not in _DIGITS for c in raw):
        raise ValueError(f"Not a decimal number: {raw!r}")
    return int(raw)


def parse_hex_u64(data: Union[BytesLike, str]) -> int:
    """
    Parse an unsigned hexadecimal integer that spans the whole range.

    Both cases are accepted ("ff" and "FF"). No "0x" prefix.

    Raises:
        ValueError: If the range is empty or holds a non-hex digit.
    """
    raw = _as_bytes(data)
    if not raw or any(c not in _HEX_DIGITS for c in raw):
        raise ValueError(f"Not a hexadecimal number: {raw!r}")
    return int(raw, 16)


@dataclass(frozen=True)
class Header:
    """
    One response header, as a view into the parser's scratch buffers.

    =========================================================================
    LIFETIME
    =========================================================================

    key and value are memoryview slices of the request context's fixed
    scratch buffers. They are only valid until the next header or body
    byte is requested; after that the scratch is reused for the next line.

        header = ctx.next_header()
        name, value = header.copy()      # keep these
        ctx.next_header()                # header.key may now be garbage

    =========================================================================
    """

    key: memoryview
    value: memoryview

    @property
    def name(self) -> str:
        """Header name decoded as latin-1 (a copy)."""
        return bytes(self.key).decode("latin-1")

    @property
    def text(self) -> str:
        """Header value decoded as latin-1 (a copy)."""
        return bytes(self.value).decode("latin-1")

    def matches(self, name: Union[BytesLike, str]) -> bool:
        """Check the header name, ignoring ASCII case."""
        return header_eq(self.key, name)

    def copy(self) -> tuple[bytes, bytes]:
        """Return an owned (key, value) pair that outlives the view."""
        return bytes(self.key), bytes(self.value)
