"""
=============================================================================
REQUEST INSPECTOR
=============================================================================

Parses a complete, raw HTTP/1.1 request (as the formatter writes it) back
into its parts. This is the server's view of what the client sent, useful
for checking what actually went over the wire and for debugging.

=============================================================================
WHAT GETS CHECKED
=============================================================================

    GET /api/users?page=1 HTTP/1.1\r\n      ← request line (3 parts)
    Host: example.com\r\n                   ← headers, names lower-cased
    Content-Length: 5\r\n
    \r\n                                    ← end of head
    hello                                   ← exactly Content-Length bytes

Unlike the streaming response parser this works on a whole message in
memory, so it is only meant for requests you already hold as bytes.

=============================================================================
"""

import re
from dataclasses import dataclass, field
from typing import Dict

from ..errors import ProtocolError
from .headers import parse_u64


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Attributes:
        method: Request method ("GET", "POST", ...).
        route: Request target exactly as sent, query string included.
        version: HTTP version string ("HTTP/1.1").
        headers: Header name (lower-cased) → value. Repeated headers are
                 joined with ", ".
        body: Raw body bytes.
    """

    method: str
    route: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def host(self) -> str:
        return self.headers.get("host", "")

    @property
    def content_length(self) -> int:
        """Content-Length as an integer, 0 if absent."""
        value = self.headers.get("content-length")
        return parse_u64(value) if value else 0

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

    REQUEST_LINE_PATTERN: ^(TOKEN) (TARGET) (HTTP/d.d)$
    HEADER_PATTERN:       ^(NAME):[ \\t]*(VALUE)$
    """

    REQUEST_LINE_PATTERN = re.compile(
        r"^([!#$%&'*+\-.^_`|~0-9A-Za-z]+) (\S+) (HTTP/\d\.\d)$"
    )
    HEADER_PATTERN = re.compile(r"^([^:\s]+):[ \t]*(.*?)[ \t]*$")

    def parse(self, data: bytes) -> HTTPRequest:
        """
        Parse a complete request.

        Raises:
            ProtocolError: Missing head terminator, bad request line, bad
                           header line, or a body shorter/longer than
                           Content-Length.
        """
        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise ProtocolError("Incomplete request: no header terminator")

        head = data[:header_end].decode("latin-1")
        body = data[header_end + 4:]

        lines = head.split("\r\n")
        match = self.REQUEST_LINE_PATTERN.match(lines[0])
        if not match:
            raise ProtocolError(f"Invalid request line: {lines[0]!r}")
        method, route, version = match.groups()

        headers = self._parse_headers(lines[1:])

        request = HTTPRequest(method=method, route=route, version=version, headers=headers)
        try:
            length = request.content_length
        except ValueError:
            raise ProtocolError(f"Invalid Content-Length: {headers['content-length']!r}") from None

        if len(body) != length:
            raise ProtocolError(f"Body is {len(body)} bytes, Content-Length says {length}")

        request.body = body
        return request

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        for line in lines:
            match = self.HEADER_PATTERN.match(line)
            if not match:
                raise ProtocolError(f"Invalid header line: {line!r}")

            name, value = match.groups()
            name = name.lower()
            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value
        return headers


def parse_request(data: bytes) -> HTTPRequest:
    """Parse a complete raw request with a default RequestParser."""
    return RequestParser().parse(data)
