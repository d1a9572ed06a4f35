"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Callable, Generator, List, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httpclient import ClientConfig, Connection, RequestContext
from httpclient.errors import TransportError


class ScriptedTransport:
    """
    In-memory transport that replays canned reads and records writes.

    Each entry of `reads` is returned by one readinto() call (split if it
    does not fit the caller's buffer). Once the script is used up every
    read returns 0, like a peer that closed the connection.
    """

    def __init__(self, reads: Optional[List[bytes]] = None, fail_writes: bool = False):
        self.reads = list(reads or [])
        self.fail_writes = fail_writes
        self.writes: List[bytes] = []
        self.read_calls = 0
        self.closed = False

    def write(self, data: bytes) -> None:
        if self.fail_writes:
            raise TransportError("Broken pipe")
        self.writes.append(bytes(data))

    def readinto(self, buffer) -> int:
        self.read_calls += 1
        if not self.reads:
            return 0

        data = self.reads.pop(0)
        if len(data) > len(buffer):
            self.reads.insert(0, data[len(buffer):])
            data = data[:len(buffer)]
        buffer[:len(data)] = data
        return len(data)

    def close(self) -> None:
        self.closed = True

    @property
    def sent(self) -> bytes:
        return b"".join(self.writes)


def one_byte_reads(data: bytes) -> List[bytes]:
    """Split a response into single-byte reads."""
    return [data[i:i + 1] for i in range(len(data))]


@pytest.fixture
def transport_class():
    """The ScriptedTransport class, for tests that build connections by hand."""
    return ScriptedTransport


@pytest.fixture
def byte_split():
    """one_byte_reads(), as a fixture."""
    return one_byte_reads


@pytest.fixture
def make_context() -> Callable[..., RequestContext]:
    """
    Factory: send a request over a ScriptedTransport and return its context.

    The transport is reachable as ctx.connection.transport.
    """

    def factory(
        reads: List[bytes],
        method: str = "GET",
        route: str = "/",
        config: Optional[ClientConfig] = None,
        **kwargs,
    ) -> RequestContext:
        conn = Connection(transport=ScriptedTransport(reads), host="example.com")
        return RequestContext.send(conn, method, route, config=config, **kwargs)

    return factory


@pytest.fixture
def hello_response() -> bytes:
    """A 200 response with a Content-Length body."""
    return (
        b"HTTP/1.1 200 OK\r\n"
        b"Content-Type: text/plain\r\n"
        b"Content-Length: 5\r\n"
        b"\r\n"
        b"hello"
    )


@pytest.fixture
def chunked_response() -> bytes:
    """The classic Wikipedia chunked example."""
    return (
        b"HTTP/1.1 200 OK\r\n"
        b"Transfer-Encoding: chunked\r\n"
        b"\r\n"
        b"4\r\nWiki\r\n"
        b"5\r\npedia\r\n"
        b"E\r\n in\r\n\r\nchunks.\r\n"
        b"0\r\n"
        b"\r\n"
    )


class LoopbackServer:
    """
    One-shot TCP server on 127.0.0.1 running in a background thread.

    Accepts a single connection, reads the request head (and a body if
    Content-Length says so), replies with a canned response and closes.
    """

    def __init__(self, response: bytes):
        self.response = response
        self.request = b""
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.bind(("127.0.0.1", 0))
        self._socket.listen(1)
        self.port = self._socket.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self) -> "LoopbackServer":
        self._thread.start()
        return self

    def _serve(self) -> None:
        client, _ = self._socket.accept()
        with client:
            client.settimeout(5.0)
            data = b""
            while b"\r\n\r\n" not in data:
                chunk = client.recv(4096)
                if not chunk:
                    break
                data += chunk

            head, _, body = data.partition(b"\r\n\r\n")
            for line in head.split(b"\r\n")[1:]:
                name, _, value = line.partition(b":")
                if name.strip().lower() == b"content-length":
                    while len(body) < int(value):
                        chunk = client.recv(4096)
                        if not chunk:
                            break
                        body += chunk

            self.request = data if not body else head + b"\r\n\r\n" + body
            client.sendall(self.response)

    def stop(self) -> None:
        self._thread.join(timeout=5.0)
        self._socket.close()


@pytest.fixture
def loopback_server() -> Generator[Callable[[bytes], LoopbackServer], None, None]:
    """Factory for started LoopbackServers; all are stopped on teardown."""
    servers: List[LoopbackServer] = []

    def factory(response: bytes) -> LoopbackServer:
        server = LoopbackServer(response).start()
        servers.append(server)
        return server

    yield factory

    for server in servers:
        server.stop()
