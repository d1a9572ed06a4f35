"""
Unit tests for body decoding: Content-Length, chunked, and read-until-close.
"""

import pytest

from httpclient import ClientConfig
from httpclient.errors import BufferExhaustedError, ConnectionClosedError, ProtocolError


def _chunks(ctx) -> list:
    # Copy each view before the next pull reuses the buffer
    return [bytes(chunk) for chunk in ctx.iter_body()]


class TestContentLength:
    """Tests for Content-Length framed bodies."""

    def test_hello(self, make_context, hello_response):
        ctx = make_context([hello_response])

        assert ctx.read_status() == 200
        assert ctx.read_body() == b"hello"
        assert ctx.done
        assert ctx.next_body_chunk() is None

    def test_single_header_response(self, make_context):
        """Test the minimal Content-Length response end to end."""
        ctx = make_context([b"HTTP/1.1 200 OK\r\nContent-Length: 5\r\n\r\nhello"])

        assert ctx.read_status() == 200
        assert ctx.headers() == [("Content-Length", "5")]
        assert ctx.read_body() == b"hello"

    def test_headers_skipped_automatically(self, make_context, hello_response):
        """Test pulling the body without pulling the headers first."""
        ctx = make_context([hello_response])

        assert ctx.read_body() == b"hello"

    def test_body_is_a_view_into_read_buffer(self, make_context, hello_response):
        ctx = make_context([hello_response])
        chunk = ctx.next_body_chunk()

        assert chunk.obj is ctx.buffer
        assert bytes(chunk) == b"hello"

    def test_body_across_reads(self, make_context):
        ctx = make_context([
            b"HTTP/1.1 200 OK\r\nContent-Length: 10\r\n\r\nabc",
            b"defg",
            b"hij",
        ])

        assert _chunks(ctx) == [b"abc", b"defg", b"hij"]

    def test_body_larger_than_buffer(self, make_context):
        """Test a body that needs many buffer refills."""
        body = bytes(range(256)) * 64
        head = b"HTTP/1.1 200 OK\r\nContent-Length: %d\r\n\r\n" % len(body)
        ctx = make_context([head + body], config=ClientConfig(buffer_size=64))

        chunks = _chunks(ctx)
        assert b"".join(chunks) == body
        assert all(len(chunk) <= 64 for chunk in chunks)

    def test_zero_length(self, make_context):
        ctx = make_context([b"HTTP/1.1 200 OK\r\nContent-Length: 0\r\n\r\n"])

        assert ctx.next_body_chunk() is None
        assert ctx.done

    def test_more_bytes_than_declared(self, make_context):
        """Test that extra bytes after the declared body are rejected."""
        ctx = make_context([b"HTTP/1.1 200 OK\r\nContent-Length: 3\r\n\r\nhello"])

        with pytest.raises(ProtocolError):
            ctx.next_body_chunk()

        assert ctx.failed
        assert ctx.next_body_chunk() is None

    def test_closed_early(self, make_context):
        ctx = make_context([b"HTTP/1.1 200 OK\r\nContent-Length: 10\r\n\r\nabc"])

        assert bytes(ctx.next_body_chunk()) == b"abc"
        with pytest.raises(ConnectionClosedError):
            ctx.next_body_chunk()


class TestChunked:
    """Tests for chunked transfer decoding."""

    def test_wikipedia_example(self, make_context, chunked_response):
        ctx = make_context([chunked_response])

        assert ctx.read_body() == b"Wikipedia in\r\n\r\nchunks."
        assert ctx.done
        assert ctx.content_length == 23

    def test_wiki_pedia(self, make_context):
        ctx = make_context([
            b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n",
            b"4\r\nWiki\r\n5\r\npedia\r\n0\r\n\r\n",
        ])

        assert _chunks(ctx) == [b"Wiki", b"pedia"]

    def test_one_byte_reads(self, make_context, byte_split, chunked_response):
        """Test that chunk framing survives any split of the stream."""
        ctx = make_context(byte_split(chunked_response))

        assert ctx.read_body() == b"Wikipedia in\r\n\r\nchunks."

    def test_chunk_larger_than_buffer(self, make_context):
        data = b"z" * 300
        ctx = make_context(
            [b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n12C\r\n" + data + b"\r\n0\r\n\r\n"],
            config=ClientConfig(buffer_size=64),
        )

        assert ctx.read_body() == data

    def test_empty_body(self, make_context):
        ctx = make_context([b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n0\r\n\r\n"])

        assert ctx.next_body_chunk() is None
        assert ctx.done

    def test_chunk_extensions_ignored(self, make_context):
        ctx = make_context([
            b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n"
            b"5;name=value\r\nhello\r\n0\r\n\r\n"
        ])

        assert ctx.read_body() == b"hello"

    def test_uppercase_and_lowercase_hex(self, make_context):
        ctx = make_context([
            b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n"
            b"a\r\n0123456789\r\nB\r\n0123456789X\r\n0\r\n\r\n"
        ])

        assert ctx.read_body() == b"0123456789" + b"0123456789X"

    def test_malformed_size(self, make_context):
        ctx = make_context([
            b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\nzz\r\nhello\r\n"
        ])

        with pytest.raises(ProtocolError):
            ctx.read_body()

        assert ctx.failed

    def test_empty_size_line(self, make_context):
        """Test that a blank line where a chunk size is due is fatal, not skipped."""
        ctx = make_context([
            b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n\r\n5\r\nhello\r\n0\r\n\r\n"
        ])

        with pytest.raises(ProtocolError):
            ctx.read_body()

    def test_missing_crlf_after_data(self, make_context):
        ctx = make_context([
            b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n5\r\nhelloX0\r\n\r\n"
        ])

        assert bytes(ctx.next_body_chunk()) == b"hello"
        with pytest.raises(ProtocolError):
            ctx.next_body_chunk()

    def test_size_line_too_long(self, make_context):
        config = ClientConfig(entry_size=24)
        ctx = make_context(
            [b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n5;" + b"x" * 32 + b"\r\nhello"],
            config=config,
        )

        with pytest.raises(BufferExhaustedError):
            ctx.next_body_chunk()

    def test_closed_inside_chunk(self, make_context):
        ctx = make_context([b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n10\r\nshort"])

        assert bytes(ctx.next_body_chunk()) == b"short"
        with pytest.raises(ConnectionClosedError):
            ctx.next_body_chunk()

    def test_closed_before_last_chunk(self, make_context):
        ctx = make_context([b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n5\r\nhello\r\n"])

        assert bytes(ctx.next_body_chunk()) == b"hello"
        with pytest.raises(ConnectionClosedError):
            ctx.next_body_chunk()


class TestNoFraming:
    """Tests for bodies delimited by connection close."""

    def test_read_until_close(self, make_context):
        ctx = make_context([b"HTTP/1.0 200 OK\r\n\r\nsome ", b"data"])

        assert _chunks(ctx) == [b"some ", b"data"]
        assert ctx.done


class TestNoBody:
    """Tests for responses that never carry a body."""

    def test_head_request(self, make_context):
        """Test that HEAD ignores the advertised Content-Length."""
        ctx = make_context(
            [b"HTTP/1.1 200 OK\r\nContent-Length: 1000\r\n\r\n"],
            method="HEAD",
        )

        assert ctx.next_body_chunk() is None
        assert ctx.done

    @pytest.mark.parametrize("status", [b"204 No Content", b"304 Not Modified", b"101 Switching Protocols"])
    def test_bodiless_status(self, make_context, status):
        ctx = make_context([b"HTTP/1.1 " + status + b"\r\nContent-Length: 5\r\n\r\n"])

        assert ctx.next_body_chunk() is None
        assert ctx.done
