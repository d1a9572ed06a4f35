"""
=============================================================================
HTTP CLIENT CLI ENTRY POINT
=============================================================================

A tiny curl: send one request and stream the response to stdout.

=============================================================================
USAGE
=============================================================================

    # Fetch a page
    python -m httpclient http://example.com/

    # Show status line and headers too
    python -m httpclient -i https://example.com/

    # POST a body with an extra header
    python -m httpclient -X POST -H "Content-Type: application/json" \\
        -d '{"name": "alice"}' http://localhost:8080/users

    # Verbose protocol logging on stderr
    python -m httpclient -l DEBUG http://example.com/

=============================================================================
EXIT STATUS
=============================================================================

    0   response fully read
    1   transport, protocol or buffer error (message on stderr)
    2   bad command line (argparse)

=============================================================================
"""

import argparse
import logging
import sys
from urllib.parse import urlsplit

from . import __version__
from .config import ClientConfig
from .core import Connection
from .errors import HTTPClientError
from .http import send_request


def _setup_logging(level_name: str) -> None:
    """Configure logging to stderr so it never mixes with the body."""
    level = getattr(logging, level_name.upper(), logging.WARNING)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    logging.getLogger("httpclient").setLevel(level)


def _parse_url(url: str) -> tuple[str, int, bool, str]:
    """
    Split a URL into (host, port, use_tls, route).

    Raises:
        ValueError: Unsupported scheme or missing host.
    """
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https"):
        raise ValueError(f"Unsupported URL scheme: {parts.scheme or '(none)'}")
    if not parts.hostname:
        raise ValueError(f"No host in URL: {url}")

    use_tls = parts.scheme == "https"
    port = parts.port or (443 if use_tls else 80)
    route = parts.path or "/"
    if parts.query:
        route += "?" + parts.query
    return parts.hostname, port, use_tls, route


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="httpclient",
        description="Bounded-memory HTTP/1.1 client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m httpclient http://example.com/              # Fetch a page
  python -m httpclient -i https://example.com/          # With headers
  python -m httpclient -X POST -d 'x=1' http://host/    # POST a body
        """
    )

    parser.add_argument("url", help="http:// or https:// URL to request")

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--request", "-X",
        dest="method",
        default="GET",
        help="Request method (default: GET)"
    )

    parser.add_argument(
        "--header", "-H",
        dest="headers",
        action="append",
        default=[],
        help="Extra header 'Name: value' (repeatable)"
    )

    parser.add_argument(
        "--data", "-d",
        default=None,
        help="Request body (sent as UTF-8)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # OUTPUT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--include", "-i",
        action="store_true",
        help="Print the status line and headers, as received, before the body"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONNECTION ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--insecure", "-k",
        action="store_true",
        help="Do not verify TLS certificates"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Socket timeout in seconds (default: 30)"
    )

    parser.add_argument(
        "--buffer-size",
        type=int,
        default=8192,
        help="Read buffer size in bytes (default: 8192)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"httpclient {__version__}"
    )

    return parser


def main(argv=None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit status.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.log_level)

    try:
        host, port, use_tls, route = _parse_url(args.url)
    except ValueError as e:
        parser.error(str(e))

    for header in args.headers:
        if ":" not in header:
            parser.error(f"Header must look like 'Name: value': {header!r}")

    config = ClientConfig(
        buffer_size=args.buffer_size,
        timeout=args.timeout,
        verify_tls=not args.insecure,
        log_level=args.log_level,
    )
    try:
        config.validate()
    except ValueError as e:
        parser.error(str(e))

    out = sys.stdout.buffer
    body = args.data.encode("utf-8") if args.data is not None else None
    extra_headers = "\r\n".join(args.headers)

    try:
        with Connection.open(host, port, use_tls=use_tls, config=config) as conn:
            ctx = send_request(conn, args.method, route, extra_headers, body, config)

            ctx.read_status()
            if args.include:
                out.write(ctx.status_line + b"\r\n")
                for header in ctx.iter_headers():
                    out.write(bytes(header.key) + b": " + bytes(header.value) + b"\r\n")
                out.write(b"\r\n")

            for chunk in ctx.iter_body():
                out.write(chunk)
            out.flush()
    except HTTPClientError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


# =============================================================================
# ENTRY POINT
# =============================================================================
# This allows running: python -m httpclient

if __name__ == "__main__":
    sys.exit(main())
