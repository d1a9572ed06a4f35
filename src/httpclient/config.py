"""
=============================================================================
CLIENT CONFIGURATION
=============================================================================

Centralized configuration for the HTTP client.

=============================================================================
BOUNDED MEMORY
=============================================================================

Every request context allocates three fixed buffers up front and never
grows them:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                  PER-REQUEST MEMORY FOOTPRINT                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   read buffer     buffer_size   (8 KB)   socket reads land here     │
    │   key scratch     entry_size    (2 KB)   one header name / chunk    │
    │                                          size line at a time        │
    │   value scratch   entry_size    (2 KB)   one header value           │
    │                                                                      │
    │   total ≈ 12 KB, whatever the size of the response                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A header name or value longer than entry_size is rejected with
BufferExhaustedError. Raise entry_size if you talk to servers that send
huge cookies or CSP headers.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    Priority (highest to lowest):

    1. Command-line arguments     python -m httpclient --timeout 5 URL
    2. Environment variables      HTTP_CLIENT_TIMEOUT=5
    3. Default values (in this dataclass)

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class ClientConfig:
    """
    Configuration for the HTTP client.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    BUFFERS
    - buffer_size, entry_size

    NETWORK
    - timeout, verify_tls

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # BUFFERS
    # ─────────────────────────────────────────────────────────────────────

    buffer_size: int = 8192
    """
    Capacity of the read buffer in bytes (8 KB default).
    Also used as the scratch buffer when formatting the request.
    """

    entry_size: int = 2048
    """
    Capacity of the header key and value scratch buffers.
    Longer header names/values fail with BufferExhaustedError.
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    timeout: Optional[float] = 30.0
    """
    Socket timeout in seconds, applied to connect, read and write.
    None = blocking (wait forever).
    """

    verify_tls: bool = True
    """
    Verify the server certificate and host name for TLS connections.
    Only turn this off for local testing against self-signed certs.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "WARNING"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_CLIENT_BUFFER_SIZE  Read buffer size (default: 8192)
        HTTP_CLIENT_ENTRY_SIZE   Header scratch size (default: 2048)
        HTTP_CLIENT_TIMEOUT      Socket timeout in seconds (default: 30,
                                 "none" for blocking)
        HTTP_CLIENT_VERIFY_TLS   Verify certificates (default: true)
        HTTP_CLIENT_LOG_LEVEL    Logging level (default: WARNING)

        =====================================================================
        """
        timeout = os.getenv("HTTP_CLIENT_TIMEOUT", "30")
        return cls(
            buffer_size=int(os.getenv("HTTP_CLIENT_BUFFER_SIZE", "8192")),
            entry_size=int(os.getenv("HTTP_CLIENT_ENTRY_SIZE", "2048")),
            timeout=None if timeout.lower() == "none" else float(timeout),
            verify_tls=os.getenv("HTTP_CLIENT_VERIFY_TLS", "true").lower() in _TRUE_VALUES,
            log_level=os.getenv("HTTP_CLIENT_LOG_LEVEL", "WARNING"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called before the first request so a bad value fails fast with a
        clear message instead of as a confusing parse error later.
        """
        if self.buffer_size < 64:
            raise ValueError(f"buffer_size must be >= 64, got {self.buffer_size}")

        # Must hold at least "HTTP/1.1 200"
        if self.entry_size < 16:
            raise ValueError(f"entry_size must be >= 16, got {self.entry_size}")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")
