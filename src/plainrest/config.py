"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables in one dataclass, validated once at startup.

    ServerConfig()                    defaults (development)
    ServerConfig.from_env()           REST_* environment variables
    python -m plainrest --port 9000   CLI flags override either

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional
import os


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the REST server.

    Development:
        ServerConfig(host="127.0.0.1", port=8080, log_level="DEBUG")

    Production:
        ServerConfig(host="0.0.0.0", port=80, workers=32)
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────
    host: str = "127.0.0.1"
    port: int = 8080
    """0 lets the OS pick a free port (used by tests)."""

    backlog: int = 128
    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    """Seconds to wait for the first request on a connection."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP
    # ─────────────────────────────────────────────────────────────────────
    keep_alive: bool = True
    keep_alive_timeout: float = 5.0
    max_request_size: int = 10 * 1024 * 1024

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL
    # ─────────────────────────────────────────────────────────────────────
    workers: int = 8
    queue_size: int = 100
    """Connections waiting for a worker; beyond this clients get 503."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "text"

    # ─────────────────────────────────────────────────────────────────────
    # APPLICATION
    # ─────────────────────────────────────────────────────────────────────
    server_name: str = "plainrest/1.0"
    seed_data: bool = True
    """Populate the stores with a few example records on startup."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Build a configuration from environment variables.

            REST_HOST         bind address        (default 127.0.0.1)
            REST_PORT         port                (default 8080)
            REST_WORKERS      worker threads      (default 8)
            REST_TIMEOUT      read timeout, secs  (default 30)
            REST_LOG_LEVEL    DEBUG..CRITICAL     (default INFO)
            REST_LOG_FORMAT   text | json         (default text)
            REST_SEED_DATA    false disables seeding (default true)

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        return cls(
            host=os.getenv("REST_HOST", "127.0.0.1"),
            port=int(os.getenv("REST_PORT", "8080")),
            workers=int(os.getenv("REST_WORKERS", "8")),
            timeout=float(os.getenv("REST_TIMEOUT", "30")),
            log_level=os.getenv("REST_LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("REST_LOG_FORMAT", "text").lower(),
            seed_data=os.getenv("REST_SEED_DATA", "true").lower() not in ("0", "false", "no"),
        )

    def validate(self) -> None:
        """Fail fast on values the server cannot run with."""
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")
        if self.workers < 1:
            raise ValueError("workers must be >= 1")
        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")
        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")
