"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables live in one dataclass so the server, the CLI and the tests
share a single definition. Values come from keyword arguments, or from
the environment via ServerConfig.from_env():

    PORT=3000 LOG_LEVEL=DEBUG python -m userapi

Configuration is validated once at start-up (fail fast) rather than on
first use.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


# Seed file shipped with the package
DEFAULT_SEED_FILE = Path(__file__).parent / "data" / "users.json"


@dataclass
class ServerConfig:
    """
    Configuration for the user records server.

    Groups:
        NETWORK     host, port, backlog, buffer_size, timeout
        HTTP        keep_alive, keep_alive_timeout, max_request_size
        THREADING   min_workers, max_workers, queue_size
        DATA        seed_file
        LOGGING     log_level, log_format
    """

    host: str = "127.0.0.1"
    """Interface to bind. Use "0.0.0.0" inside containers."""

    port: int = 8000

    backlog: int = 128
    """Pending connections the kernel queues before refusing new ones."""

    buffer_size: int = 8192
    """Bytes read per recv() call."""

    timeout: Optional[float] = 30.0
    """Seconds to wait for the first request on a connection."""

    keep_alive: bool = True

    keep_alive_timeout: float = 5.0
    """Idle seconds before a kept-alive connection is closed."""

    max_request_size: int = 1024 * 1024

    min_workers: int = 4
    max_workers: int = 16

    queue_size: int = 100
    """Connections waiting for a worker before new ones get 503."""

    seed_file: Optional[str] = str(DEFAULT_SEED_FILE)
    """
    JSON array of user records loaded on first read and after every reset.
    None, a missing file or a corrupt file all fall back to the built-in
    two-record fixture.
    """

    log_level: str = "INFO"
    log_format: str = "text"
    """Access log format: "text" (Apache style) or "json"."""

    server_name: str = "UserRecordsAPI/1.0"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Build a configuration from environment variables.

            HOST             bind address        (default 127.0.0.1)
            PORT             listen port         (default 8000)
            WORKERS          max worker threads  (default 16)
            REQUEST_TIMEOUT  seconds             (default 30)
            USERS_SEED_FILE  seed file path      (default: bundled users.json)
            LOG_LEVEL        logging level       (default INFO)
            LOG_FORMAT       text | json         (default text)
        """
        max_workers = int(os.getenv("WORKERS", "16"))
        return cls(
            host=os.getenv("HOST", "127.0.0.1"),
            port=int(os.getenv("PORT", "8000")),
            min_workers=min(4, max_workers),
            max_workers=max_workers,
            timeout=float(os.getenv("REQUEST_TIMEOUT", "30")),
            seed_file=os.getenv("USERS_SEED_FILE", str(DEFAULT_SEED_FILE)),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Check values that would otherwise fail later and less clearly.

        Raises:
            ValueError: On the first invalid setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535, or 0 for any free port.")
        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")
        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")
        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")
        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.log_format not in ("text", "json"):
            raise ValueError(f"Invalid log_format: {self.log_format}. Must be 'text' or 'json'.")
