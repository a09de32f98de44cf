"""
One accepted client socket.

Reads whole requests (head plus Content-Length body) and writes serialized
responses. Bytes received past the end of one request are kept for the
next one on the same keep-alive connection.
"""

import re
import socket
import time
import uuid
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

HEAD_END = b"\r\n\r\n"
_CONTENT_LENGTH = re.compile(rb"^content-length:[ \t]*(\d+)[ \t]*$", re.IGNORECASE | re.MULTILINE)


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSING = "closing"
    CLOSED = "closed"


class RequestTooLarge(Exception):
    """More than max_request_size bytes arrived without completing a request."""


def declared_length(head: bytes) -> int:
    """Content-Length from a raw request head; 0 when absent or unreadable."""
    match = _CONTENT_LENGTH.search(head.replace(b"\r\n", b"\n"))
    return int(match.group(1)) if match else 0


@dataclass
class Connection:
    """
    Attributes:
        socket: The accepted client socket.
        address: Peer (ip, port).
        id: Eight hex characters, used to tag log lines.
        timeout: Seconds to wait for the first request.
        keep_alive_timeout: Seconds an idle kept-alive connection is held.
    """

    socket: socket.socket
    address: Tuple[str, int]
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    opened_at: float = field(default_factory=time.monotonic)
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024

    _pending: bytearray = field(default_factory=bytearray, repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    def read_request(self) -> Optional[bytes]:
        """
        Next complete request from the socket.

        Returns:
            The raw request, or None once the peer has closed the
            connection or left a kept-alive connection idle too long.

        Raises:
            TimeoutError: The first request did not arrive in time.
            RequestTooLarge: The request is over max_request_size.
        """
        self.state = ConnectionState.READING
        idle_wait = self.keep_alive_timeout if self.requests_handled else self.timeout
        self.socket.settimeout(idle_wait)

        try:
            head_size = self._receive_head()
            if head_size is None:
                return None

            total = head_size + declared_length(bytes(self._pending[:head_size]))
            # A short body is passed on as is; the parser rejects it.
            while len(self._pending) < total and self._receive():
                pass
        except socket.timeout:
            if self.requests_handled:
                logger.debug(f"[{self.id}] Idle keep-alive connection timed out")
                return None
            raise TimeoutError("Timed out waiting for the request")
        finally:
            self.socket.settimeout(self.timeout)

        request = bytes(self._pending[:total])
        del self._pending[:total]
        self.requests_handled += 1
        return request

    def _receive_head(self) -> Optional[int]:
        """Read until the blank line ending the head; its end offset, or None on EOF."""
        while True:
            end = self._pending.find(HEAD_END)
            if end != -1:
                return end + len(HEAD_END)
            if not self._receive():
                return None

    def _receive(self) -> bool:
        try:
            chunk = self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return False
        if not chunk:
            return False

        self._pending += chunk
        if len(self._pending) > self.max_request_size:
            raise RequestTooLarge(
                f"Request exceeds {self.max_request_size} bytes"
            )
        return True

    def send_response(self, data: bytes) -> bool:
        """Write the whole response. False when the peer has gone away."""
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Could not send response: {e}")
            return False
        return True

    def set_keep_alive(self):
        self.state = ConnectionState.KEEP_ALIVE

    def close(self):
        """Finish writing, drain whatever the peer still sends, release the socket."""
        if self.state is ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
            self.socket.settimeout(0.5)
            while self.socket.recv(self.buffer_size):
                pass
        except OSError:
            pass
        finally:
            self.socket.close()

        self.state = ConnectionState.CLOSED
        lifetime = time.monotonic() - self.opened_at
        logger.debug(f"[{self.id}] Closed after {self.requests_handled} requests ({lifetime:.2f}s)")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
