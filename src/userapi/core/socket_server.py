"""
TCP listener.

Binds the configured address and hands every accepted socket, wrapped in
a Connection, to a callback (the HTTP server, which queues it on the
thread pool):

    listener = SocketServer(config)
    listener.start(on_connection)     # blocks until shutdown()

    bind ─► listen ─► [ready] ─► accept ─► Connection ─► on_connection
                                   ▲                          │
                                   └──────────────────────────┘

Port 0 binds an ephemeral port; `port` reports the real one once `ready`
is set. accept() polls once a second so shutdown() from another thread
(or a signal handler) is noticed promptly.
"""

import socket
import signal
import logging
import threading
from typing import Callable, Dict, Optional

from ..config import ServerConfig
from .connection import Connection

logger = logging.getLogger(__name__)

ACCEPT_POLL_INTERVAL = 1.0


class SocketServer:
    """Accept loop over one listening socket."""

    def __init__(self, config: ServerConfig):
        self.config = config
        self.ready = threading.Event()
        self._stopping = threading.Event()
        self._listener: Optional[socket.socket] = None
        self._previous_handlers: Dict[int, object] = {}

    @property
    def is_running(self) -> bool:
        return self.ready.is_set() and not self._stopping.is_set()

    @property
    def port(self) -> int:
        """Bound port (differs from config.port when that is 0)."""
        if self._listener is None:
            return self.config.port
        return self._listener.getsockname()[1]

    def _bind(self) -> socket.socket:
        """
        Create the listening socket.

        Raises:
            OSError: If the address is in use or not available.
        """
        try:
            listener = socket.create_server(
                (self.config.host, self.config.port),
                backlog=self.config.backlog,
            )
        except OSError as e:
            logger.error(f"Cannot listen on {self.config.host}:{self.config.port}: {e}")
            raise
        listener.settimeout(ACCEPT_POLL_INTERVAL)
        return listener

    def start(self, on_connection: Callable[[Connection], None]):
        """Listen and dispatch connections until shutdown() is called."""
        self._stopping.clear()
        self._listener = self._bind()
        self._install_signal_handlers()
        self.ready.set()
        logger.info(f"Listening on {self.config.host}:{self.port}")

        try:
            while not self._stopping.is_set():
                conn = self._accept()
                if conn is not None:
                    on_connection(conn)
        finally:
            self._close()

    def _accept(self) -> Optional[Connection]:
        try:
            client, address = self._listener.accept()
        except socket.timeout:
            return None
        except OSError as e:
            if not self._stopping.is_set():
                logger.error(f"accept() failed: {e}")
                self._stopping.set()
            return None

        # Responses are small JSON documents; send them without Nagle delay
        client.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        conn = Connection(
            socket=client,
            address=address,
            buffer_size=self.config.buffer_size,
            timeout=self.config.timeout,
            keep_alive_timeout=self.config.keep_alive_timeout,
            max_request_size=self.config.max_request_size,
        )
        logger.debug(f"[{conn.id}] Connection from {address[0]}:{address[1]}")
        return conn

    def shutdown(self):
        """Stop accepting. Safe from any thread, any number of times."""
        if not self._stopping.is_set():
            logger.info("Stopping listener")
        self._stopping.set()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self.ready.wait(timeout)

    def _close(self):
        self._restore_signal_handlers()
        if self._listener is not None:
            try:
                self._listener.close()
            except OSError:
                pass
        self._listener = None
        self.ready.clear()
        self._stopping.set()
        logger.info("Listener closed")

    # =========================================================================
    # SIGNALS
    # =========================================================================

    def _install_signal_handlers(self):
        """
        SIGINT and SIGTERM stop the accept loop.

        Only possible on the main thread; a listener started elsewhere is
        stopped with shutdown().
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def on_signal(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}")
            self.shutdown()

        for signum in (signal.SIGINT, signal.SIGTERM):
            self._previous_handlers[signum] = signal.signal(signum, on_signal)

    def _restore_signal_handlers(self):
        while self._previous_handlers:
            signum, handler = self._previous_handlers.popitem()
            signal.signal(signum, handler)
