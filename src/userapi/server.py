"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together:

    SocketServer ──accept──► ThreadPool ──worker──► _serve_connection
                                                        │
                          Connection.read_request() ◄───┤
                          RequestParser.parse()     ◄───┤
                          middleware(router.handle) ◄───┤
                          Connection.send_response()◄───┘
                                   │
                          keep-alive? loop : close

A worker owns one connection at a time and answers requests on it until
the client closes, asks to close, idles past keep_alive_timeout or sends
something unparseable. When every worker is busy and the queue is full,
the accept thread answers 503 itself.
"""

import logging
import threading
from typing import TYPE_CHECKING, Callable, Optional

from .config import ServerConfig
from .core import Connection, RequestTooLarge, SocketServer, ThreadPool
from .http import (
    HTTPParseError, HTTPRequest, HTTPResponse, HTTPStatus,
    RequestParser, Router, error_response, internal_error,
)
from .middleware import Middleware, MiddlewarePipeline

if TYPE_CHECKING:
    from .users import Seed, UserStore


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
SHUTDOWN_GRACE = 30.0


class HTTPServer:
    """
    Threaded HTTP/1.1 server with routing and middleware.

        server = HTTPServer(ServerConfig(port=8000))

        @server.get("/api/users/:id")
        def show(request):
            ...

        server.use(LoggingMiddleware())
        server.run()            # blocks until Ctrl+C or stop()

    handle() pushes one request through middleware and router without a
    socket; the application tests are built on it.
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._listener = SocketServer(self.config)
        self._workers = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser(self.config.max_request_size)
        self._router = Router()
        self._pipeline = MiddlewarePipeline()
        self._chain: Optional[Callable[[HTTPRequest], HTTPResponse]] = None
        self._serving = threading.Event()

        # Set by create_app()
        self.seed: Optional["Seed"] = None
        self.store: Optional["UserStore"] = None

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def use(self, middleware: Middleware) -> "HTTPServer":
        """Add middleware; the first added is outermost. Call before serving."""
        self._pipeline.add(middleware)
        self._chain = None
        return self

    @property
    def router(self) -> Router:
        return self._router

    @property
    def is_running(self) -> bool:
        return self._serving.is_set() and self._listener.is_running

    @property
    def port(self) -> int:
        """Listening port; the real one when configured with port 0."""
        return self._listener.port

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until connections are accepted. False on timeout."""
        return self._listener.wait_until_ready(timeout)

    def route(self, path: str, method: Optional[str] = None, **meta):
        return self._router.route(path, method, **meta)

    def get(self, path: str, **meta):
        return self._router.get(path, **meta)

    def post(self, path: str, **meta):
        return self._router.post(path, **meta)

    def put(self, path: str, **meta):
        return self._router.put(path, **meta)

    def delete(self, path: str, **meta):
        return self._router.delete(path, **meta)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None, banner: bool = True):
        """
        Serve until stop(), SIGINT or SIGTERM.

        Args:
            host: Replaces config.host.
            port: Replaces config.port.
            banner: Print the address and route table once listening.
        """
        self.config.host = host or self.config.host
        self.config.port = port or self.config.port

        self._configure_logging()
        self.handle_chain()
        self._workers.start()
        self._serving.set()

        if banner:
            threading.Thread(target=self._announce, name="userapi-banner", daemon=True).start()

        try:
            self._listener.start(self._dispatch)
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self._serving.clear()
            logger.info("Waiting for in-flight connections")
            self._workers.shutdown(timeout=SHUTDOWN_GRACE)
            logger.info("Server stopped")

    def stop(self):
        """Ask a running server to stop; run() returns once workers finish."""
        self._listener.shutdown()

    def handle_chain(self) -> Callable[[HTTPRequest], HTTPResponse]:
        """Middleware wrapped around router.handle, built once."""
        if self._chain is None:
            self._chain = self._pipeline.wrap(self._router.handle)
        return self._chain

    def _announce(self):
        if not self.wait_until_ready(10.0):
            return
        rule = "=" * 62
        print(f"\n{rule}")
        print(f"  {self.config.server_name} listening on http://{self.config.host}:{self.port}")
        print(f"  Workers: {self.config.min_workers}-{self.config.max_workers} threads")
        print("  Press Ctrl+C to stop")
        print(rule)
        self._router.print_routes()

    def _configure_logging(self):
        level = logging.getLevelName(self.config.log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO
        logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        logging.getLogger("userapi").setLevel(level)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Run one request through the middleware chain and router."""
        return self.handle_chain()(request)

    def _dispatch(self, conn: Connection):
        """Accept-thread callback: queue the connection or refuse it with 503."""
        if self._workers.submit(self._serve_connection, conn, max_wait=self.config.timeout):
            return
        logger.warning(f"[{conn.id}] All workers busy, refusing connection")
        self._reject(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server is busy, try again later")
        conn.close()

    def _serve_connection(self, conn: Connection):
        """Worker-thread loop over the requests of one connection."""
        with conn:
            try:
                while self._serving.is_set() and self._serve_next(conn):
                    conn.set_keep_alive()
            except RequestTooLarge as e:
                self._reject(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
            except TimeoutError:
                self._reject(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
            except Exception as e:
                logger.exception(f"[{conn.id}] Connection error: {e}")

    def _serve_next(self, conn: Connection) -> bool:
        """Answer one request. True when the connection should stay open."""
        data = conn.read_request()
        if data is None:
            return False

        try:
            request = self._parser.parse(data, conn.address)
        except HTTPParseError as e:
            self._reject(conn, HTTPStatus(e.status_code), str(e))
            return False

        conn.state = conn.state.PROCESSING
        try:
            response = self.handle(request)
        except Exception as e:
            logger.exception(f"[{conn.id}] Unhandled error in request chain: {e}")
            response = internal_error()

        persist = self.config.keep_alive and request.is_keep_alive
        if persist:
            response.headers.setdefault("Connection", "keep-alive")
            response.headers.setdefault("Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}")
        else:
            response.headers["Connection"] = "close"

        if request.method == "HEAD":
            response.headers["Content-Length"] = str(len(response.body))
            response.body = b""

        sent = conn.send_response(response.to_bytes(self.config.server_name))
        return sent and persist

    def _reject(self, conn: Connection, status: HTTPStatus, message: str):
        """Error envelope for failures outside the request chain; always closes."""
        response = error_response(status, status.phrase, message)
        response.headers["Connection"] = "close"
        conn.send_response(response.to_bytes(self.config.server_name))


def serve_in_background(server: HTTPServer) -> threading.Thread:
    """
    Start server.run() on a daemon thread and return the thread.

    Signal handlers are only installed on the main thread, so stop a
    background server with server.stop().
    """
    thread = threading.Thread(
        target=server.run,
        kwargs={"banner": False},
        name="userapi-server",
        daemon=True,
    )
    thread.start()
    return thread
