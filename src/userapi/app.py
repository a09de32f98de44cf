"""
Application factory.

    app = create_app(ServerConfig.from_env())
    app.run()

Builds one HTTPServer with its own Seed and UserStore, so tests can create
as many independent applications as they like.
"""

import logging
from typing import Optional

from .config import ServerConfig
from .middleware import CORSMiddleware, ErrorHandlerMiddleware, LoggingMiddleware
from .server import HTTPServer
from .users import Seed, UserStore, register_routes

logger = logging.getLogger(__name__)


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """
    Create a fully wired user records server.

    Middleware order, outermost first: access log, CORS, error boundary.

    Args:
        config: Server configuration. Defaults to ServerConfig().

    Returns:
        An HTTPServer ready for run() or handle().
    """
    config = config or ServerConfig()
    server = HTTPServer(config)

    seed = Seed(config.seed_file)
    store = UserStore(seed)

    server.use(LoggingMiddleware(log_format=config.log_format))
    server.use(CORSMiddleware())
    server.use(ErrorHandlerMiddleware())

    register_routes(server.router, store, seed)

    server.seed = seed
    server.store = store
    logger.debug(f"Application created (seed file: {config.seed_file})")
    return server
