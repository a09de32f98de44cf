"""
=============================================================================
USERAPI - User Records REST API
=============================================================================

A small REST API over an in-memory, file-seeded list of user records,
served by a threaded HTTP/1.1 server built on the standard library.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    userapi/
    ├── __init__.py          # package exports
    ├── __main__.py          # CLI entry point (python -m userapi)
    ├── app.py               # create_app(): server + store + routes
    ├── server.py            # HTTPServer: accept, dispatch, keep-alive
    ├── config.py            # ServerConfig dataclass
    ├── errors.py            # APIError taxonomy
    ├── core/                # sockets, connections, thread pool
    ├── http/                # request parser, responses, router, status codes
    ├── middleware/          # access log, CORS, error boundary
    ├── users/               # model, seed, store, validation, routes
    └── data/users.json      # bundled seed records

=============================================================================
QUICK START
=============================================================================

    from userapi import create_app, ServerConfig

    app = create_app(ServerConfig(port=8000))
    app.run()

    $ curl -X POST localhost:8000/api/users \\
          -H 'Content-Type: application/json' \\
          -d '{"name": "Ada Lovelace", "email": "ada@example.com", "age": 36}'

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import HTTPServer
from .app import create_app

__all__ = ["HTTPServer", "ServerConfig", "create_app", "__version__"]
