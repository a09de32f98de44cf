"""
Networking and concurrency core.

    SocketServer  accepts TCP connections
    Connection    reads requests / writes responses on one client socket
    ThreadPool    runs each connection on a worker thread
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState, RequestTooLarge
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "RequestTooLarge",
    "ThreadPool",
]
