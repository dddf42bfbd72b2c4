"""
Host runtime: TCP accept loop, per-connection I/O and the worker pool.
"""

from .connection import Connection
from .socket_server import SocketServer
from .thread_pool import ThreadPool

__all__ = [
    "Connection",
    "SocketServer",
    "ThreadPool",
]
