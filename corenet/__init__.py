"""Networking building blocks: sockets, byte streams, a threaded TCP server, timers, named threads, URIs and utilities."""

__version__ = "0.1.0"

__all__ = ["sock", "socket_stream", "stream", "tcp_server", "thread", "timer", "uri", "util"]