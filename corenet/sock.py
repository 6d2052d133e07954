"""A socket object that tracks its family, type, connection state and addresses."""

from __future__ import annotations

import errno
import os
import socket
from typing import Any, List, Optional, Sequence, Tuple, Union

from .util import unlink

Address = Any
Buffers = Union[bytes, bytearray, memoryview, Sequence[Union[bytes, bytearray, memoryview]]]

TCP = socket.SOCK_STREAM
UDP = socket.SOCK_DGRAM
IPV4 = socket.AF_INET
IPV6 = socket.AF_INET6
UNIX = socket.AF_UNIX


def family_of(address: Address) -> int:
    """Address family of a Python socket address (tuple or Unix path)."""
    if isinstance(address, (str, bytes, os.PathLike)):
        return socket.AF_UNIX
    if isinstance(address, tuple):
        if len(address) == 4:
            return socket.AF_INET6
        if len(address) == 2:
            return socket.AF_INET6 if ":" in str(address[0]) else socket.AF_INET
    raise ValueError(f"unrecognised socket address: {address!r}")


def _format_address(address: Address) -> str:
    if isinstance(address, bytes):
        return address.decode("utf-8", errors="replace")
    if isinstance(address, (str, os.PathLike)):
        return os.fspath(address)
    if isinstance(address, tuple) and len(address) >= 2:
        host, port = address[0], address[1]
        if len(address) == 4 or ":" in str(host):
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    return str(address)


def _is_buffer_list(data: Buffers) -> bool:
    return isinstance(data, (list, tuple))


class Socket:
    """A socket that is created lazily on bind or connect."""

    def __init__(self, family: int, sock_type: int = TCP, protocol: int = 0) -> None:
        self._sock: Optional[socket.socket] = None
        self._family = family
        self._type = sock_type
        self._protocol = protocol
        self._connected = False
        self._local: Optional[Address] = None
        self._remote: Optional[Address] = None
        self._send_timeout = -1
        self._recv_timeout = -1

    # --- factories ----------------------------------------------------------

    @classmethod
    def create_tcp(cls, address: Address) -> "Socket":
        """TCP socket matching the family of ``address``."""
        return cls(family_of(address), TCP, 0)

    @classmethod
    def create_udp(cls, address: Address) -> "Socket":
        """UDP socket matching the family of ``address``, ready to use."""
        return cls._ready_udp(family_of(address))

    @classmethod
    def create_tcp_socket(cls) -> "Socket":
        """IPv4 TCP socket."""
        return cls(IPV4, TCP, 0)

    @classmethod
    def create_udp_socket(cls) -> "Socket":
        """IPv4 UDP socket, ready to use."""
        return cls._ready_udp(IPV4)

    @classmethod
    def create_tcp_socket6(cls) -> "Socket":
        """IPv6 TCP socket."""
        return cls(IPV6, TCP, 0)

    @classmethod
    def create_udp_socket6(cls) -> "Socket":
        """IPv6 UDP socket, ready to use."""
        return cls._ready_udp(IPV6)

    @classmethod
    def create_unix_tcp_socket(cls) -> "Socket":
        """Unix stream socket."""
        return cls(UNIX, TCP, 0)

    @classmethod
    def create_unix_udp_socket(cls) -> "Socket":
        """Unix datagram socket."""
        return cls(UNIX, UDP, 0)

    @classmethod
    def _ready_udp(cls, family: int) -> "Socket":
        sock = cls(family, UDP, 0)
        sock._new_sock()
        sock._connected = True
        return sock

    # --- attributes ---------------------------------------------------------

    @property
    def family(self) -> int:
        return self._family

    @property
    def sock_type(self) -> int:
        return self._type

    @property
    def protocol(self) -> int:
        return self._protocol

    @property
    def handle(self) -> int:
        """File descriptor of the socket, -1 when there is none."""
        return self._sock.fileno() if self._sock is not None else -1

    @property
    def send_timeout(self) -> int:
        """Send timeout in milliseconds; -1 means none."""
        return self._send_timeout

    @send_timeout.setter
    def send_timeout(self, ms: Optional[int]) -> None:
        self._send_timeout = -1 if ms is None or ms < 0 else int(ms)

    @property
    def recv_timeout(self) -> int:
        """Receive timeout in milliseconds; -1 means none."""
        return self._recv_timeout

    @recv_timeout.setter
    def recv_timeout(self, ms: Optional[int]) -> None:
        self._recv_timeout = -1 if ms is None or ms < 0 else int(ms)

    def is_connected(self) -> bool:
        return self._connected

    def is_valid(self) -> bool:
        """Whether an operating-system socket exists."""
        return self._sock is not None

    # --- life cycle ---------------------------------------------------------

    def accept(self) -> "Socket":
        """Accept a connection and wrap it in a new Socket."""
        if self._sock is None:
            raise OSError(errno.EBADF, "accept on a socket that is not open")
        conn, _ = self._sock.accept()
        client = Socket(self._family, self._type, self._protocol)
        client._init(conn)
        return client

    def bind(self, address: Address) -> None:
        """Bind to ``address``; a stale Unix socket file is removed first."""
        self._local = address
        self._ensure_sock()
        if family_of(address) != self._family:
            raise ValueError(
                f"socket family {self._family} does not match address "
                f"{_format_address(address)}"
            )
        if self._family == UNIX:
            probe = Socket.create_unix_tcp_socket()
            try:
                probe.connect(address)
            except OSError:
                unlink(os.fspath(address), True)
            else:
                probe.close()
                raise OSError(
                    errno.EADDRINUSE, "unix socket in use", _format_address(address)
                )
        self._sock.bind(address)
        self._local = None
        self.local_address()

    def connect(self, address: Address, timeout_ms: Optional[int] = None) -> None:
        """Connect to ``address``, optionally within ``timeout_ms``.

        The socket is closed when the connection fails.
        """
        self._remote = address
        self._ensure_sock()
        if family_of(address) != self._family:
            raise ValueError(
                f"socket family {self._family} does not match address "
                f"{_format_address(address)}"
            )
        sock = self._sock
        sock.settimeout(None if timeout_ms is None else timeout_ms / 1000)
        try:
            sock.connect(address)
        except OSError:
            self.close()
            raise
        sock.settimeout(None)
        self._connected = True
        self.remote_address()
        self.local_address()

    def reconnect(self, timeout_ms: Optional[int] = None) -> None:
        """Connect again to the last remote address."""
        if self._remote is None:
            raise OSError(errno.EDESTADDRREQ, "no remote address to reconnect to")
        self._local = None
        self.connect(self._remote, timeout_ms)

    def listen(self, backlog: int = socket.SOMAXCONN) -> None:
        """Start listening; the socket must be bound."""
        if self._sock is None:
            raise OSError(errno.EBADF, "listen on a socket that is not open")
        self._sock.listen(backlog)

    def close(self) -> None:
        """Close the socket; closing twice is harmless."""
        self._connected = False
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self) -> "Socket":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # --- data ---------------------------------------------------------------

    def _require_connected(self) -> socket.socket:
        if not self._connected or self._sock is None:
            raise OSError(errno.ENOTCONN, "socket is not connected")
        return self._sock

    @staticmethod
    def _apply_timeout(sock: socket.socket, ms: int) -> None:
        sock.settimeout(None if ms < 0 else ms / 1000)

    def send(self, data: Buffers, flags: int = 0) -> int:
        """Send bytes, or a list of buffers at once; return bytes sent."""
        sock = self._require_connected()
        self._apply_timeout(sock, self._send_timeout)
        if _is_buffer_list(data):
            return sock.sendmsg(list(data), [], flags)
        return sock.send(data, flags)

    def send_to(self, data: Buffers, to: Address, flags: int = 0) -> int:
        """Send to ``to``; return bytes sent."""
        sock = self._require_connected()
        self._apply_timeout(sock, self._send_timeout)
        if _is_buffer_list(data):
            return sock.sendmsg(list(data), [], flags, to)
        return sock.sendto(data, flags, to)

    def recv(self, length: int, flags: int = 0) -> bytes:
        """Receive up to ``length`` bytes; b"" means the peer closed."""
        sock = self._require_connected()
        self._apply_timeout(sock, self._recv_timeout)
        return sock.recv(length, flags)

    def recv_from(self, length: int, flags: int = 0) -> Tuple[bytes, Address]:
        """Receive up to ``length`` bytes with the sender's address."""
        sock = self._require_connected()
        self._apply_timeout(sock, self._recv_timeout)
        return sock.recvfrom(length, flags)

    # --- addresses ----------------------------------------------------------

    def remote_address(self) -> Optional[Address]:
        """Peer address, or None when it cannot be had."""
        if self._remote is not None:
            return self._remote
        if self._sock is None:
            return None
        try:
            self._remote = self._sock.getpeername()
        except OSError:
            return None
        return self._remote

    def local_address(self) -> Optional[Address]:
        """Local address, or None when it cannot be had."""
        if self._local is not None:
            return self._local
        if self._sock is None:
            return None
        try:
            self._local = self._sock.getsockname()
        except OSError:
            return None
        return self._local

    def error(self) -> int:
        """Pending socket error number, 0 when there is none."""
        if self._sock is None:
            return errno.EBADF
        try:
            return self._sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        except OSError as exc:
            return exc.errno or 0

    # --- internals ----------------------------------------------------------

    def _init_sock(self) -> None:
        sock = self._sock
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        except OSError:
            pass
        if self._type == TCP and self._family in (IPV4, IPV6):
            try:
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            except OSError:
                pass

    def _new_sock(self) -> None:
        self._sock = socket.socket(self._family, self._type, self._protocol)
        self._init_sock()

    def _ensure_sock(self) -> None:
        if self._sock is None:
            self._new_sock()

    def _init(self, conn: socket.socket) -> None:
        self._sock = conn
        self._connected = True
        self._init_sock()
        self.local_address()
        self.remote_address()

    def __str__(self) -> str:
        parts: List[str] = [
            f"[Socket sock={self.handle}",
            f" is_connected={int(self._connected)}",
            f" family={int(self._family)}",
            f" type={int(self._type)}",
            f" protocol={self._protocol}",
        ]
        if self._local is not None:
            parts.append(f" local_address={_format_address(self._local)}")
        if self._remote is not None:
            parts.append(f" remote_address={_format_address(self._remote)}")
        parts.append("]")
        return "".join(parts)

    def __repr__(self) -> str:
        return str(self)