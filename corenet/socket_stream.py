"""A stream that reads from and writes to a :class:`~corenet.sock.Socket`."""

from __future__ import annotations

import errno
from typing import Any, Optional

from .sock import Socket, _format_address
from .stream import Stream


class SocketStream(Stream):
    """Stream over a socket; an owning stream closes the socket on exit."""

    def __init__(self, sock: Optional[Socket], owner: bool = True) -> None:
        self._socket = sock
        self._owner = owner

    @property
    def socket(self) -> Optional[Socket]:
        """The wrapped socket."""
        return self._socket

    @property
    def owner(self) -> bool:
        """Whether the stream closes its socket when it is left."""
        return self._owner

    def is_connected(self) -> bool:
        """Whether there is a socket and it is connected."""
        return self._socket is not None and self._socket.is_connected()

    def _connected_socket(self) -> Socket:
        if not self.is_connected():
            raise OSError(errno.ENOTCONN, "stream socket is not connected")
        return self._socket

    def read(self, length: int) -> bytes:
        """Receive up to ``length`` bytes; b"" means the peer closed."""
        return self._connected_socket().recv(length)

    def write(self, data: Any) -> int:
        """Send bytes, or a list of buffers at once; return bytes sent."""
        return self._connected_socket().send(data)

    def close(self) -> None:
        """Close the socket."""
        if self._socket is not None:
            self._socket.close()

    def remote_address(self) -> Optional[Any]:
        """Peer address of the socket, or None."""
        if self._socket is None:
            return None
        return self._socket.remote_address()

    def local_address(self) -> Optional[Any]:
        """Local address of the socket, or None."""
        if self._socket is None:
            return None
        return self._socket.local_address()

    def remote_address_string(self) -> str:
        """Peer address as text, "" when there is none."""
        address = self.remote_address()
        return "" if address is None else _format_address(address)

    def local_address_string(self) -> str:
        """Local address as text, "" when there is none."""
        address = self.local_address()
        return "" if address is None else _format_address(address)

    def __exit__(self, *exc: object) -> None:
        if self._owner:
            self.close()