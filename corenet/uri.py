"""URI parsing and formatting."""

from __future__ import annotations

import re
import socket
from typing import Optional, Tuple

_SCHEME = re.compile(r"([A-Za-z]+)://(.*)\Z", re.DOTALL)
_MAX_PORT = 0xFFFF


def _split_path(rest: str) -> Tuple[str, str, str]:
    rest, _, fragment = rest.partition("#")
    path, _, query = rest.partition("?")
    return path, query, fragment


class Uri:
    """A URI split into scheme, userinfo, host, port, path, query and fragment."""

    def __init__(
        self,
        scheme: str = "",
        userinfo: str = "",
        host: str = "",
        path: str = "",
        query: str = "",
        fragment: str = "",
        port: int = 0,
    ) -> None:
        self.scheme = scheme
        self.userinfo = userinfo
        self.host = host
        self._path = path
        self.query = query
        self.fragment = fragment
        self._port = port

    @classmethod
    def create(cls, text: str) -> "Uri":
        """Parse ``text``; raise ValueError when it is not a valid URI."""
        if not text or any(ord(ch) <= 0x20 or ord(ch) == 0x7F for ch in text):
            raise ValueError(f"invalid uri: {text!r}")
        if text.startswith("/"):
            path, query, fragment = _split_path(text)
            return cls(path=path, query=query, fragment=fragment)

        match = _SCHEME.match(text)
        if not match:
            raise ValueError(f"invalid uri: {text!r}")
        scheme, rest = match.group(1), match.group(2)
        cut = min((i for i in (rest.find(c) for c in "/?#") if i >= 0), default=len(rest))
        authority, rest = rest[:cut], rest[cut:]

        userinfo, at, hostport = authority.rpartition("@")
        if not at:
            userinfo = ""
        if hostport.startswith("["):
            end = hostport.find("]")
            if end < 0:
                raise ValueError(f"invalid uri host: {text!r}")
            host, after = hostport[1:end], hostport[end + 1:]
            if after and not after.startswith(":"):
                raise ValueError(f"invalid uri host: {text!r}")
            port_text, has_port = after[1:], bool(after)
        else:
            host, sep, port_text = hostport.partition(":")
            has_port = bool(sep)
        if not host:
            raise ValueError(f"invalid uri host: {text!r}")

        if has_port:
            if not port_text.isdigit() or not port_text.isascii():
                raise ValueError(f"invalid uri port: {text!r}")
            port = int(port_text)
            if port > _MAX_PORT:
                raise ValueError(f"invalid uri port: {text!r}")
        elif scheme in ("http", "ws"):
            port = 80
        elif scheme == "https":
            port = 443
        else:
            port = 0

        path, query, fragment = _split_path(rest)
        return cls(scheme, userinfo, host, path, query, fragment, port)

    @property
    def path(self) -> str:
        """Path, "/" when none was given."""
        return self._path or "/"

    @path.setter
    def path(self, value: str) -> None:
        self._path = value

    @property
    def port(self) -> int:
        """Port, falling back to the scheme's well-known port."""
        if self._port:
            return self._port
        if self.scheme in ("http", "ws"):
            return 80
        if self.scheme in ("https", "wss"):
            return 443
        return self._port

    @port.setter
    def port(self, value: int) -> None:
        self._port = value

    def is_default_port(self) -> bool:
        """Whether the stored port is the scheme's default."""
        if self.scheme in ("http", "ws"):
            return self._port == 80
        if self.scheme == "https":
            return self._port == 443
        return False

    def create_address(self) -> Optional[tuple]:
        """Resolve the host to a socket address carrying the port, or None."""
        if not self.host:
            return None
        try:
            infos = socket.getaddrinfo(self.host, None, type=socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError):
            return None
        for family, _, _, _, sockaddr in infos:
            if family in (socket.AF_INET, socket.AF_INET6):
                return (sockaddr[0], self.port, *sockaddr[2:])
        return None

    def __str__(self) -> str:
        return "".join(
            (
                self.scheme,
                "://",
                self.userinfo,
                "@" if self.userinfo else "",
                self.host,
                "" if self.is_default_port() else f":{self._port}",
                self.path,
                "?" if self.query else "",
                self.query,
                "#" if self.fragment else "",
                self.fragment,
            )
        )

    def __repr__(self) -> str:
        return f"Uri({str(self)!r})"