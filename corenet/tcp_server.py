"""A TCP server that accepts connections on background threads."""

from __future__ import annotations

import logging
import select
import threading
from concurrent.futures import Executor
from typing import Any, List, Optional, Sequence

from .sock import Socket

_log = logging.getLogger(__name__)

DEFAULT_RECV_TIMEOUT_MS = 60 * 1000 * 2
_POLL_SECONDS = 0.1


class TcpServer:
    """Listens on one or more addresses and hands each client to ``handle_client``.

    Clients are handled on ``io_worker`` when one is given, otherwise each
    on a thread of its own.
    """

    def __init__(
        self,
        io_worker: Optional[Executor] = None,
        recv_timeout: int = DEFAULT_RECV_TIMEOUT_MS,
        name: str = "corenet/1.0.0",
    ) -> None:
        self._io_worker = io_worker
        self._recv_timeout = recv_timeout
        self._name = name
        self._type = "tcp"
        self._socks: List[Socket] = []
        self._stopped = threading.Event()
        self._stopped.set()
        self._accept_threads: List[threading.Thread] = []

    @property
    def recv_timeout(self) -> int:
        """Receive timeout given to accepted clients, in milliseconds."""
        return self._recv_timeout

    @recv_timeout.setter
    def recv_timeout(self, ms: int) -> None:
        self._recv_timeout = ms

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = value

    @property
    def is_stop(self) -> bool:
        """Whether the server is not accepting connections."""
        return self._stopped.is_set()

    @property
    def sockets(self) -> List[Socket]:
        """The listening sockets."""
        return list(self._socks)

    def bind(self, address: Any) -> bool:
        """Bind and listen on one address; report success."""
        return not self.bind_all([address])

    def bind_all(self, addresses: Sequence[Any]) -> List[Any]:
        """Bind and listen on every address; return those that failed.

        When any address fails, no listening socket is kept.
        """
        fails: List[Any] = []
        for address in addresses:
            try:
                sock = Socket.create_tcp(address)
            except ValueError as exc:
                _log.error("bind fail: %s addr=[%r]", exc, address)
                fails.append(address)
                continue
            try:
                sock.bind(address)
                sock.listen()
            except (OSError, ValueError) as exc:
                _log.error("bind fail: %s addr=[%r]", exc, address)
                sock.close()
                fails.append(address)
                continue
            self._socks.append(sock)

        if fails:
            for sock in self._socks:
                sock.close()
            self._socks.clear()
            return fails

        for sock in self._socks:
            _log.info(
                "type=%s name=%s server bind success: %s", self._type, self._name, sock
            )
        return []

    def start(self) -> bool:
        """Start accepting on every bound socket."""
        if not self._stopped.is_set():
            return True
        self._stopped.clear()
        for sock in self._socks:
            thread = threading.Thread(
                target=self._accept_loop, args=(sock,), daemon=True
            )
            self._accept_threads.append(thread)
            thread.start()
        return True

    def stop(self) -> None:
        """Stop accepting and close the listening sockets."""
        self._stopped.set()
        current = threading.current_thread()
        for thread in self._accept_threads:
            if thread is not current:
                thread.join()
        self._accept_threads.clear()
        for sock in self._socks:
            sock.close()
        self._socks.clear()

    def handle_client(self, client: Socket) -> None:
        """Handle an accepted connection; the default only logs it."""
        _log.info("handleClient: %s", client)

    def to_string(self, prefix: str = "") -> str:
        """Describe the server and its listening sockets."""
        lines = [
            f"{prefix}[type={self._type} name={self._name} "
            f"recv_timeout={self._recv_timeout}]\n"
        ]
        pfx = prefix or "    "
        lines.extend(f"{pfx}{pfx}{sock}\n" for sock in self._socks)
        return "".join(lines)

    def __str__(self) -> str:
        return self.to_string()

    def __enter__(self) -> "TcpServer":
        return self

    def __exit__(self, *exc: object) -> None:
        self.stop()

    def _accept_loop(self, sock: Socket) -> None:
        while not self._stopped.is_set():
            fd = sock.handle
            if fd < 0:
                break
            try:
                ready, _, _ = select.select([fd], [], [], _POLL_SECONDS)
            except (OSError, ValueError):
                break
            if not ready or self._stopped.is_set():
                continue
            try:
                client = sock.accept()
            except OSError as exc:
                if self._stopped.is_set():
                    break
                _log.error("accept error: %s", exc)
                continue
            client.recv_timeout = self._recv_timeout
            self._dispatch(client)

    def _dispatch(self, client: Socket) -> None:
        if self._io_worker is not None:
            self._io_worker.submit(self._run_client, client)
        else:
            threading.Thread(target=self._run_client, args=(client,), daemon=True).start()

    def _run_client(self, client: Socket) -> None:
        try:
            self.handle_client(client)
        except Exception:
            _log.exception("handle_client failed for %s", client)