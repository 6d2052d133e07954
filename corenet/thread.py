"""Named threads that know their own wrapper object and name."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from .util import thread_id

_UNKNOWN = "UNKNOW"
_OS_NAME_MAX = 15


class _Local(threading.local):
    thread: Optional["Thread"] = None
    name: str = _UNKNOWN


_local = _Local()


class Thread:
    """A started thread running ``cb``; construction waits until it is running."""

    def __init__(self, cb: Callable[[], None], name: str = "") -> None:
        self._cb: Optional[Callable[[], None]] = cb
        self._name = name or _UNKNOWN
        self._id = -1
        self._started = threading.Semaphore(0)
        self._thread: Optional[threading.Thread] = threading.Thread(
            target=self._run, name=self._name[:_OS_NAME_MAX], daemon=True
        )
        self._thread.start()
        self._started.acquire()

    @property
    def id(self) -> int:
        """Operating-system id of the thread."""
        return self._id

    @property
    def name(self) -> str:
        """Full name of the thread."""
        return self._name

    def join(self) -> None:
        """Wait for the thread to finish; later calls return at once."""
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    @staticmethod
    def current() -> Optional["Thread"]:
        """The Thread object running the caller, or None."""
        return _local.thread

    @staticmethod
    def current_name() -> str:
        """Name recorded for the calling thread."""
        return _local.name

    @staticmethod
    def set_current_name(name: str) -> None:
        """Rename the calling thread; an empty name is ignored."""
        if not name:
            return
        if _local.thread is not None:
            _local.thread._name = name
        _local.name = name

    def _run(self) -> None:
        _local.thread = self
        _local.name = self._name
        self._id = thread_id()
        cb, self._cb = self._cb, None
        self._started.release()
        cb()

    def __repr__(self) -> str:
        return f"Thread(name={self._name!r}, id={self._id})"