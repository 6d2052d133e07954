"""Byte stream interface with fixed-size read and write helpers."""

from __future__ import annotations

import abc
from typing import Any


class Stream(abc.ABC):
    """A bidirectional byte stream."""

    @abc.abstractmethod
    def read(self, length: int) -> bytes:
        """Read up to ``length`` bytes; b"" means the stream was closed."""

    @abc.abstractmethod
    def write(self, data: Any) -> int:
        """Write some of ``data``; return the number of bytes written."""

    @abc.abstractmethod
    def close(self) -> None:
        """Close the stream."""

    def read_fix_size(self, length: int) -> bytes:
        """Read exactly ``length`` bytes.

        Raises EOFError when the stream ends before that many bytes arrive.
        """
        chunks = []
        left = length
        while left > 0:
            chunk = self.read(left)
            if not chunk:
                raise EOFError(
                    f"stream closed after {length - left} of {length} bytes"
                )
            chunks.append(chunk)
            left -= len(chunk)
        return b"".join(chunks)

    def write_fix_size(self, data: Any) -> int:
        """Write all of ``data``; return its length.

        Raises BrokenPipeError when the stream stops accepting bytes.
        """
        view = memoryview(data).cast("B")
        total = len(view)
        offset = 0
        while offset < total:
            written = self.write(view[offset:])
            if written <= 0:
                raise BrokenPipeError(
                    f"stream closed after {offset} of {total} bytes written"
                )
            offset += written
        return total

    def __enter__(self) -> "Stream":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()