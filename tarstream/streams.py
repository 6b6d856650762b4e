"""
Byte stream adapters used by the reader and writer.

They wrap an ordinary binary file object and add the bookkeeping the tar
layer relies on: a sticky fault flag, a bulk discard, and an end-of-stream
probe that is only as reliable as the wrapped object allows.
"""

from __future__ import annotations

from typing import BinaryIO, Union

from .constants import COPY_BUFFER_SIZE
from .errors import ShortWriteError


class InputStream:
    def __init__(self, file: BinaryIO):
        self._file = file
        self._error = False
        self._eof = False
        self._scratch = bytearray(COPY_BUFFER_SIZE)

    @property
    def has_error(self) -> bool:
        return self._error

    def set_fatal_error(self) -> None:
        self._error = True

    def handle_any_error(self) -> bool:
        """Clear the fault flag, returning whether it was set."""
        had_error = self._error
        self._error = False
        return had_error

    def read(self, buffer: Union[bytearray, memoryview]) -> int:
        """Read at most ``len(buffer)`` bytes into ``buffer`` with a single call."""
        view = memoryview(buffer).cast("B")
        if not len(view):
            return 0
        readinto = getattr(self._file, "readinto", None)
        if readinto is not None:
            n = readinto(view) or 0
        else:
            data = self._file.read(len(view))
            n = len(data)
            view[:n] = data
        if n == 0:
            self._eof = True
        return n

    def fill(self, buffer: Union[bytearray, memoryview]) -> int:
        """Read until ``buffer`` is full or the stream ends; return the count."""
        view = memoryview(buffer).cast("B")
        total = 0
        while total < len(view):
            n = self.read(view[total:])
            if n == 0:
                break
            total += n
        return total

    def read_exact(self, buffer: Union[bytearray, memoryview]) -> bool:
        if self.fill(buffer) < len(memoryview(buffer).cast("B")):
            self._error = True
            return False
        return True

    def discard(self, count: int) -> bool:
        """Skip ``count`` bytes without handing them to anyone."""
        scratch = memoryview(self._scratch)
        while count > 0:
            n = self.read(scratch[: min(count, len(scratch))])
            if n == 0:
                self._error = True
                return False
            count -= n
        return True

    def unreliable_eof(self) -> bool:
        """Best-effort end-of-stream probe.

        Objects with peek() are asked directly. For anything else this only
        reports an end that an earlier read has already run into.
        """
        if self._eof:
            return True
        peek = getattr(self._file, "peek", None)
        if peek is not None:
            return not peek(1)
        return False


class OutputStream:
    def __init__(self, file: BinaryIO):
        self._file = file
        self._error = False
        self._position = 0

    @property
    def bytes_written(self) -> int:
        return self._position

    @property
    def has_error(self) -> bool:
        return self._error

    def set_fatal_error(self) -> None:
        self._error = True

    def write(self, data: Union[bytes, bytearray, memoryview]) -> int:
        written = self._file.write(data)
        if written is None:  # non-blocking raw stream that could not accept anything
            written = 0
        self._position += written
        return written

    def write_or_error(self, data: Union[bytes, bytearray, memoryview]) -> None:
        expected = len(memoryview(data).cast("B"))
        try:
            written = self.write(data)
        except OSError:
            self._error = True
            raise
        if written < expected:
            self._error = True
            raise ShortWriteError(f"wrote {written} of {expected} bytes")
