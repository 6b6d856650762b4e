from __future__ import annotations

import io
from typing import BinaryIO, Iterator, Optional, Tuple, Union

from .constants import BLOCK_SIZE, HEADER_SIZE
from .errors import (
    ArchiveFinishedError,
    HeaderError,
    InvalidHeaderError,
    StaleEntryError,
    TruncatedArchiveError,
    TruncatedHeaderError,
)
from .header import TarHeader, decode, is_valid, is_zero_block
from .streams import InputStream


def block_ceiling(offset: int) -> int:
    """Smallest multiple of BLOCK_SIZE that is >= offset."""
    return -(-offset // BLOCK_SIZE) * BLOCK_SIZE


class EntryContents(io.RawIOBase):
    """Read-only view of the data of one archive entry.

    The view is bound to the reader generation that was current when it was
    created. Once the reader advances, every operation on the view raises
    StaleEntryError instead of returning bytes that belong to another entry.
    Closing the view does not close the archive.
    """

    def __init__(self, reader: "TarReader", generation: int):
        super().__init__()
        self._reader = reader
        self._generation = generation

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def size(self) -> int:
        return self._reader._entry_size(self._generation)

    @property
    def remaining(self) -> int:
        return self._reader._entry_remaining(self._generation)

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        return self._reader._read_entry(self._generation, buffer)

    def read_exact(self, buffer) -> bool:
        """Fill ``buffer`` completely or mark the archive stream as faulted."""
        return self._reader._read_entry_exact(self._generation, buffer)

    def skip(self, count: int) -> bool:
        return self._reader._skip_entry(self._generation, count)

    def at_end_of_entry(self) -> bool:
        """Approximate end check; the declared size is the authoritative bound."""
        return self._reader._entry_at_end(self._generation)


class TarReader:
    """Forward-only reader over a stream of tar entries.

    The first header is read on construction. Typical use::

        reader = TarReader(fh)
        while not reader.finished:
            header = reader.header
            data = reader.file_contents().read()
            reader.advance()

    Archives end cleanly on a record that is not a valid header (normally the
    zero blocks of the end marker). With ``strict=True`` a non-zero record that
    fails validation raises InvalidHeaderError instead.
    """

    def __init__(self, file: Union[BinaryIO, InputStream], *, strict: bool = False):
        self._stream = file if isinstance(file, InputStream) else InputStream(file)
        self.strict = strict
        self._header: Optional[TarHeader] = None
        self._file_offset = 0
        self._generation = 0
        self._finished = False

        record = bytearray(HEADER_SIZE)
        n = self._stream.fill(record)
        if n == 0:
            # Nothing at all: an empty input holds no entries
            self._finished = True
            self._stream.handle_any_error()
            return
        if n < HEADER_SIZE:
            self._finished = True
            self._stream.handle_any_error()
            raise TruncatedHeaderError(f"stream ended after {n} bytes of the first header")
        self._accept(bytes(record))

    def __iter__(self) -> Iterator[Tuple[TarHeader, EntryContents]]:
        while not self._finished:
            yield self._header, self.file_contents()
            self.advance()

    @property
    def header(self) -> Optional[TarHeader]:
        """Most recently accepted header; check ``finished`` before trusting it."""
        return self._header

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def generation(self) -> int:
        return self._generation

    def advance(self) -> None:
        if self._finished:
            raise ArchiveFinishedError("Attempted to advance a finished archive")

        self._generation += 1

        if self._stream.has_error:
            self._finish()
            raise TruncatedArchiveError("input stream is faulted")
        if not self._stream.discard(block_ceiling(self._header.size) - self._file_offset):
            self._finish()
            raise TruncatedArchiveError(f"stream ended inside the data of {self._header.path!r}")
        self._file_offset = 0

        record = bytearray(HEADER_SIZE)
        if not self._stream.read_exact(record):
            self._finish()
            raise TruncatedHeaderError("Failed to read the header")
        self._accept(bytes(record))

    def file_contents(self) -> EntryContents:
        if self._finished:
            raise ArchiveFinishedError("No current entry: the archive is finished")
        return EntryContents(self, self._generation)

    # -- internals ---------------------------------------------------------

    def _finish(self) -> None:
        self._finished = True
        self._stream.handle_any_error()

    def _accept(self, record: bytes) -> None:
        if not is_valid(record):
            self._finished = True
            if self.strict and not is_zero_block(record):
                raise InvalidHeaderError("header failed magic/checksum validation")
            return
        try:
            header = decode(record)
        except HeaderError:
            self._finished = True
            raise
        self._header = header
        self._file_offset = 0

    # Entry offset bookkeeping. Only EntryContents calls these, always with
    # the generation it was stamped with.

    def _check_generation(self, generation: int) -> None:
        if generation != self._generation:
            raise StaleEntryError(
                f"entry contents from generation {generation} used at generation {self._generation}"
            )

    def _entry_size(self, generation: int) -> int:
        self._check_generation(generation)
        return self._header.size

    def _entry_remaining(self, generation: int) -> int:
        self._check_generation(generation)
        return max(self._header.size - self._file_offset, 0)

    def _read_entry(self, generation: int, buffer) -> int:
        self._check_generation(generation)
        if self._stream.has_error:
            return 0
        view = memoryview(buffer).cast("B")
        to_read = min(len(view), self._header.size - self._file_offset)
        if to_read <= 0:
            return 0
        n = self._stream.read(view[:to_read])
        self._file_offset += n
        return n

    def _read_entry_exact(self, generation: int, buffer) -> bool:
        self._check_generation(generation)
        view = memoryview(buffer).cast("B")
        total = 0
        while total < len(view):
            n = self._read_entry(generation, view[total:])
            if n == 0:
                break
            total += n
        if total < len(view):
            self._stream.set_fatal_error()
            return False
        return True

    def _skip_entry(self, generation: int, count: int) -> bool:
        self._check_generation(generation)
        if count < 0 or count > self._header.size - self._file_offset:
            return False
        self._file_offset += count
        return self._stream.discard(count)

    def _entry_at_end(self, generation: int) -> bool:
        self._check_generation(generation)
        return self._stream.unreliable_eof() or self._file_offset >= self._header.size
