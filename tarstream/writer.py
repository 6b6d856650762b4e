from __future__ import annotations

from typing import BinaryIO, Optional, Union

from .constants import (
    BLOCK_SIZE,
    COPY_BUFFER_SIZE,
    DEFAULT_DIRECTORY_MODE,
    DEFAULT_MTIME,
    END_OF_ARCHIVE_BLOCKS,
    PORTABLE_MTIME,
    TYPE_DIRECTORY,
    TYPE_NORMAL_FILE,
    TYPE_SYMLINK,
)
from .errors import ArchiveFaultedError, ArchiveFinishedError, EntrySizeMismatchError
from .header import Dialect, TarHeader, encode
from .pathutil import norm_path, split_path
from .streams import OutputStream


_ZERO_BLOCK = bytes(BLOCK_SIZE)

# Headers are always written in the GNU dialect; the reader accepts all three.
_WRITE_DIALECT = Dialect.GNU


def padding_for(length: int) -> int:
    """Zero bytes needed after ``length`` bytes of data to reach a block boundary."""
    return (BLOCK_SIZE - length % BLOCK_SIZE) % BLOCK_SIZE


class TarWriter:
    """Write tar entries to a binary stream.

    Args:
      file: binary file object (or OutputStream) receiving the archive.
      default_mtime: mtime for entries that do not pass one. May be an
          integer or the value 'portable' to use the date 2000-01-01.
      uid, gid, uname, gname: ownership recorded on every entry.

    Call finish() (or leave a ``with`` block normally) to append the
    end-of-archive marker. The writer never closes ``file``.
    """

    def __init__(
        self,
        file: Union[BinaryIO, OutputStream],
        *,
        default_mtime: Union[int, str, None] = None,
        uid: int = 0,
        gid: int = 0,
        uname: str = "",
        gname: str = "",
    ):
        self._stream = file if isinstance(file, OutputStream) else OutputStream(file)
        if default_mtime is None:
            self.default_mtime = DEFAULT_MTIME
        elif default_mtime == "portable":
            self.default_mtime = PORTABLE_MTIME
        else:
            self.default_mtime = int(default_mtime)
        self.uid = uid
        self.gid = gid
        self.uname = uname
        self.gname = gname
        self._finished = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None and not self._finished:
            self.finish()

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def bytes_written(self) -> int:
        return self._stream.bytes_written

    def add_directory(self, path: str, mode: int = DEFAULT_DIRECTORY_MODE, *, mtime: Optional[int] = None) -> None:
        self._check_open()
        # Old tar implementations assume directory names end with a /
        header = self._build_header(_require_path(path) + "/", mode, TYPE_DIRECTORY, mtime=mtime)
        self._write_header(header)

    def add_file(
        self,
        path: str,
        mode: int,
        data: Union[bytes, bytearray, memoryview],
        *,
        mtime: Optional[int] = None,
    ) -> None:
        self._check_open()
        view = memoryview(data).cast("B")
        header = self._build_header(_require_path(path), mode, TYPE_NORMAL_FILE, size=len(view), mtime=mtime)
        self._write_header(header)
        n_written = 0
        while n_written < len(view):
            chunk = view[n_written : n_written + BLOCK_SIZE]
            self._stream.write_or_error(chunk)
            n_written += len(chunk)
        self._write_padding(n_written)

    def add_fileobj(
        self,
        path: str,
        mode: int,
        fileobj: BinaryIO,
        size: int,
        *,
        mtime: Optional[int] = None,
    ) -> None:
        """Like add_file(), streaming exactly ``size`` bytes from ``fileobj``."""
        self._check_open()
        header = self._build_header(_require_path(path), mode, TYPE_NORMAL_FILE, size=size, mtime=mtime)
        self._write_header(header)
        n_written = 0
        try:
            while n_written < size:
                chunk = fileobj.read(min(COPY_BUFFER_SIZE, size - n_written))
                if not chunk:
                    raise EntrySizeMismatchError(
                        f"{path!r}: source ended after {n_written} of {size} bytes"
                    )
                self._stream.write_or_error(chunk)
                n_written += len(chunk)
        except Exception:
            # The header is already out; the entry cannot be completed.
            self._stream.set_fatal_error()
            raise
        self._write_padding(n_written)

    def add_link(
        self,
        path: str,
        mode: int,
        link_target: str,
        *,
        mtime: Optional[int] = None,
    ) -> None:
        self._check_open()
        header = self._build_header(
            _require_path(path), mode, TYPE_SYMLINK, link_name=link_target, mtime=mtime
        )
        self._write_header(header)

    def finish(self) -> None:
        self._check_open()
        # Two empty records signify the end of the archive
        for _ in range(END_OF_ARCHIVE_BLOCKS):
            self._stream.write_or_error(_ZERO_BLOCK)
        self._finished = True

    # -- internals ---------------------------------------------------------

    def _check_open(self) -> None:
        if self._finished:
            raise ArchiveFinishedError("Attempted to write to a finished archive")
        if self._stream.has_error:
            raise ArchiveFaultedError("A previous write failed; the archive is incomplete")

    def _build_header(
        self,
        path: str,
        mode: int,
        type_flag: bytes,
        *,
        size: int = 0,
        link_name: str = "",
        mtime: Optional[int] = None,
    ) -> TarHeader:
        prefix, name = split_path(path)
        return TarHeader(
            name=name,
            prefix=prefix,
            mode=mode,
            uid=self.uid,
            gid=self.gid,
            size=size,
            mtime=self.default_mtime if mtime is None else int(mtime),
            type_flag=type_flag,
            link_name=link_name,
            magic=_WRITE_DIALECT.magic,
            version=_WRITE_DIALECT.version,
            uname=self.uname,
            gname=self.gname,
        )

    def _write_header(self, header: TarHeader) -> None:
        # Encoding happens before any byte is written, so an oversized path
        # leaves the output untouched.
        self._stream.write_or_error(encode(header))

    def _write_padding(self, length: int) -> None:
        pad = padding_for(length)
        if pad:
            self._stream.write_or_error(_ZERO_BLOCK[:pad])


def _require_path(path: str) -> str:
    normalized = norm_path(path)
    if not normalized:
        raise ValueError(f"Empty archive path: {path!r}")
    return normalized
