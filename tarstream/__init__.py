"""
tarstream: streaming reader and writer for tar archives.

Features:

- Forward-only reading of entries from any binary stream, one 512-byte header
  at a time, without buffering the archive.
- Accepts GNU, USTAR and POSIX.1-1988 headers; validates magic and checksum.
- Per-entry content views that refuse to read once the reader has moved on.
- Writes directories, regular files and symbolic links in the GNU dialect,
  with block padding and the two-block end-of-archive marker.

Compression, filesystem extraction, PAX/GNU long-name extensions and sparse
files are left to the caller.
"""

__version__ = "0.1"

from .errors import (
    ArchiveFaultedError,
    ArchiveFinishedError,
    EntrySizeMismatchError,
    HeaderError,
    HeaderFieldError,
    InvalidHeaderError,
    PathTooLongError,
    ShortWriteError,
    StaleEntryError,
    TarError,
    TruncatedArchiveError,
    TruncatedHeaderError,
)
from .header import Dialect, TarHeader, compute_checksum, decode, encode, is_valid, is_zero_block
from .reader import EntryContents, TarReader
from .streams import InputStream, OutputStream
from .writer import TarWriter

__all__ = [
    "__version__",
    # Header codec
    "Dialect",
    "TarHeader",
    "compute_checksum",
    "decode",
    "encode",
    "is_valid",
    "is_zero_block",
    # Streams
    "InputStream",
    "OutputStream",
    "TarReader",
    "EntryContents",
    "TarWriter",
    # Errors
    "TarError",
    "HeaderError",
    "HeaderFieldError",
    "InvalidHeaderError",
    "PathTooLongError",
    "TruncatedArchiveError",
    "TruncatedHeaderError",
    "ShortWriteError",
    "EntrySizeMismatchError",
    "ArchiveFinishedError",
    "ArchiveFaultedError",
    "StaleEntryError",
]
