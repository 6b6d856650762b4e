from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field
from typing import Optional

from .constants import (
    CHECKSUM_OFFSET,
    CHECKSUM_SIZE,
    DEVMAJOR_SIZE,
    DEVMINOR_SIZE,
    GID_SIZE,
    GNAME_SIZE,
    GNU_MAGIC,
    GNU_VERSION,
    HEADER_SIZE,
    LINKNAME_SIZE,
    MAGIC_SIZE,
    MODE_SIZE,
    MTIME_SIZE,
    NAME_SIZE,
    POSIX1_TAR_MAGIC,
    POSIX1_TAR_VERSION,
    PREFIX_SIZE,
    REGULAR_TYPES,
    SIZE_SIZE,
    TYPE_DIRECTORY,
    TYPE_HARD_LINK,
    TYPE_NORMAL_FILE,
    TYPE_SYMLINK,
    UID_SIZE,
    UNAME_SIZE,
    USTAR_MAGIC,
    USTAR_VERSION,
    VERSION_SIZE,
)
from .errors import HeaderFieldError, PathTooLongError, TruncatedHeaderError
from .pathutil import ENCODING, ENCODING_ERRORS, join_path


# Header record (fixed 512 bytes)
#  name[100] mode[8] uid[8] gid[8] size[12] mtime[12] checksum[8] typeflag[1]
#  linkname[100] magic[6] version[2] uname[32] gname[32] devmajor[8]
#  devminor[8] prefix[155] pad[12]
_HEADER_STRUCT = struct.Struct("100s8s8s8s12s12s8s1s100s6s2s32s32s8s8s155s12s")
assert _HEADER_STRUCT.size == HEADER_SIZE

_CHECKSUM_PLACEHOLDER = b" " * CHECKSUM_SIZE
_OCTAL_DIGITS = b"01234567"
_BASE256_POSITIVE = 0x80
_BASE256_NEGATIVE = 0xFF


class Dialect(enum.Enum):
    """Recognised (magic, version) conventions.

    POSIX.1-1988 archives carry no magic at all, so for them the checksum is
    the only thing that tells a header apart from arbitrary bytes.
    """

    GNU = (GNU_MAGIC, GNU_VERSION)
    USTAR = (USTAR_MAGIC, USTAR_VERSION)
    POSIX_1988 = (POSIX1_TAR_MAGIC, POSIX1_TAR_VERSION)

    @property
    def magic(self) -> bytes:
        return self.value[0]

    @property
    def version(self) -> bytes:
        return self.value[1]

    @classmethod
    def detect(cls, magic: bytes, version: bytes) -> Optional["Dialect"]:
        for dialect in cls:
            if dialect.value == (magic, version):
                return dialect
        return None


@dataclass
class TarHeader:
    name: str = ""
    mode: int = 0
    uid: int = 0
    gid: int = 0
    size: int = 0
    mtime: int = 0
    # Derived from the other fields on encode; irrelevant to equality
    checksum: int = field(default=0, compare=False)
    type_flag: bytes = TYPE_NORMAL_FILE
    link_name: str = ""
    magic: bytes = GNU_MAGIC
    version: bytes = GNU_VERSION
    uname: str = ""
    gname: str = ""
    devmajor: int = 0
    devminor: int = 0
    prefix: str = ""

    @property
    def path(self) -> str:
        """Full entry path: prefix and name joined by '/'."""
        return join_path(self.prefix, self.name)

    @property
    def dialect(self) -> Optional[Dialect]:
        return Dialect.detect(self.magic, self.version)

    @property
    def is_file(self) -> bool:
        return self.type_flag in REGULAR_TYPES and not self.is_directory

    @property
    def is_directory(self) -> bool:
        # Pre-POSIX archives mark directories only by the trailing slash
        if self.type_flag == TYPE_DIRECTORY:
            return True
        return self.type_flag in REGULAR_TYPES and self.name.endswith("/")

    @property
    def is_symlink(self) -> bool:
        return self.type_flag == TYPE_SYMLINK

    @property
    def is_hardlink(self) -> bool:
        return self.type_flag == TYPE_HARD_LINK


# ---------------------------------------------------------------------------
# Field helpers


def _parse_octal(raw: bytes, name: str) -> int:
    text = raw.split(b"\x00", 1)[0].strip(b" ")
    if not text:
        return 0
    if text.strip(_OCTAL_DIGITS):
        raise HeaderFieldError(name, f"not an octal number: {raw!r}")
    return int(text, 8)


def _decode_number(raw: bytes, name: str) -> int:
    # GNU base-256: a leading 0x80 (positive) or 0xff (negative) byte followed
    # by a big-endian binary value.
    if raw[0] in (_BASE256_POSITIVE, _BASE256_NEGATIVE):
        n = int.from_bytes(raw[1:], "big")
        if raw[0] == _BASE256_NEGATIVE:
            n -= 256 ** (len(raw) - 1)
        return n
    return _parse_octal(raw, name)


def _encode_octal(value: int, width: int, name: str) -> bytes:
    digits = width - 1  # room for the NUL terminator
    if not 0 <= value < 8 ** digits:
        raise HeaderFieldError(name, f"{value} does not fit {digits} octal digits")
    return b"%0*o\x00" % (digits, value)


def _encode_number(value: int, width: int, name: str) -> bytes:
    value = int(value)
    if 0 <= value < 8 ** (width - 1):
        return _encode_octal(value, width, name)
    limit = 256 ** (width - 1)
    if 0 <= value < limit:
        return bytes([_BASE256_POSITIVE]) + value.to_bytes(width - 1, "big")
    if -limit <= value < 0:
        return bytes([_BASE256_NEGATIVE]) + (limit + value).to_bytes(width - 1, "big")
    raise HeaderFieldError(name, f"{value} is out of range for a {width}-byte field")


def _decode_str(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode(ENCODING, ENCODING_ERRORS)


def _encode_str(value: str, width: int, name: str, *, path: bool = False) -> bytes:
    raw = value.encode(ENCODING, ENCODING_ERRORS)
    if len(raw) > width:
        message = f"{len(raw)} bytes exceed the {width}-byte field"
        if path:
            raise PathTooLongError(f"{name}: {message}: {value!r}")
        raise HeaderFieldError(name, message)
    return raw


def _fixed(raw: bytes, width: int, name: str) -> bytes:
    if len(raw) != width:
        raise HeaderFieldError(name, f"expected exactly {width} bytes, got {len(raw)}")
    return raw


# ---------------------------------------------------------------------------
# Codec


def is_zero_block(record: bytes) -> bool:
    """True for an all-zero record, the end-of-archive marker."""
    return not any(record)


def compute_checksum(record: bytes) -> int:
    """Unsigned byte sum with the checksum field counted as eight spaces."""
    stored = record[CHECKSUM_OFFSET : CHECKSUM_OFFSET + CHECKSUM_SIZE]
    return sum(record) - sum(stored) + sum(_CHECKSUM_PLACEHOLDER)


def detect_dialect(record: bytes) -> Optional[Dialect]:
    fields = _HEADER_STRUCT.unpack(record)
    return Dialect.detect(fields[9], fields[10])


def is_valid(record: bytes) -> bool:
    if len(record) != HEADER_SIZE:
        return False
    if detect_dialect(record) is None:
        return False
    try:
        stored = _parse_octal(record[CHECKSUM_OFFSET : CHECKSUM_OFFSET + CHECKSUM_SIZE], "checksum")
    except HeaderFieldError:
        return False
    return stored == compute_checksum(record)


def decode(record: bytes) -> TarHeader:
    """Decode a 512-byte record.

    Raises TruncatedHeaderError for a record of the wrong length and
    HeaderFieldError for numeric fields that hold anything but a number. The
    checksum is decoded but not verified; use is_valid() for that.
    """
    if len(record) != HEADER_SIZE:
        raise TruncatedHeaderError(f"header record is {len(record)} bytes, expected {HEADER_SIZE}")
    (
        name,
        mode,
        uid,
        gid,
        size,
        mtime,
        checksum,
        type_flag,
        link_name,
        magic,
        version,
        uname,
        gname,
        devmajor,
        devminor,
        prefix,
        _pad,
    ) = _HEADER_STRUCT.unpack(record)
    header = TarHeader(
        name=_decode_str(name),
        mode=_decode_number(mode, "mode"),
        uid=_decode_number(uid, "uid"),
        gid=_decode_number(gid, "gid"),
        size=_decode_number(size, "size"),
        mtime=_decode_number(mtime, "mtime"),
        checksum=_parse_octal(checksum, "checksum"),
        type_flag=type_flag,
        link_name=_decode_str(link_name),
        magic=magic,
        version=version,
        uname=_decode_str(uname),
        gname=_decode_str(gname),
        devmajor=_decode_number(devmajor, "devmajor"),
        devminor=_decode_number(devminor, "devminor"),
        prefix=_decode_str(prefix),
    )
    if header.size < 0:
        raise HeaderFieldError("size", f"negative size {header.size}")
    return header


def encode(header: TarHeader) -> bytes:
    """Encode ``header`` into a 512-byte record with a fresh checksum.

    The checksum attribute of ``header`` is ignored. Nothing is truncated:
    oversized values raise PathTooLongError or HeaderFieldError.
    """
    if len(header.type_flag) != 1:
        raise HeaderFieldError("type_flag", f"expected a single byte, got {header.type_flag!r}")
    if header.size < 0:
        raise HeaderFieldError("size", f"negative size {header.size}")
    pre = _HEADER_STRUCT.pack(
        _encode_str(header.name, NAME_SIZE, "name", path=True),
        _encode_octal(header.mode, MODE_SIZE, "mode"),
        _encode_number(header.uid, UID_SIZE, "uid"),
        _encode_number(header.gid, GID_SIZE, "gid"),
        _encode_number(header.size, SIZE_SIZE, "size"),
        _encode_number(header.mtime, MTIME_SIZE, "mtime"),
        _CHECKSUM_PLACEHOLDER,
        header.type_flag,
        _encode_str(header.link_name, LINKNAME_SIZE, "link_name", path=True),
        _fixed(header.magic, MAGIC_SIZE, "magic"),
        _fixed(header.version, VERSION_SIZE, "version"),
        _encode_str(header.uname, UNAME_SIZE, "uname"),
        _encode_str(header.gname, GNAME_SIZE, "gname"),
        _encode_octal(header.devmajor, DEVMAJOR_SIZE, "devmajor"),
        _encode_octal(header.devminor, DEVMINOR_SIZE, "devminor"),
        _encode_str(header.prefix, PREFIX_SIZE, "prefix", path=True),
        b"",
    )
    # Six octal digits, NUL, space
    checksum = b"%06o\x00 " % compute_checksum(pre)
    return pre[:CHECKSUM_OFFSET] + checksum + pre[CHECKSUM_OFFSET + CHECKSUM_SIZE :]
