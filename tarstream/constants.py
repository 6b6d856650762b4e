# Block geometry
BLOCK_SIZE = 512
HEADER_SIZE = 512  # a header record fills exactly one block
END_OF_ARCHIVE_BLOCKS = 2


# Field widths of the classic header layout, in on-disk order
NAME_SIZE = 100
MODE_SIZE = 8
UID_SIZE = 8
GID_SIZE = 8
SIZE_SIZE = 12
MTIME_SIZE = 12
CHECKSUM_SIZE = 8
TYPEFLAG_SIZE = 1
LINKNAME_SIZE = 100
MAGIC_SIZE = 6
VERSION_SIZE = 2
UNAME_SIZE = 32
GNAME_SIZE = 32
DEVMAJOR_SIZE = 8
DEVMINOR_SIZE = 8
PREFIX_SIZE = 155
PAD_SIZE = 12

CHECKSUM_OFFSET = NAME_SIZE + MODE_SIZE + UID_SIZE + GID_SIZE + SIZE_SIZE + MTIME_SIZE  # 148


# Magic/version pairs
GNU_MAGIC = b"ustar "
GNU_VERSION = b" \x00"
USTAR_MAGIC = b"ustar\x00"
USTAR_VERSION = b"00"
POSIX1_TAR_MAGIC = b"\x00" * MAGIC_SIZE
POSIX1_TAR_VERSION = b"\x00" * VERSION_SIZE


# Type flags
TYPE_NORMAL_FILE = b"0"
TYPE_ALIGNED_NORMAL_FILE = b"\x00"  # pre-POSIX regular file
TYPE_HARD_LINK = b"1"
TYPE_SYMLINK = b"2"
TYPE_CHAR_DEVICE = b"3"
TYPE_BLOCK_DEVICE = b"4"
TYPE_DIRECTORY = b"5"
TYPE_FIFO = b"6"
TYPE_CONTIGUOUS_FILE = b"7"
# Extension headers; recognised but never interpreted
TYPE_PAX_EXTENDED = b"x"
TYPE_PAX_GLOBAL = b"g"
TYPE_GNU_LONG_NAME = b"L"
TYPE_GNU_LONG_LINK = b"K"

REGULAR_TYPES = (TYPE_NORMAL_FILE, TYPE_ALIGNED_NORMAL_FILE, TYPE_CONTIGUOUS_FILE)


# Defaults used by the writer
DEFAULT_DIRECTORY_MODE = 0o755
DEFAULT_MTIME = 0

# Use a deterministic mtime that doesn't confuse other programs.
PORTABLE_MTIME = 946684800  # 2000-01-01 00:00:00.000 UTC

# Scratch buffer used when discarding or copying entry data
COPY_BUFFER_SIZE = 16 * 1024
