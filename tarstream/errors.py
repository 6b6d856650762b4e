class TarError(Exception):
    """Base class for tarstream-specific errors."""


# Header codec
class HeaderError(TarError):
    pass


class HeaderFieldError(HeaderError):
    """A header field holds a value that cannot be decoded or encoded."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class InvalidHeaderError(HeaderError):
    pass


class PathTooLongError(TarError):
    pass


# Stream state
class TruncatedArchiveError(TarError):
    pass


class TruncatedHeaderError(TruncatedArchiveError, HeaderError):
    pass


class ShortWriteError(TarError):
    pass


class EntrySizeMismatchError(TarError):
    pass


# Misuse
class ArchiveFinishedError(TarError):
    pass


class ArchiveFaultedError(TarError):
    """A previous write failed part way; the output is no longer block aligned."""


class StaleEntryError(TarError, RuntimeError):
    """Entry contents were used after the reader advanced past that entry."""
