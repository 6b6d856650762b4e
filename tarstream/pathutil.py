from __future__ import annotations

from typing import Tuple

from .constants import NAME_SIZE, PREFIX_SIZE
from .errors import PathTooLongError


ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"


def norm_path(p: str) -> str:
    """Normalize archive paths to a canonical forward-slash form.

    Rules:
    - Convert backslashes to slashes
    - Strip leading/trailing slashes
    - Remove empty and '.' segments
    - Reject '..' segments
    """
    p = p.replace("\\", "/").strip("/")
    parts = [q for q in p.split("/") if q not in ("", ".")]
    for q in parts:
        if q == "..":
            raise ValueError("Path may not contain '..'")
    return "/".join(parts)


def split_path(path: str) -> Tuple[str, str]:
    """Split ``path`` into the header's (prefix, name) pair.

    Paths that fit the name field are returned unchanged with an empty prefix.
    Longer paths are cut at the rightmost '/' that leaves a prefix of at most
    155 bytes and a non-empty name of at most 100 bytes.
    """
    raw = path.encode(ENCODING, ENCODING_ERRORS)
    if len(raw) <= NAME_SIZE:
        return "", path
    # The prefix is at most PREFIX_SIZE bytes, so the separator sits at or before that index.
    idx = raw.rfind(b"/", 0, PREFIX_SIZE + 1)
    while idx > 0:
        name = raw[idx + 1 :]
        if len(name) > NAME_SIZE:
            break
        if name:
            prefix = raw[:idx]
            return (
                prefix.decode(ENCODING, ENCODING_ERRORS),
                name.decode(ENCODING, ENCODING_ERRORS),
            )
        idx = raw.rfind(b"/", 0, idx)
    raise PathTooLongError(
        f"path of {len(raw)} bytes cannot be split into a {PREFIX_SIZE}-byte prefix "
        f"and a {NAME_SIZE}-byte name: {path!r}"
    )


def join_path(prefix: str, name: str) -> str:
    if prefix:
        return f"{prefix}/{name}"
    return name
