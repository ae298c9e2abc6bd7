from __future__ import annotations

import os
import re
from pathlib import Path
from urllib.parse import unquote_to_bytes

__all__ = [
    "MalformedPathError",
    "PathEscapeError",
    "decode_request_path",
    "validate_decoded_path",
    "request_target",
    "resolve_within_root",
    "has_extension",
]

# A `%` not followed by two hex digits.
_BAD_ESCAPE_RE = re.compile(rb"%(?![0-9A-Fa-f]{2})")


class MalformedPathError(ValueError):
    """The request path cannot be decoded into a usable file-system path."""


class PathEscapeError(ValueError):
    """The request path resolves outside the site root."""


def validate_decoded_path(path: str) -> str:
    """Reject decoded paths that no file on disk could answer."""
    if not path.startswith("/"):
        raise MalformedPathError("request path must start with '/'")
    if "\x00" in path:
        raise MalformedPathError("request path contains a NUL byte")
    return path


def decode_request_path(raw: bytes) -> str:
    """Strictly percent-decode the raw request path.

    Anything after `?` is dropped. Raises:
        MalformedPathError: on a broken `%` escape, bytes that are not UTF-8,
        a NUL byte, or a path that does not start with `/`.
    """
    path = raw.split(b"?", 1)[0]
    if _BAD_ESCAPE_RE.search(path):
        raise MalformedPathError("request path has an invalid percent-escape")
    try:
        decoded = unquote_to_bytes(path).decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedPathError("request path is not valid UTF-8") from e
    return validate_decoded_path(decoded)


def request_target(path: str, index_name: str) -> str:
    """Rewrite the site root to the index document."""
    return f"/{index_name}" if path == "/" else path


def resolve_within_root(root: Path, path: str) -> Path:
    """Resolve a decoded request path to an absolute path under `root`.

    Leading separators are stripped so the path can't override the root, then
    the join is normalized lexically. Containment is checked segment by
    segment, so a sibling such as `/srv/site-evil` never passes for a root of
    `/srv/site`.

    Raises:
        PathEscapeError: if the normalized path is not `root` or below it.
    """
    root_s = os.fspath(root)
    relative = path.lstrip("/\\")
    candidate = os.path.normpath(os.path.join(root_s, relative))
    if not os.path.isabs(candidate) or os.path.commonpath([root_s, candidate]) != root_s:
        raise PathEscapeError(f"path escapes site root: {path!r}")
    return Path(candidate)


def has_extension(path: str) -> bool:
    """Return True when the final path segment contains a dot."""
    return "." in path.rsplit("/", 1)[-1]
