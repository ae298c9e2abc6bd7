from __future__ import annotations

import os
import re
import stat
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "MIME_TYPES",
    "NO_STORE",
    "IMMUTABLE",
    "SHORT_LIVED",
    "AssetDescriptor",
    "content_type_for",
    "cache_control_for",
    "describe_asset",
]

DEFAULT_CONTENT_TYPE = "application/octet-stream"

MIME_TYPES = MappingProxyType(
    {
        ".avif": "image/avif",
        ".css": "text/css; charset=utf-8",
        ".gif": "image/gif",
        ".html": "text/html; charset=utf-8",
        ".ico": "image/x-icon",
        ".jpeg": "image/jpeg",
        ".jpg": "image/jpeg",
        ".js": "application/javascript; charset=utf-8",
        ".json": "application/json; charset=utf-8",
        ".map": "application/json; charset=utf-8",
        ".mjs": "application/javascript; charset=utf-8",
        ".png": "image/png",
        ".svg": "image/svg+xml",
        ".txt": "text/plain; charset=utf-8",
        ".webmanifest": "application/manifest+json; charset=utf-8",
        ".webp": "image/webp",
        ".woff": "font/woff",
        ".woff2": "font/woff2",
    }
)

# Cache-Control values
NO_STORE = "no-store"
IMMUTABLE = "public, max-age=31536000, immutable"
SHORT_LIVED = "public, max-age=3600"


@dataclass(frozen=True)
class AssetDescriptor:
    """A regular file under the site root and how it should be served."""

    path: Path
    size: int
    content_type: str
    cache_control: str


def content_type_for(name: str) -> str:
    """Map a file name to its content type by (case-insensitive) extension."""
    _, ext = os.path.splitext(name)
    return MIME_TYPES.get(ext.lower(), DEFAULT_CONTENT_TYPE)


def cache_control_for(name: str, *, index_name: str, fingerprint_pattern: re.Pattern[str]) -> str:
    """Pick the Cache-Control policy for a file name.

    The index is never cached so clients always boot the latest build;
    fingerprinted bundles are immutable; everything else is cached briefly.
    """
    if name == index_name:
        return NO_STORE
    if fingerprint_pattern.search(name):
        return IMMUTABLE
    return SHORT_LIVED


def describe_asset(
    path: Path, *, index_name: str, fingerprint_pattern: re.Pattern[str]
) -> AssetDescriptor | None:
    """Stat `path` and describe it, or return None if it isn't a regular file.

    Blocking; callers on the event loop should run it in a worker thread.
    """
    try:
        st = os.stat(path)
    except OSError:  # missing, not a directory, name too long, no access
        return None
    if not stat.S_ISREG(st.st_mode):
        return None
    return AssetDescriptor(
        path=path,
        size=st.st_size,
        content_type=content_type_for(path.name),
        cache_control=cache_control_for(
            path.name, index_name=index_name, fingerprint_pattern=fingerprint_pattern
        ),
    )
