from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from . import __version__

__all__ = [
    "DEFAULT_PORT",
    "DEFAULT_ROOT_DIR",
    "INDEX_NAME",
    "STATUS_PATH",
    "CORE_ASSETS",
    "FINGERPRINT_PATTERN",
    "SiteConfig",
    "get_port_from_env",
    "get_app_version",
]

DEFAULT_PORT = 8080

# Relative to the working directory the server is started from; resolved once
# when the site config is built.
DEFAULT_ROOT_DIR = Path("dist")

INDEX_NAME = "index.html"
STATUS_PATH = "/__status"

# Files a healthy deployment is expected to ship, reported by /__status.
CORE_ASSETS = (
    INDEX_NAME,
    "main.js",
    "polyfills.js",
    "styles.css",
    "bootstrap-diagnostic.js",
)

# Build-hashed bundles: `chunk-AB12CD34.js`. Follows the bundler's naming;
# swap the pattern if the hash length or alphabet changes.
FINGERPRINT_PATTERN = re.compile(r"-[A-Z0-9]{8}\.[^./]+$")


@dataclass(frozen=True)
class SiteConfig:
    """Per-process site layout, built once by the app factory."""

    root_dir: Path = DEFAULT_ROOT_DIR
    index_name: str = INDEX_NAME
    core_assets: tuple[str, ...] = CORE_ASSETS
    fingerprint_pattern: re.Pattern[str] = FINGERPRINT_PATTERN
    version: str = field(default_factory=lambda: get_app_version())

    def __post_init__(self) -> None:
        # Containment checks compare against this exact path.
        object.__setattr__(self, "root_dir", Path(os.path.realpath(self.root_dir)))

    @property
    def index_path(self) -> Path:
        return self.root_dir / self.index_name


def get_port_from_env() -> int:
    """Return PORT from environment, defaulting to 8080."""
    raw = os.getenv("PORT", "").strip()
    if not raw:
        return DEFAULT_PORT
    try:
        port = int(raw, 10)
    except ValueError as e:
        raise ValueError(f"PORT must be an integer, got {raw!r}") from e
    if not (0 < port < 65536):
        raise ValueError(f"PORT must be in [1,65535], got {port}")
    return port


def get_app_version() -> str:
    """Return APP_VERSION from environment, else the installed package version."""
    return os.getenv("APP_VERSION", __version__)
