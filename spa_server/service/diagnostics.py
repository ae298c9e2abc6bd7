from __future__ import annotations

import os
import platform
from dataclasses import dataclass
from datetime import UTC, datetime

import anyio

from ..config import SiteConfig
from ..domain.headers import CONTENT_SECURITY_POLICY
from ..logging_conf import get_logger

__all__ = [
    "DeploymentSnapshot",
    "runtime_version",
    "list_deployed_files",
    "build_snapshot",
    "error_message",
]

logger = get_logger("service.diagnostics")


@dataclass(frozen=True)
class DeploymentSnapshot:
    """What is deployed under the site root at one moment."""

    generated_at: str
    runtime: str
    version: str
    root_dir: str
    deployed_files: list[str]
    assets_presence: dict[str, bool]
    content_security_policy: str


def runtime_version() -> str:
    """Return the interpreter name and version, e.g. `CPython 3.12.4`."""
    return f"{platform.python_implementation()} {platform.python_version()}"


def list_deployed_files(root: os.PathLike[str] | str) -> list[str]:
    """Return the names of regular files directly under `root`, sorted.

    Raises OSError if the directory can't be read.
    """
    with os.scandir(root) as entries:
        names = [entry.name for entry in entries if entry.is_file(follow_symlinks=True)]
    return sorted(names)


def _snapshot(site: SiteConfig) -> tuple[list[str], dict[str, bool]]:
    deployed = list_deployed_files(site.root_dir)
    presence = {name: (site.root_dir / name).is_file() for name in site.core_assets}
    return deployed, presence


async def build_snapshot(site: SiteConfig) -> DeploymentSnapshot:
    """Take the deployment snapshot reported by the status endpoint.

    Directory reads run in a worker thread. Errors propagate to the caller,
    which turns them into a JSON 500.
    """
    deployed, presence = await anyio.to_thread.run_sync(_snapshot, site)
    missing = [name for name, present in presence.items() if not present]
    if missing:
        logger.warning("status.assets_missing", extra={"event": "assets_missing", "missing": missing})
    return DeploymentSnapshot(
        generated_at=datetime.now(UTC).isoformat(timespec="milliseconds"),
        runtime=runtime_version(),
        version=site.version,
        root_dir=str(site.root_dir),
        deployed_files=deployed,
        assets_presence=presence,
        content_security_policy=CONTENT_SECURITY_POLICY,
    )


def error_message(exc: BaseException) -> str:
    """Extract a human-readable message, falling back to the exception type."""
    return str(exc) or type(exc).__name__
