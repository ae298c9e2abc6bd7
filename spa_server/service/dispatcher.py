from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import anyio

from ..config import SiteConfig
from ..domain.assets import AssetDescriptor, describe_asset
from ..domain.paths import (
    MalformedPathError,
    PathEscapeError,
    decode_request_path,
    has_extension,
    request_target,
    resolve_within_root,
    validate_decoded_path,
)
from ..logging_conf import get_logger

__all__ = ["Outcome", "Resolution", "resolve_request"]

logger = get_logger("service.dispatcher")


class Outcome(str, Enum):
    asset = "asset"
    fallback = "fallback"
    bad_request = "bad_request"
    forbidden = "forbidden"
    not_found = "not_found"
    broken = "broken"


@dataclass(frozen=True)
class Resolution:
    """What to send back for one request path."""

    outcome: Outcome
    path: str = ""
    asset: AssetDescriptor | None = None


async def _describe(path: Path, site: SiteConfig) -> AssetDescriptor | None:
    return await anyio.to_thread.run_sync(
        lambda: describe_asset(
            path, index_name=site.index_name, fingerprint_pattern=site.fingerprint_pattern
        )
    )


async def resolve_request(raw_path: bytes | None, site: SiteConfig, *, decoded: str = "") -> Resolution:
    """Decide how to answer a GET/HEAD for `raw_path`.

    `raw_path` is the undecoded request path; servers that don't report one
    pass None together with the already-decoded path in `decoded`.

    Order:
      1. broken encoding                      -> bad_request
      2. `/` becomes the index document
      3. escapes the root                     -> forbidden
      4. existing regular file                -> asset
      5. no extension in the final segment    -> fallback (index), or broken
                                                 if the index itself is missing
      6. anything else                        -> not_found
    """
    try:
        path = decode_request_path(raw_path) if raw_path is not None else validate_decoded_path(decoded)
    except MalformedPathError as e:
        logger.info("dispatch.bad_request", extra={"event": "bad_request", "reason": str(e)})
        return Resolution(Outcome.bad_request)

    target = request_target(path, site.index_name)
    try:
        resolved = resolve_within_root(site.root_dir, target)
    except PathEscapeError:
        logger.warning("dispatch.forbidden", extra={"event": "path_escape", "path": path})
        return Resolution(Outcome.forbidden, path=path)

    asset = await _describe(resolved, site)
    if asset is not None:
        logger.debug("dispatch.asset", extra={"event": "asset", "path": path, "file": str(asset.path)})
        return Resolution(Outcome.asset, path=path, asset=asset)

    if not has_extension(target):
        index = await _describe(site.index_path, site)
        if index is None:
            logger.error(
                "dispatch.index_missing",
                extra={"event": "index_missing", "path": path, "index": str(site.index_path)},
            )
            return Resolution(Outcome.broken, path=path)
        logger.debug("dispatch.fallback", extra={"event": "spa_fallback", "path": path})
        return Resolution(Outcome.fallback, path=path, asset=index)

    logger.debug("dispatch.not_found", extra={"event": "not_found", "path": path})
    return Resolution(Outcome.not_found, path=path)
