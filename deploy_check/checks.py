from __future__ import annotations

from spa_server.domain.assets import NO_STORE
from spa_server.domain.headers import ALLOW_HEADER, SECURITY_HEADERS
from deploy_check.types import Sample

# Paths chosen so they can't collide with a real build artifact.
SPA_ROUTE = "/__deploy-check/client-route"
MISSING_ASSET = "/__deploy-check/missing-asset.js"

# (method, path, expected status)
EXPECTATIONS: tuple[tuple[str, str, int], ...] = (
    ("GET", "/", 200),
    ("HEAD", "/", 200),
    ("GET", SPA_ROUTE, 200),
    ("GET", MISSING_ASSET, 404),
    ("OPTIONS", "/", 204),
    ("POST", "/", 405),
)


def _failure(check: str, sample: Sample | None, detail: str) -> dict:
    out = {"check": check, "detail": detail}
    if sample is not None:
        out["request"] = f"{sample.method} {sample.path}"
    return out


def _find(samples: list[Sample], method: str, path: str) -> Sample | None:
    return next((p for p in samples if p.method == method and p.path == path), None)


def check_security_headers(p: Sample) -> list[dict]:
    """Every response must carry the exact security header values."""
    failures = []
    for name, expected in SECURITY_HEADERS.items():
        got = p.headers.get(name.lower())
        if got != expected:
            failures.append(_failure("security_header", p, f"{name}: expected {expected!r}, got {got!r}"))
    return failures


def evaluate(status: dict, samples: list[Sample]) -> tuple[dict, int]:
    """Compute a summary dict and an exit code from the status payload and samples."""
    failures: list[dict] = []

    presence = status.get("assetsPresence") or {}
    missing = sorted(name for name, present in presence.items() if not present)
    for name in missing:
        failures.append(_failure("core_asset", None, f"{name} is not deployed"))

    for method, path, expected in EXPECTATIONS:
        p = _find(samples, method, path)
        if p is None:
            failures.append(_failure("sample_missing", None, f"{method} {path} was not sampled"))
            continue
        if p.status != expected:
            failures.append(_failure("status_code", p, f"expected {expected}, got {p.status}"))
        if method in ("OPTIONS", "POST") and p.headers.get("allow") != ALLOW_HEADER:
            failures.append(_failure("allow_header", p, f"got {p.headers.get('allow')!r}"))

    for p in samples:
        failures.extend(check_security_headers(p))

    index = _find(samples, "GET", "/")
    if index is not None and index.headers.get("cache-control") != NO_STORE:
        failures.append(_failure("index_cache", index, f"got {index.headers.get('cache-control')!r}"))

    head = _find(samples, "HEAD", "/")
    if index is not None and head is not None:
        if head.headers.get("content-length") != index.headers.get("content-length"):
            failures.append(_failure("head_length", head, "Content-Length differs from GET"))
        if head.body_length:
            failures.append(_failure("head_body", head, f"{head.body_length} body bytes on HEAD"))

    summary = {
        "component": "deploy_check",
        "event": "summary",
        "runtime": status.get("runtime"),
        "version": status.get("version"),
        "deployed_files": len(status.get("deployedFiles") or []),
        "missing_assets": missing,
        "samples": len(samples),
        "failures": failures,
    }
    return summary, 0 if not failures else 1
