from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable

import httpx

from spa_server.config import STATUS_PATH
from spa_server.logging_conf import get_logger
from deploy_check.types import Sample, SampleError, StatusUnavailableError

logger = get_logger("deploy_check.client")


async def wait_for_status(
    base_url: str,
    *,
    timeout_s: float = 20.0,
    poll_interval_s: float = 0.25,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict:
    """Poll /__status until it returns 200 JSON and return the payload.

    - Tries repeatedly for `timeout_s` seconds
    - Logs each failed attempt at debug level and the success once
    """
    deadline = time.monotonic() + timeout_s
    last_error = "no attempt made"
    async with httpx.AsyncClient(base_url=base_url, timeout=5.0, transport=transport) as client:
        while True:
            try:
                r = await client.get(STATUS_PATH)
                if r.status_code == 200:
                    payload = r.json()
                    logger.info(
                        "status.ok",
                        extra={"event": "status_ok", "deployed": len(payload.get("deployedFiles", []))},
                    )
                    return payload
                last_error = f"HTTP {r.status_code}"
            except (httpx.HTTPError, ValueError) as e:
                last_error = str(e) or type(e).__name__
            logger.debug("status.retry", extra={"event": "status_retry", "error": last_error})
            if time.monotonic() >= deadline:
                break
            await asyncio.sleep(poll_interval_s)
    raise StatusUnavailableError(f"{STATUS_PATH} not ready within {timeout_s}s: {last_error}")


async def sample(client: httpx.AsyncClient, method: str, path: str) -> Sample:
    """Issue one request and capture status, headers and body size."""
    try:
        r = await client.request(method, path)
    except httpx.HTTPError as e:
        raise SampleError(f"{method} {path} failed: {e}") from e
    return Sample(
        path=path,
        method=method,
        status=r.status_code,
        headers={k.lower(): v for k, v in r.headers.items()},
        body_length=len(r.content),
    )


async def sample_all(
    base_url: str,
    requests: Iterable[tuple[str, str]],
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[Sample]:
    """Run (method, path) samples concurrently and return them in input order."""
    async with httpx.AsyncClient(base_url=base_url, timeout=10.0, transport=transport) as client:
        samples = await asyncio.gather(*(sample(client, m, p) for m, p in requests))
    logger.info("sample.summary", extra={"event": "sample_summary", "count": len(samples)})
    return list(samples)
