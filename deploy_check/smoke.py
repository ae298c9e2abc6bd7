#!/usr/bin/env python3
"""Deployment check orchestrating the end-to-end flow.

Steps:
- wait for /__status to answer
- sample the index, an SPA route, a missing asset, OPTIONS and POST
- compare statuses and headers against what the host must send
- emit a compact summary and exit code
"""
from __future__ import annotations

import asyncio
import sys

import httpx

from deploy_check.checks import EXPECTATIONS, evaluate
from deploy_check.cli import parse_args
from deploy_check.client import sample_all, wait_for_status
from spa_server.logging_conf import get_logger, setup_logging

logger = get_logger("deploy_check")


async def run_check(
    *,
    base_url: str,
    timeout_s: float = 20.0,
    poll_interval_s: float = 0.25,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    status = await wait_for_status(
        base_url, timeout_s=timeout_s, poll_interval_s=poll_interval_s, transport=transport
    )
    samples = await sample_all(
        base_url, [(method, path) for method, path, _ in EXPECTATIONS], transport=transport
    )
    summary, exit_code = evaluate(status, samples)
    logger.info("deploy_check.summary", extra=summary)
    return exit_code


def main(argv: list[str] | None = None) -> None:
    setup_logging()
    args = parse_args(argv if argv is not None else sys.argv[1:])
    code = asyncio.run(
        run_check(
            base_url=args.base_url,
            timeout_s=args.timeout,
            poll_interval_s=args.poll_interval,
        )
    )
    raise SystemExit(code)


if __name__ == "__main__":
    main()
