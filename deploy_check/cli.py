from __future__ import annotations

import argparse
import os


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments for the deployment check."""
    parser = argparse.ArgumentParser(description="Verify a deployed SPA static host")
    parser.add_argument("--base-url", default=os.getenv("BASE_URL", "http://127.0.0.1:8080"))
    parser.add_argument("--timeout", type=float, default=20.0, help="seconds to wait for /__status")
    parser.add_argument("--poll", type=float, default=0.25, dest="poll_interval")
    return parser.parse_args(argv)
