from pathlib import Path

import pytest
from httpx import ASGITransport

from deploy_check.checks import EXPECTATIONS, MISSING_ASSET, SPA_ROUTE, evaluate
from deploy_check.cli import parse_args
from deploy_check.client import wait_for_status
from deploy_check.smoke import run_check
from deploy_check.types import Sample, StatusUnavailableError
from spa_server.config import CORE_ASSETS
from spa_server.domain.headers import ALLOW_HEADER, SECURITY_HEADERS
from spa_server.main import create_app


def _headers(**extra: str) -> dict[str, str]:
    out = {k.lower(): v for k, v in SECURITY_HEADERS.items()}
    out.update({k.replace("_", "-"): v for k, v in extra.items()})
    return out


def _healthy_samples() -> list[Sample]:
    index = _headers(cache_control="no-store", content_length="120")
    return [
        Sample("/", "GET", 200, index, 120),
        Sample("/", "HEAD", 200, dict(index), 0),
        Sample(SPA_ROUTE, "GET", 200, dict(index), 120),
        Sample(MISSING_ASSET, "GET", 404, _headers(), 9),
        Sample("/", "OPTIONS", 204, _headers(allow=ALLOW_HEADER), 0),
        Sample("/", "POST", 405, _headers(allow=ALLOW_HEADER), 18),
    ]


def _status(**presence: bool) -> dict:
    assets = {name: True for name in CORE_ASSETS}
    assets.update(presence)
    return {"deployedFiles": sorted(CORE_ASSETS), "assetsPresence": assets, "runtime": "CPython 3.12.0"}


def test_evaluate_healthy_deployment():
    summary, code = evaluate(_status(), _healthy_samples())
    assert code == 0
    assert summary["failures"] == []
    assert summary["samples"] == len(EXPECTATIONS)


def test_evaluate_flags_missing_core_asset():
    summary, code = evaluate(_status(**{"main.js": False}), _healthy_samples())
    assert code == 1
    assert summary["missing_assets"] == ["main.js"]
    assert [f["check"] for f in summary["failures"]] == ["core_asset"]


def test_evaluate_flags_header_and_status_problems():
    samples = _healthy_samples()
    samples[3] = Sample(MISSING_ASSET, "GET", 200, {}, 120)
    summary, code = evaluate(_status(), samples)
    assert code == 1
    checks = {f["check"] for f in summary["failures"]}
    assert checks == {"status_code", "security_header"}
    assert all(f["request"] == f"GET {MISSING_ASSET}" for f in summary["failures"])


def test_evaluate_flags_cached_index_and_head_mismatch():
    samples = _healthy_samples()
    samples[0] = Sample("/", "GET", 200, _headers(cache_control="public, max-age=3600", content_length="120"), 120)
    samples[1] = Sample("/", "HEAD", 200, _headers(cache_control="no-store", content_length="7"), 7)
    summary, code = evaluate(_status(), samples)
    assert code == 1
    assert {f["check"] for f in summary["failures"]} == {"index_cache", "head_length", "head_body"}


def test_evaluate_flags_unsampled_expectation():
    summary, code = evaluate(_status(), _healthy_samples()[:-1])
    assert code == 1
    assert summary["failures"][0]["check"] == "sample_missing"


@pytest.mark.asyncio
async def test_run_check_against_app(app):
    code = await run_check(base_url="http://test", transport=ASGITransport(app=app))
    assert code == 0


@pytest.mark.asyncio
async def test_run_check_reports_incomplete_deployment(app, site_root: Path):
    (site_root / "styles.css").unlink()
    code = await run_check(base_url="http://test", transport=ASGITransport(app=app))
    assert code == 1


@pytest.mark.asyncio
async def test_wait_for_status_times_out(tmp_path: Path):
    app = create_app(root_dir=tmp_path / "missing")
    with pytest.raises(StatusUnavailableError, match="HTTP 500"):
        await wait_for_status(
            "http://test", timeout_s=0.0, poll_interval_s=0.0, transport=ASGITransport(app=app)
        )


def test_parse_args_defaults(monkeypatch):
    monkeypatch.delenv("BASE_URL", raising=False)
    args = parse_args([])
    assert args.base_url == "http://127.0.0.1:8080"
    assert args.timeout == 20.0
    assert args.poll_interval == 0.25
    args = parse_args(["--base-url", "https://app.example", "--poll", "1"])
    assert args.base_url == "https://app.example"
    assert args.poll_interval == 1.0
