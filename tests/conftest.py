from __future__ import annotations

from pathlib import Path

import anyio
import pytest
from httpx import ASGITransport, AsyncClient

from spa_server.api import responses
from spa_server.main import create_app

INDEX_HTML = b"<!doctype html><html><head><title>app</title></head><body><app-root></app-root></body></html>\n"
PNG_1x1 = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010804000000b51c0c02"
    "0000000b4944415478da63fcff1f0003030200efa0b0260000000049454e44ae426082"
)

SITE_FILES: dict[str, bytes] = {
    "index.html": INDEX_HTML,
    "main.js": b"console.log('main');\n",
    "polyfills.js": b"/* polyfills */\n",
    "styles.css": b"body{margin:0}\n",
    "bootstrap-diagnostic.js": b"/* boot diagnostic */\n",
    "chunk-AB12CD34.js": b"export const x = 1;\n",
    "logo.png": PNG_1x1,
    "data.bin2": bytes(range(256)),
    "assets/fonts/app.woff2": b"wOF2 fake font",
    "assets/i18n/en.json": b'{"hello": "world"}\n',
}


class FailingFile:
    """Async file stand-in that returns `chunks` one read at a time, then raises EIO."""

    def __init__(self, chunks: list[bytes]) -> None:
        self.chunks = list(chunks)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc) -> None:
        return None

    async def read(self, size: int = -1) -> bytes:
        if not self.chunks:
            raise OSError("EIO")
        return self.chunks.pop(0)


def fail_reads_after(monkeypatch, chunks: list[bytes]) -> None:
    """Make every asset open return a FailingFile over `chunks`."""

    async def fake_open_file(*args, **kwargs):
        return FailingFile(chunks)

    monkeypatch.setattr(responses.anyio, "open_file", fake_open_file)


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    for name, data in SITE_FILES.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    return root


@pytest.fixture
def app(site_root: Path):
    return create_app(root_dir=site_root)


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def call_raw(app, raw_path: bytes, method: str = "GET", messages: list[dict] | None = None) -> list[dict]:
    """Drive the ASGI app with an exact raw path, bypassing client-side URL quoting.

    Pass `messages` to keep what was sent when the app raises.
    """
    messages = [] if messages is None else messages
    request_sent = False
    response_complete = anyio.Event()

    async def receive() -> dict:
        nonlocal request_sent
        if request_sent:
            await response_complete.wait()
            return {"type": "http.disconnect"}
        request_sent = True
        return {"type": "http.request", "body": b"", "more_body": False}

    async def send(message: dict) -> None:
        messages.append(message)
        if message["type"] == "http.response.body" and not message.get("more_body", False):
            response_complete.set()

    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": raw_path.decode("latin-1"),
        "raw_path": raw_path,
        "query_string": b"",
        "root_path": "",
        "headers": [(b"host", b"test")],
        "client": ("127.0.0.1", 40000),
        "server": ("test", 80),
    }
    await app(scope, receive, send)
    return messages


@pytest.fixture
def raw_call(app):
    async def _call(raw_path: bytes, method: str = "GET", messages: list[dict] | None = None) -> list[dict]:
        return await call_raw(app, raw_path, method, messages)

    return _call
