from __future__ import annotations

from http import HTTPStatus

import anyio
from starlette.responses import PlainTextResponse, Response
from starlette.types import Receive, Scope, Send

from ..domain.assets import AssetDescriptor
from ..logging_conf import get_logger

__all__ = ["StreamAbortedError", "AssetResponse", "plain_text", "headers_only"]

logger = get_logger("api.responses")


class StreamAbortedError(RuntimeError):
    """A file read failed after the response headers were already sent."""


def plain_text(status_code: int) -> Response:
    """A short plain-text body carrying the standard reason phrase."""
    return PlainTextResponse(HTTPStatus(status_code).phrase, status_code=status_code)


def headers_only(response: Response) -> Response:
    """Copy status and headers (Content-Length included) without the body."""
    return Response(status_code=response.status_code, headers=dict(response.headers))


class AssetResponse(Response):
    """Stream a file from disk with the asset's content type and cache policy.

    The first chunk is read before anything is sent, so an unreadable file
    still gets a proper 500. Once headers are out the status can't change:
    a later read failure raises StreamAbortedError and the server drops the
    connection.
    """

    chunk_size = 64 * 1024

    def __init__(self, asset: AssetDescriptor, *, send_body: bool = True, chunk_size: int | None = None) -> None:
        self.asset = asset
        self.status_code = 200
        self.media_type = asset.content_type
        self.background = None
        self.send_body = send_body
        if chunk_size is not None:
            self.chunk_size = chunk_size
        self.init_headers(
            {
                "cache-control": asset.cache_control,
                "content-length": str(asset.size),
            }
        )

    async def _send_start(self, send: Send) -> None:
        await send(
            {
                "type": "http.response.start",
                "status": self.status_code,
                "headers": self.raw_headers,
            }
        )

    def _abort(self, reason: str) -> StreamAbortedError:
        logger.warning(
            "asset.stream_aborted",
            extra={"event": "stream_aborted", "file": str(self.asset.path), "reason": reason},
        )
        return StreamAbortedError(f"{self.asset.path}: {reason}")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if not self.send_body:
            await self._send_start(send)
            await send({"type": "http.response.body", "body": b"", "more_body": False})
            return

        try:
            file = await anyio.open_file(self.asset.path, mode="rb")
        except OSError as e:
            logger.error(
                "asset.open_failed",
                extra={"event": "open_failed", "file": str(self.asset.path), "error": str(e)},
            )
            await plain_text(HTTPStatus.INTERNAL_SERVER_ERROR)(scope, receive, send)
            return

        async with file:
            try:
                chunk = await file.read(min(self.chunk_size, self.asset.size))
            except OSError as e:
                logger.error(
                    "asset.read_failed",
                    extra={"event": "read_failed", "file": str(self.asset.path), "error": str(e)},
                )
                await plain_text(HTTPStatus.INTERNAL_SERVER_ERROR)(scope, receive, send)
                return

            remaining = self.asset.size - len(chunk)
            await self._send_start(send)
            await send({"type": "http.response.body", "body": chunk, "more_body": remaining > 0})

            while remaining > 0:
                try:
                    chunk = await file.read(min(self.chunk_size, remaining))
                except OSError as e:
                    raise self._abort(str(e)) from e
                if not chunk:
                    raise self._abort(f"file ended {remaining} bytes early")
                remaining -= len(chunk)
                await send({"type": "http.response.body", "body": chunk, "more_body": remaining > 0})
