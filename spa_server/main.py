"""FastAPI app factory, middleware stack and uvicorn entry point."""
from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from uuid import uuid4

import uvicorn
from fastapi import FastAPI, Request, Response

from .api.responses import headers_only, plain_text
from .api.routes import router
from .config import DEFAULT_ROOT_DIR, SiteConfig, get_app_version, get_port_from_env
from .domain.headers import ALLOW_HEADER, ALLOWED_METHODS, apply_security_headers
from .logging_conf import get_logger, setup_logging

# Configure logging before anything else.
setup_logging()
logger = get_logger("spa_server")

CallNext = Callable[[Request], Awaitable[Response]]


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000.0, 2)


def create_app(root_dir: str | Path | None = None) -> FastAPI:
    site = SiteConfig(root_dir=Path(root_dir) if root_dir is not None else DEFAULT_ROOT_DIR)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "startup",
            extra={"event": "startup", "root_dir": str(site.root_dir), "version": site.version},
        )
        yield
        logger.info("shutdown", extra={"event": "shutdown"})

    # Every path belongs to the SPA, so the generated docs routes are disabled.
    app = FastAPI(
        title="SPA Static Host",
        version=get_app_version(),
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.site = site

    # Middleware registered later wraps middleware registered earlier, so the
    # effective order is: security_headers -> request_logger -> method_gate.

    @app.middleware("http")
    async def method_gate(request: Request, call_next: CallNext) -> Response:
        """Answer OPTIONS and reject unsupported methods before routing."""
        if request.method == "OPTIONS":
            return Response(status_code=204, headers={"Allow": ALLOW_HEADER})
        if request.method not in ALLOWED_METHODS:
            response = plain_text(405)
            response.headers["Allow"] = ALLOW_HEADER
            return response
        return await call_next(request)

    @app.middleware("http")
    async def request_logger(request: Request, call_next: CallNext) -> Response:
        """Log one `request.end` line per request, tagged with its X-Request-ID.

        The id comes from the client when it sends one, otherwise it is minted
        here, and it is echoed on the response either way.
        """
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        request.state.request_id = request_id
        fields = {"method": request.method, "path": request.url.path, "request_id": request_id}
        logger.debug("request.start", extra={"event": "request_start", **fields})

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request.error",
                extra={"event": "request_error", "elapsed_ms": _elapsed_ms(started), **fields},
            )
            raise

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request.end",
            extra={
                "event": "request_end",
                "status_code": response.status_code,
                "elapsed_ms": _elapsed_ms(started),
                **fields,
            },
        )
        return response

    @app.middleware("http")
    async def security_headers(request: Request, call_next: CallNext) -> Response:
        """Attach the security header set to every response, errors included."""
        try:
            response = await call_next(request)
        except Exception:  # already logged by request_logger
            response = plain_text(500)
            if request.method == "HEAD":
                response = headers_only(response)
        apply_security_headers(response.headers)
        return response

    app.include_router(router)

    return app


def run() -> None:
    """Console entry point: serve on all interfaces at $PORT (default 8080)."""
    port = get_port_from_env()
    logger.info(
        "server.listening",
        extra={"event": "listening", "port": port, "root_dir": str(app.state.site.root_dir)},
    )
    # log_config=None keeps uvicorn on the JSON handlers installed above.
    uvicorn.run(app, host="0.0.0.0", port=port, log_config=None)


# ASGI entrypoint for uvicorn: `uvicorn spa_server.main:app --port 8080`
app = create_app()


if __name__ == "__main__":
    run()
