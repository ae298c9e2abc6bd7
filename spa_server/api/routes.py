from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from ..config import STATUS_PATH, SiteConfig
from ..domain.assets import NO_STORE
from ..logging_conf import get_logger
from ..service.diagnostics import build_snapshot, error_message
from ..service.dispatcher import Outcome, resolve_request
from .models import RequestInfo, StatusError, StatusPayload
from .responses import AssetResponse, headers_only, plain_text

router = APIRouter(include_in_schema=False)
logger = get_logger("api")

_ERROR_STATUS = {
    Outcome.bad_request: 400,
    Outcome.forbidden: 403,
    Outcome.not_found: 404,
    Outcome.broken: 500,
}


def _site(request: Request) -> SiteConfig:
    return request.app.state.site


def _raw_url(request: Request) -> str:
    raw_path = request.scope.get("raw_path")
    path = raw_path.split(b"?", 1)[0].decode("latin-1") if raw_path is not None else request.scope["path"]
    query = request.scope.get("query_string", b"").decode("latin-1")
    return f"{path}?{query}" if query else path


def _finish(request: Request, response: Response) -> Response:
    # HEAD gets the GET headers, Content-Length included, and no body.
    return headers_only(response) if request.method == "HEAD" else response


@router.api_route(STATUS_PATH, methods=["GET", "HEAD"], summary="Deployment self-diagnostic")
async def status(request: Request) -> Response:
    """Report deployed files and core asset presence as JSON, never cached."""
    info = RequestInfo(
        method=request.method,
        host=request.headers.get("host", ""),
        url=_raw_url(request),
    )
    try:
        snapshot = await build_snapshot(_site(request))
    except Exception as exc:  # reported to the caller as a JSON 500
        logger.exception(
            "status.failed",
            extra={"event": "status_failed", "error": error_message(exc)},
        )
        body = StatusError(message=error_message(exc))
        response = JSONResponse(body.model_dump(by_alias=True), status_code=500)
    else:
        payload = StatusPayload(request=info, **asdict(snapshot))
        response = JSONResponse(payload.model_dump(by_alias=True))
    response.headers["Cache-Control"] = NO_STORE
    return _finish(request, response)


@router.api_route("/{full_path:path}", methods=["GET", "HEAD"], summary="Static asset or SPA fallback")
async def serve(request: Request) -> Response:
    """Serve a file from the site root, the index for client routes, or an error."""
    resolution = await resolve_request(
        request.scope.get("raw_path"),
        _site(request),
        decoded=request.scope["path"],
    )
    if resolution.asset is not None:
        return AssetResponse(resolution.asset, send_body=request.method != "HEAD")
    return _finish(request, plain_text(_ERROR_STATUS[resolution.outcome]))
