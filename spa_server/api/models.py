from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    # Field names stay snake_case in Python; the wire format is camelCase.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class RequestInfo(_CamelModel):
    """The request that asked for a status snapshot."""
    method: str
    host: str
    url: str


class StatusPayload(_CamelModel):
    """Deployment snapshot returned by the status endpoint."""
    generated_at: str
    runtime: str
    version: str
    request: RequestInfo
    root_dir: str
    deployed_files: list[str]
    assets_presence: dict[str, bool]
    content_security_policy: str


class StatusError(_CamelModel):
    """Body returned when the snapshot could not be assembled."""
    error: str = "status_unavailable"
    message: str
