from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Sample:
    """One request made against the host and what came back."""

    path: str
    method: str
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body_length: int = 0


class CheckError(RuntimeError):
    """Raised when the check cannot proceed (e.g., the host never answers)."""


class StatusUnavailableError(CheckError):
    """Raised when /__status does not return 200 JSON within the timeout."""


class SampleError(CheckError):
    """Raised when a sample request fails at the transport level."""
