"""Error types and page-error classification."""

from __future__ import annotations

from http import HTTPStatus
from typing import Optional


class RenderWorkerError(RuntimeError):
    """Base class for failures surfaced to callers of the render operation."""


class InvalidRenderRequestError(RenderWorkerError):
    """Raised when a request is rejected before touching the browser."""


class EngineUnavailableError(RenderWorkerError):
    """Raised when the browser engine cannot be started or has gone away."""


class RequiredSelectorNotFoundError(RenderWorkerError):
    """Raised when the request's required selector never appears."""

    def __init__(self, selector: str) -> None:
        super().__init__("Required selector not found")
        self.selector = selector


class CaptureError(RenderWorkerError):
    """Raised when an explicitly requested screenshot or PDF cannot be produced."""


NAVIGATION_FAILED = "Navigation failed: no response was received from the target."


def classify_status(status: Optional[int]) -> Optional[str]:
    """Map a page status code to an advisory error description.

    Returns ``None`` for 2xx responses.
    """

    if status is None:
        return NAVIGATION_FAILED
    if 200 <= status < 300:
        return None
    try:
        phrase = HTTPStatus(status).phrase
    except ValueError:
        phrase = "Unknown Status"
    if 300 <= status < 400:
        kind = "Redirect"
    elif 400 <= status < 500:
        kind = "Client error"
    elif 500 <= status < 600:
        kind = "Server error"
    else:
        kind = "Unexpected status"
    return f"{kind}: {status} {phrase}"
