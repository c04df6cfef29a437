"""Merge navigation output and captured artifacts into a response."""

from __future__ import annotations

from typing import Optional

from .errors import classify_status
from .models import ActionResults, RenderResponse, ScrapeOutcome


def assemble_response(
    outcome: ScrapeOutcome,
    action_results: Optional[ActionResults] = None,
    screenshot: Optional[str] = None,
) -> RenderResponse:
    actions = action_results.model_copy(deep=True) if action_results else ActionResults()
    if screenshot is not None:
        actions.screenshots.insert(0, screenshot)
    return RenderResponse(
        content=outcome.content,
        page_status_code=outcome.status,
        content_type=outcome.content_type,
        headers=outcome.headers,
        screenshot=screenshot,
        actions=None if actions.is_empty() else actions,
        page_error=classify_status(outcome.status),
    )
