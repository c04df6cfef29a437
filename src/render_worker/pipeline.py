"""Initial navigation and content extraction."""

from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, Response

from .config import WaitUntil
from .errors import RequiredSelectorNotFoundError
from .models import ScrapeOutcome

LOGGER = logging.getLogger(__name__)

RAW_BODY_CONTENT_TYPES = ("application/json", "text/plain")


async def scrape_page(
    page: Page,
    url: str,
    *,
    wait_until: WaitUntil = "load",
    wait_after_load: int = 0,
    timeout: int = 15000,
    check_selector: Optional[str] = None,
) -> ScrapeOutcome:
    """Load ``url`` in ``page`` and extract its content.

    A failed navigation is reported through ``status=None`` rather than
    raised. A missing ``check_selector`` is fatal.
    """

    LOGGER.info(
        "Navigating to %s with wait_until: %s and timeout: %sms", url, wait_until, timeout
    )
    response: Optional[Response] = None
    navigation_error: Optional[str] = None
    try:
        response = await page.goto(url, wait_until=wait_until, timeout=timeout)
    except PlaywrightError as exc:
        navigation_error = str(exc)
        LOGGER.warning("Navigation to %s failed: %s", url, exc)

    if wait_after_load > 0:
        await page.wait_for_timeout(wait_after_load)

    if check_selector:
        try:
            await page.wait_for_selector(check_selector, timeout=timeout)
        except PlaywrightError as exc:
            raise RequiredSelectorNotFoundError(check_selector) from exc

    if response is None:
        try:
            content = await page.content()
        except PlaywrightError as exc:
            # A timed-out navigation may still be replacing the document.
            LOGGER.warning("Could not read content of %s after failed navigation: %s", url, exc)
            content = ""
        return ScrapeOutcome(content=content, navigation_error=navigation_error)

    content = await page.content()

    headers = await response.all_headers()
    content_type = _header(headers, "content-type")
    if content_type and any(kind in content_type.lower() for kind in RAW_BODY_CONTENT_TYPES):
        body = await response.body()
        content = body.decode("utf-8", errors="replace")
    return ScrapeOutcome(
        content=content,
        status=response.status,
        headers=headers,
        content_type=content_type,
    )


def _header(headers: dict[str, str], name: str) -> Optional[str]:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None
