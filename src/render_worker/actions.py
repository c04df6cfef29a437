"""Execute remote-control actions against a live page."""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional, Sequence

from playwright.async_api import Page

from .config import ActionConfig
from .models import (
    Action,
    ActionFailure,
    ActionResults,
    ClickAction,
    ExecuteJavascriptAction,
    JavascriptReturn,
    PdfAction,
    PressAction,
    ScrapeAction,
    ScrapeActionContent,
    ScreenshotAction,
    ScrollAction,
    WaitAction,
    WriteAction,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_PDF_FORMAT = "Letter"

_SCROLL_WINDOW_JS = "(delta) => window.scrollBy(0, delta)"
_SCROLL_ELEMENT_JS = "(el, delta) => { el.scrollTop += delta; }"


class ActionExecutor:
    """Run an ordered action list, isolating failures per action."""

    def __init__(self, config: Optional[ActionConfig] = None) -> None:
        self._config = config or ActionConfig()

    async def run(self, page: Page, actions: Sequence[Action]) -> ActionResults:
        results = ActionResults()
        total = len(actions)
        for index, action in enumerate(actions):
            LOGGER.info("Executing action %d/%d: %s", index + 1, total, action.type)
            try:
                await self._execute(page, action, results)
            except Exception as exc:
                LOGGER.warning("Action %d (%s) failed: %s", index + 1, action.type, exc)
                results.failures.append(
                    ActionFailure(index=index, type=action.type, error=str(exc))
                )
        return results

    async def _execute(self, page: Page, action: Action, results: ActionResults) -> None:
        if isinstance(action, WaitAction):
            await self._wait(page, action)
        elif isinstance(action, ClickAction):
            await self._click(page, action)
        elif isinstance(action, WriteAction):
            await page.keyboard.type(action.text)
            LOGGER.debug("Typed %d characters", len(action.text))
        elif isinstance(action, PressAction):
            await page.keyboard.press(action.key)
            LOGGER.debug("Pressed key %s", action.key)
        elif isinstance(action, ScrollAction):
            await self._scroll(page, action)
        elif isinstance(action, ScreenshotAction):
            image = await page.screenshot(full_page=action.full_page, type="png")
            results.screenshots.append(_encode(image))
            LOGGER.debug("Screenshot taken (full_page: %s)", action.full_page)
        elif isinstance(action, ScrapeAction):
            html = await page.content()
            results.scrapes.append(ScrapeActionContent(url=page.url, html=html))
            LOGGER.debug("Scraped page content (%d chars)", len(html))
        elif isinstance(action, ExecuteJavascriptAction):
            value = await page.evaluate(action.script)
            results.javascript_returns.append(
                JavascriptReturn(type=javascript_type(value), value=value)
            )
        elif isinstance(action, PdfAction):
            await self._pdf(page, action, results)
        else:
            LOGGER.warning("Skipping unknown action type: %s", action.type)

    async def _wait(self, page: Page, action: WaitAction) -> None:
        if action.milliseconds is not None and action.selector is not None:
            LOGGER.warning("Wait action has both milliseconds and selector; using milliseconds")
        if action.milliseconds is not None:
            await page.wait_for_timeout(action.milliseconds)
        elif action.selector is not None:
            await page.wait_for_selector(
                action.selector,
                timeout=self._config.wait_selector_timeout_ms,
            )
        else:
            LOGGER.warning("Wait action has neither milliseconds nor selector")

    async def _click(self, page: Page, action: ClickAction) -> None:
        if not action.all:
            await page.click(action.selector)
            return
        # Matches are resolved once; elements added while clicking are not visited.
        elements = await page.locator(action.selector).all()
        LOGGER.debug("Clicking %d elements matching %s", len(elements), action.selector)
        for element in elements:
            await element.click()

    async def _scroll(self, page: Page, action: ScrollAction) -> None:
        delta = self._config.scroll_amount
        if action.direction == "up":
            delta = -delta
        if action.selector:
            await page.locator(action.selector).evaluate(_SCROLL_ELEMENT_JS, delta)
        else:
            await page.evaluate(_SCROLL_WINDOW_JS, delta)

    async def _pdf(self, page: Page, action: PdfAction, results: ActionResults) -> None:
        options: dict[str, Any] = {"format": action.format or DEFAULT_PDF_FORMAT}
        if action.landscape is not None:
            options["landscape"] = action.landscape
        if action.scale is not None:
            options["scale"] = action.scale
        document = await page.pdf(**options)
        results.pdfs.append(_encode(document))
        LOGGER.debug("Generated PDF with %s", options)


def javascript_type(value: Any) -> str:
    """Approximate JavaScript's ``typeof`` for a value returned by ``evaluate``.

    Playwright returns both ``null`` and ``undefined`` as ``None``, so a script
    yielding ``null`` is reported as ``"undefined"`` rather than ``"object"``.
    """

    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return "object"


def _encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")
