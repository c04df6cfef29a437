"""The render-and-act operation and the components it coordinates."""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from .actions import ActionExecutor
from .admission import AdmissionController
from .browser.engine import BrowserEngine
from .browser.network import NetworkPolicy
from .browser.session import SessionManager
from .config import WorkerConfig
from .errors import CaptureError
from .models import ActionResults, RenderRequest, RenderResponse, WorkerHealth
from .pipeline import scrape_page
from .results import assemble_response

LOGGER = logging.getLogger(__name__)


class RenderWorker:
    """Render a URL, run its actions and collect the artifacts."""

    def __init__(
        self,
        config: Optional[WorkerConfig] = None,
        *,
        engine: Optional[BrowserEngine] = None,
        executor: Optional[ActionExecutor] = None,
    ) -> None:
        self._config = config or WorkerConfig()
        browser_config = self._config.browser
        self.engine = engine or BrowserEngine(browser_config)
        self.admission = AdmissionController(self._config.max_concurrent_pages)
        self.policy = NetworkPolicy(
            browser_config.ad_domains,
            block_media=browser_config.block_media,
        )
        self.sessions = SessionManager(self.engine, self.policy, browser_config)
        self._executor = executor or ActionExecutor(self._config.actions)

    @property
    def config(self) -> WorkerConfig:
        return self._config

    async def render(self, request: RenderRequest) -> RenderResponse:
        timeout = request.timeout or self._config.navigation.default_timeout_ms
        LOGGER.info(
            "Render request url=%s wait_after_load=%s timeout=%s check_selector=%s "
            "skip_tls_verification=%s screenshot=%s full_page_screenshot=%s actions=%d",
            request.url,
            request.wait_after_load,
            timeout,
            request.check_selector,
            request.skip_tls_verification,
            request.screenshot,
            request.full_page_screenshot,
            len(request.actions),
        )
        if not self._config.browser.proxy_server:
            LOGGER.warning("No proxy server configured; requests originate from this host")

        await self.engine.ensure_started()
        options = self.sessions.build_options(
            ignore_https_errors=request.skip_tls_verification,
            extra_headers=request.headers,
        )
        async with self.admission.slot():
            async with self.sessions.session(options) as session:
                assert session.page is not None
                page = session.page
                outcome = await scrape_page(
                    page,
                    request.url,
                    wait_until=self._config.navigation.wait_until,
                    wait_after_load=request.wait_after_load,
                    timeout=timeout,
                    check_selector=request.check_selector,
                )

                action_results: Optional[ActionResults] = None
                if request.actions:
                    action_results = await self._executor.run(page, request.actions)

                screenshot: Optional[str] = None
                if request.wants_screenshot:
                    screenshot = await _capture_screenshot(page, request.full_page_screenshot)

        response = assemble_response(outcome, action_results, screenshot)
        if response.page_error:
            LOGGER.info("Render finished with page error: %s", response.page_error)
        else:
            LOGGER.info("Render of %s succeeded", request.url)
        return response

    async def health(self) -> WorkerHealth:
        """Start the engine if needed and round-trip a throwaway session.

        The throwaway session is opened outside admission control so a
        saturated worker still answers. While health checks are in flight,
        ``open_sessions`` can exceed the configured capacity by their number.
        """

        await self.engine.ensure_started()
        async with self.sessions.session(self.sessions.build_options()):
            pass
        return WorkerHealth(
            status="healthy",
            max_concurrent_pages=self.admission.capacity,
            active_pages=self.admission.in_use,
        )

    async def shutdown(self) -> None:
        await self.engine.shutdown()


async def _capture_screenshot(page: Page, full_page: bool) -> str:
    try:
        image = await page.screenshot(full_page=full_page, type="png")
    except PlaywrightError as exc:
        raise CaptureError(f"Screenshot failed: {exc}") from exc
    return base64.b64encode(image).decode("ascii")


def render_summary(response: RenderResponse) -> dict[str, Any]:
    """Compact description of a response for console output."""

    actions = response.actions or ActionResults()
    return {
        "pageStatusCode": response.page_status_code,
        "contentType": response.content_type,
        "pageError": response.page_error,
        "contentLength": len(response.content),
        "screenshots": len(actions.screenshots),
        "scrapes": len(actions.scrapes),
        "javascriptReturns": len(actions.javascript_returns),
        "pdfs": len(actions.pdfs),
    }
