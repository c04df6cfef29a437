"""Process-wide handle to the shared Chromium instance."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright

from ..config import BrowserConfig
from ..errors import EngineUnavailableError

LOGGER = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]


class BrowserEngine:
    """Lazily launched browser shared by every session.

    Sessions never touch the browser directly; they only derive new
    isolated contexts through :meth:`new_context`.
    """

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        *,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        self._config = config or BrowserConfig()
        self._playwright_factory = playwright_factory
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def ensure_started(self) -> Browser:
        """Start the browser if needed; concurrent callers share one launch."""

        if self.is_running:
            assert self._browser is not None
            return self._browser
        async with self._lock:
            if self.is_running:
                assert self._browser is not None
                return self._browser
            if self._browser is not None:
                LOGGER.warning("Browser disconnected; relaunching")
                await self._teardown()
            LOGGER.info("Launching browser with headless: %s", self._config.headless)
            try:
                self._playwright = await self._playwright_factory().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=self._config.headless,
                    args=list(LAUNCH_ARGS),
                )
            except Exception as exc:
                LOGGER.exception("Failed to launch browser")
                await self._teardown()
                raise EngineUnavailableError(f"Browser failed to start: {exc}") from exc
            return self._browser

    async def new_context(self, **options: Any) -> BrowserContext:
        browser = await self.ensure_started()
        return await browser.new_context(**options)

    async def shutdown(self) -> None:
        async with self._lock:
            if self._browser is None and self._playwright is None:
                return
            LOGGER.info("Shutting down browser")
            await self._teardown()

    async def _teardown(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._playwright = None
        try:
            if browser is not None:
                await browser.close()
        except Exception:  # pragma: no cover - browser already gone
            LOGGER.debug("Browser close failed", exc_info=True)
        finally:
            if playwright is not None:
                await playwright.stop()
