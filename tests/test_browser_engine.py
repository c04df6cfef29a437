from __future__ import annotations

import asyncio

import pytest
from fakes import FakeBrowser, FakePlaywright

from render_worker.browser.engine import LAUNCH_ARGS, BrowserEngine
from render_worker.config import BrowserConfig
from render_worker.errors import EngineUnavailableError


@pytest.mark.asyncio
async def test_concurrent_starts_launch_a_single_browser() -> None:
    playwright = FakePlaywright()
    engine = BrowserEngine(BrowserConfig(headless=True), playwright_factory=playwright)

    browsers = await asyncio.gather(*(engine.ensure_started() for _ in range(5)))

    assert len(playwright.chromium.launches) == 1
    assert all(browser is browsers[0] for browser in browsers)
    launch = playwright.chromium.launches[0]
    assert launch["headless"] is True
    assert launch["args"] == LAUNCH_ARGS
    assert "--no-sandbox" in launch["args"]
    assert engine.is_running


@pytest.mark.asyncio
async def test_launch_failure_is_reported_as_engine_unavailable() -> None:
    playwright = FakePlaywright(error=RuntimeError("no chromium"))
    engine = BrowserEngine(playwright_factory=playwright)

    with pytest.raises(EngineUnavailableError, match="no chromium"):
        await engine.ensure_started()

    assert not engine.is_running
    assert playwright.stops == 1


@pytest.mark.asyncio
async def test_shutdown_closes_browser_and_is_idempotent() -> None:
    browser = FakeBrowser()
    playwright = FakePlaywright(browser_factory=lambda: browser)
    engine = BrowserEngine(playwright_factory=playwright)
    await engine.ensure_started()

    await engine.shutdown()
    await engine.shutdown()

    assert browser.closed
    assert playwright.stops == 1
    assert not engine.is_running


@pytest.mark.asyncio
async def test_disconnected_browser_is_relaunched() -> None:
    playwright = FakePlaywright()
    engine = BrowserEngine(playwright_factory=playwright)
    first = await engine.ensure_started()
    first.connected = False

    second = await engine.ensure_started()

    assert second is not first
    assert len(playwright.chromium.launches) == 2


@pytest.mark.asyncio
async def test_new_context_starts_engine_lazily() -> None:
    playwright = FakePlaywright()
    engine = BrowserEngine(playwright_factory=playwright)

    context = await engine.new_context(ignore_https_errors=True)

    assert playwright.starts == 1
    assert context.options == {"ignore_https_errors": True}
