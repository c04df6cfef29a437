from __future__ import annotations

import pytest
from fakes import FakeBrowser, FakePlaywright, PlaywrightError

from render_worker.browser.engine import BrowserEngine
from render_worker.browser.network import NetworkPolicy
from render_worker.browser.session import BrowserSession, SessionManager, SessionOptions
from render_worker.config import BrowserConfig


def _manager(browser: FakeBrowser, config: BrowserConfig | None = None) -> SessionManager:
    engine = BrowserEngine(playwright_factory=FakePlaywright(browser_factory=lambda: browser))
    return SessionManager(engine, NetworkPolicy(), config or BrowserConfig())


def test_build_options_uses_browser_config() -> None:
    config = BrowserConfig(
        viewport_width=1024,
        viewport_height=600,
        proxy_server="http://proxy:8080",
        proxy_username="user",
        proxy_password="secret",
        user_agents=["agent/1.0"],
    )
    manager = _manager(FakeBrowser(), config)

    options = manager.build_options(ignore_https_errors=True, extra_headers={"X-Test": "1"})

    assert options.user_agent == "agent/1.0"
    assert options.extra_headers == {"X-Test": "1"}
    assert options.context_kwargs() == {
        "viewport": {"width": 1024, "height": 600},
        "ignore_https_errors": True,
        "user_agent": "agent/1.0",
        "proxy": {"server": "http://proxy:8080", "username": "user", "password": "secret"},
    }


@pytest.mark.asyncio
async def test_session_opens_context_with_filter_and_headers() -> None:
    browser = FakeBrowser()
    manager = _manager(browser)
    options = SessionOptions(user_agent="agent/2.0", extra_headers={"Accept-Language": "de"})

    async with manager.session(options) as session:
        assert manager.open_sessions == 1
        context = browser.contexts[0]
        assert session.context is context
        assert context.options["user_agent"] == "agent/2.0"
        assert context.routes and context.routes[0][0] == "**/*"
        assert session.page is context.page
        assert context.page.extra_headers == {"Accept-Language": "de"}

    assert manager.open_sessions == 0
    assert browser.events == ["page.close", "context.close"]


@pytest.mark.asyncio
async def test_session_is_closed_when_body_raises() -> None:
    browser = FakeBrowser()
    manager = _manager(browser)

    with pytest.raises(ValueError):
        async with manager.session(SessionOptions()):
            raise ValueError("navigation exploded")

    assert manager.open_sessions == 0
    assert browser.contexts[0].closed
    assert browser.contexts[0].page.closed


@pytest.mark.asyncio
async def test_partial_open_still_closes_context() -> None:
    browser = FakeBrowser()
    browser.new_page_error = PlaywrightError("page crashed")
    manager = _manager(browser)

    with pytest.raises(PlaywrightError):
        async with manager.session(SessionOptions()):
            pytest.fail("session body must not run")

    assert manager.open_sessions == 0
    assert browser.events == ["context.close"]


@pytest.mark.asyncio
async def test_close_tolerates_failing_page_and_repeated_calls() -> None:
    browser = FakeBrowser()
    manager = _manager(browser)
    session = await manager.open(BrowserSession(options=SessionOptions()))
    assert session.page is not None
    session.page.close_error = PlaywrightError("Target closed")

    await manager.close(session)
    await manager.close(session)

    assert browser.events == ["page.close", "context.close"]
    assert manager.open_sessions == 0
