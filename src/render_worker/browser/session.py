"""Per-request browsing contexts."""

from __future__ import annotations

import logging
import random
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

from playwright.async_api import BrowserContext, Page

from ..config import BrowserConfig
from .engine import BrowserEngine
from .network import NetworkPolicy

LOGGER = logging.getLogger(__name__)


@dataclass
class SessionOptions:
    """Settings applied to a single isolated browsing context."""

    viewport_width: int = 1280
    viewport_height: int = 800
    user_agent: Optional[str] = None
    ignore_https_errors: bool = False
    proxy: Optional[dict[str, str]] = None
    extra_headers: dict[str, str] = field(default_factory=dict)

    def context_kwargs(self) -> dict[str, object]:
        kwargs: dict[str, object] = {
            "viewport": {"width": self.viewport_width, "height": self.viewport_height},
            "ignore_https_errors": self.ignore_https_errors,
        }
        if self.user_agent:
            kwargs["user_agent"] = self.user_agent
        if self.proxy:
            kwargs["proxy"] = dict(self.proxy)
        return kwargs


@dataclass
class BrowserSession:
    """One context and one page, owned by a single request."""

    options: SessionOptions
    context: Optional[BrowserContext] = None
    page: Optional[Page] = None
    opened: bool = False
    closed: bool = False


class SessionManager:
    """Open and tear down isolated sessions on the shared engine."""

    def __init__(
        self,
        engine: BrowserEngine,
        policy: NetworkPolicy,
        config: Optional[BrowserConfig] = None,
    ) -> None:
        self._engine = engine
        self._policy = policy
        self._config = config or BrowserConfig()
        self._open_sessions = 0

    @property
    def open_sessions(self) -> int:
        return self._open_sessions

    def build_options(
        self,
        *,
        ignore_https_errors: bool = False,
        extra_headers: Optional[dict[str, str]] = None,
    ) -> SessionOptions:
        user_agents = self._config.user_agents
        return SessionOptions(
            viewport_width=self._config.viewport_width,
            viewport_height=self._config.viewport_height,
            user_agent=random.choice(user_agents) if user_agents else None,
            ignore_https_errors=ignore_https_errors,
            proxy=self._config.proxy_settings(),
            extra_headers=dict(extra_headers or {}),
        )

    async def open(self, session: BrowserSession) -> BrowserSession:
        """Populate ``session`` with a new context and page.

        Handles created before a failure stay on ``session`` so that
        :meth:`close` can release them.
        """

        self._open_sessions += 1
        session.opened = True
        session.context = await self._engine.new_context(**session.options.context_kwargs())
        await self._policy.install(session.context)
        session.page = await session.context.new_page()
        if session.options.extra_headers:
            await session.page.set_extra_http_headers(session.options.extra_headers)
        return session

    async def close(self, session: BrowserSession) -> None:
        if session.closed:
            return
        session.closed = True
        page, context = session.page, session.context
        session.page = None
        session.context = None
        try:
            if page is not None:
                try:
                    await page.close()
                except Exception:
                    LOGGER.warning("Failed to close page", exc_info=True)
            if context is not None:
                try:
                    await context.close()
                except Exception:
                    LOGGER.warning("Failed to close browser context", exc_info=True)
        finally:
            if session.opened:
                self._open_sessions -= 1

    @asynccontextmanager
    async def session(self, options: SessionOptions) -> AsyncIterator[BrowserSession]:
        """Open a session and close it exactly once, whatever happens inside."""

        session = BrowserSession(options=options)
        try:
            yield await self.open(session)
        finally:
            await self.close(session)
