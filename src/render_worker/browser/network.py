"""Per-context request filtering for ads, trackers and optionally media."""

from __future__ import annotations

import logging
from typing import Iterable, Optional
from urllib.parse import urlsplit

from playwright.async_api import BrowserContext, Route

from ..config import DEFAULT_AD_DOMAINS

LOGGER = logging.getLogger(__name__)

MEDIA_EXTENSIONS = frozenset(
    {"png", "jpg", "jpeg", "gif", "svg", "mp3", "mp4", "avi", "flac", "ogg", "wav", "webm"}
)
MEDIA_RESOURCE_TYPES = frozenset({"image", "media"})


class NetworkPolicy:
    """Decide which requests a page may make."""

    def __init__(
        self,
        ad_domains: Optional[Iterable[str]] = None,
        *,
        block_media: bool = False,
    ) -> None:
        domains = DEFAULT_AD_DOMAINS if ad_domains is None else ad_domains
        self._ad_domains = tuple(domain.lower() for domain in domains if domain)
        self._block_media = block_media

    @property
    def block_media(self) -> bool:
        return self._block_media

    def should_abort(self, url: str, resource_type: Optional[str] = None) -> bool:
        """Return True when the request must be aborted; never raises."""

        try:
            parts = urlsplit(url)
            hostname = (parts.hostname or "").lower()
        except ValueError:
            return False
        if self._block_media and _is_media(parts.path, resource_type):
            return True
        return bool(hostname) and any(domain in hostname for domain in self._ad_domains)

    async def install(self, context: BrowserContext) -> None:
        await context.route("**/*", self._handle_route)

    async def _handle_route(self, route: Route) -> None:
        request = route.request
        if self.should_abort(request.url, request.resource_type):
            LOGGER.debug("Blocked request to %s", request.url)
            await route.abort()
            return
        await route.continue_()


def _is_media(path: str, resource_type: Optional[str]) -> bool:
    if resource_type in MEDIA_RESOURCE_TYPES:
        return True
    _, _, extension = path.rpartition(".")
    return "/" not in extension and extension.lower() in MEDIA_EXTENSIONS
