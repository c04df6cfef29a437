"""Configuration models for the render worker."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_AD_DOMAINS = [
    "doubleclick.net",
    "adservice.google.com",
    "googlesyndication.com",
    "googletagservices.com",
    "googletagmanager.com",
    "google-analytics.com",
    "adsystem.com",
    "adservice.com",
    "adnxs.com",
    "ads-twitter.com",
    "facebook.net",
    "fbcdn.net",
    "amazon-adsystem.com",
]

DEFAULT_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_5) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.5 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:127.0) Gecko/20100101 Firefox/127.0",
]

WaitUntil = Literal["load", "domcontentloaded", "networkidle", "commit"]


class BrowserConfig(BaseModel):
    """Settings for the shared browser engine and the contexts derived from it."""

    headless: bool = True
    viewport_width: int = 1280
    viewport_height: int = 800
    block_media: bool = False
    proxy_server: Optional[str] = None
    proxy_username: Optional[str] = None
    proxy_password: Optional[str] = None
    user_agents: list[str] = Field(default_factory=lambda: list(DEFAULT_USER_AGENTS))
    ad_domains: list[str] = Field(default_factory=lambda: list(DEFAULT_AD_DOMAINS))

    def proxy_settings(self) -> Optional[dict[str, str]]:
        """Return Playwright proxy settings, or ``None`` when no proxy is configured."""

        if not self.proxy_server:
            return None
        proxy = {"server": self.proxy_server}
        if self.proxy_username and self.proxy_password:
            proxy["username"] = self.proxy_username
            proxy["password"] = self.proxy_password
        return proxy


class NavigationConfig(BaseModel):
    """Defaults for the initial page load."""

    wait_until: WaitUntil = "load"
    default_timeout_ms: int = Field(default=15000, gt=0)


class ActionConfig(BaseModel):
    """Tunables for the action executor."""

    wait_selector_timeout_ms: int = Field(default=30000, gt=0)
    scroll_amount: int = Field(default=500, gt=0)


class ServiceConfig(BaseModel):
    """Settings for the HTTP surface."""

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3003)
    warm_start: bool = Field(
        default=True,
        description="Launch the browser engine when the service starts.",
    )


class WorkerConfig(BaseSettings):
    """Top-level configuration for the render worker."""

    model_config = SettingsConfigDict(
        env_prefix="RENDER_WORKER_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    max_concurrent_pages: int = Field(default=10, ge=1)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    navigation: NavigationConfig = Field(default_factory=NavigationConfig)
    actions: ActionConfig = Field(default_factory=ActionConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)


def load_config(
    path: Path | None = None,
    *,
    env_file: Path | None = None,
    **overrides: object,
) -> WorkerConfig:
    """Load configuration from an optional file and overrides."""

    data: dict[str, Any] = {}
    if path:
        import yaml

        data = yaml.safe_load(path.read_text()) or {}
    if overrides:
        _deep_update(data, overrides)
    settings_kwargs: dict[str, object] = {}
    if env_file is not None:
        settings_kwargs["_env_file"] = env_file
    config = WorkerConfig(**data, **settings_kwargs)
    if not data:
        return config

    merged = config.model_dump(mode="python")
    _deep_update(merged, data)
    return WorkerConfig.model_validate(merged)


def _deep_update(target: dict[str, Any], updates: Mapping[str, Any]) -> None:
    """Recursively merge ``updates`` into ``target`` in-place."""

    for key, value in updates.items():
        if (
            isinstance(value, Mapping)
            and isinstance(existing := target.get(key), Mapping)
        ):
            nested: dict[str, Any]
            if isinstance(existing, dict):
                nested = existing
            else:
                nested = dict(existing)
            _deep_update(nested, value)
            target[key] = nested
        else:
            target[key] = value
