"""Request, action and result models shared across the render worker."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Literal, Optional, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, field_validator


class _ActionModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class WaitAction(_ActionModel):
    """Pause for a fixed duration or until a selector appears."""

    type: Literal["wait"] = "wait"
    milliseconds: Optional[int] = Field(default=None, ge=0)
    selector: Optional[str] = None


class ClickAction(_ActionModel):
    """Click the first element matching ``selector`` (or every match with ``all``)."""

    type: Literal["click"] = "click"
    selector: str
    all: bool = False


class WriteAction(_ActionModel):
    type: Literal["write"] = "write"
    text: str


class PressAction(_ActionModel):
    type: Literal["press"] = "press"
    key: str


class ScrollAction(_ActionModel):
    """Scroll the window, or the element matching ``selector``, by a fixed step."""

    type: Literal["scroll"] = "scroll"
    direction: Literal["up", "down"] = "down"
    selector: Optional[str] = None


class ScreenshotAction(_ActionModel):
    type: Literal["screenshot"] = "screenshot"
    full_page: bool = Field(default=False, alias="fullPage")


class ScrapeAction(_ActionModel):
    type: Literal["scrape"] = "scrape"


class ExecuteJavascriptAction(_ActionModel):
    type: Literal["executeJavascript"] = "executeJavascript"
    script: str


class PdfAction(_ActionModel):
    """Render the page to PDF; unset options are left to the browser defaults."""

    type: Literal["pdf"] = "pdf"
    landscape: Optional[bool] = None
    scale: Optional[float] = Field(default=None, gt=0)
    format: Optional[str] = None


class UnknownAction(_ActionModel):
    """Placeholder for action types this worker does not understand."""

    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None


ACTION_TYPES = frozenset(
    {"wait", "click", "write", "press", "scroll", "screenshot", "scrape", "executeJavascript", "pdf"}
)


def _action_tag(value: Any) -> str:
    if isinstance(value, dict):
        tag = value.get("type")
    else:
        tag = getattr(value, "type", None)
    if isinstance(tag, str) and tag in ACTION_TYPES:
        return tag
    return "unknown"


Action = Annotated[
    Union[
        Annotated[WaitAction, Tag("wait")],
        Annotated[ClickAction, Tag("click")],
        Annotated[WriteAction, Tag("write")],
        Annotated[PressAction, Tag("press")],
        Annotated[ScrollAction, Tag("scroll")],
        Annotated[ScreenshotAction, Tag("screenshot")],
        Annotated[ScrapeAction, Tag("scrape")],
        Annotated[ExecuteJavascriptAction, Tag("executeJavascript")],
        Annotated[PdfAction, Tag("pdf")],
        Annotated[UnknownAction, Tag("unknown")],
    ],
    Discriminator(_action_tag),
]


class ScrapeActionContent(BaseModel):
    url: str
    html: str


class JavascriptReturn(BaseModel):
    type: str
    value: Any = None


class ActionFailure(BaseModel):
    """An action that raised while executing; logged, never sent to callers."""

    index: int
    type: Optional[str]
    error: str


class ActionResults(BaseModel):
    """Artifacts captured while running an action list, in execution order."""

    model_config = ConfigDict(populate_by_name=True)

    screenshots: list[str] = Field(default_factory=list)
    scrapes: list[ScrapeActionContent] = Field(default_factory=list)
    javascript_returns: list[JavascriptReturn] = Field(
        default_factory=list,
        alias="javascriptReturns",
    )
    pdfs: list[str] = Field(default_factory=list)
    failures: list[ActionFailure] = Field(default_factory=list, exclude=True)

    def is_empty(self) -> bool:
        return not (self.screenshots or self.scrapes or self.javascript_returns or self.pdfs)


@dataclass
class ScrapeOutcome:
    """Result of loading the target URL and extracting its content."""

    content: str
    status: Optional[int] = None
    headers: Optional[dict[str, str]] = None
    content_type: Optional[str] = None
    navigation_error: Optional[str] = None


def is_valid_url(value: str) -> bool:
    """Return True when ``value`` is an absolute http(s) URL with a host."""

    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return parts.scheme.lower() in {"http", "https"} and bool(parts.netloc)


class RenderRequest(BaseModel):
    """A single render-and-act request."""

    url: str
    wait_after_load: int = Field(default=0, ge=0, description="Pause after load, in ms.")
    timeout: Optional[int] = Field(
        default=None,
        gt=0,
        description="Navigation and required-selector timeout in ms.",
    )
    headers: Optional[dict[str, str]] = None
    check_selector: Optional[str] = None
    skip_tls_verification: bool = False
    actions: list[Action] = Field(default_factory=list)
    screenshot: bool = False
    full_page_screenshot: bool = False

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        if not value:
            raise ValueError("URL is required")
        if not is_valid_url(value):
            raise ValueError("Invalid URL")
        return value

    @property
    def wants_screenshot(self) -> bool:
        return self.screenshot or self.full_page_screenshot


class RenderResponse(BaseModel):
    """Response returned for a render request."""

    model_config = ConfigDict(populate_by_name=True)

    content: str
    page_status_code: Optional[int] = Field(default=None, alias="pageStatusCode")
    content_type: Optional[str] = Field(default=None, alias="contentType")
    headers: Optional[dict[str, str]] = None
    screenshot: Optional[str] = None
    actions: Optional[ActionResults] = None
    page_error: Optional[str] = Field(default=None, alias="pageError")

    def to_payload(self) -> dict[str, Any]:
        """Serialize for the wire, keeping nullable diagnostics and dropping unset extras."""

        payload: dict[str, Any] = {
            "content": self.content,
            "pageStatusCode": self.page_status_code,
            "contentType": self.content_type,
        }
        if self.headers is not None:
            payload["headers"] = self.headers
        if self.screenshot is not None:
            payload["screenshot"] = self.screenshot
        if self.actions is not None:
            payload["actions"] = self.actions.model_dump(by_alias=True)
        if self.page_error is not None:
            payload["pageError"] = self.page_error
        return payload


class WorkerHealth(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str
    max_concurrent_pages: Optional[int] = Field(default=None, alias="maxConcurrentPages")
    active_pages: Optional[int] = Field(default=None, alias="activePages")
    error: Optional[str] = None
