"""HTTP client used by orchestrators to talk to render worker instances."""

from __future__ import annotations

from typing import Any, Optional

import httpx

from .models import RenderRequest, RenderResponse, WorkerHealth


class RenderWorkerClientError(RuntimeError):
    """Raised when the worker rejects a request or fails to render it."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class RenderClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def render(self, request: RenderRequest) -> RenderResponse:
        payload = request.model_dump(mode="json", by_alias=True, exclude_none=True)
        async with self._client() as client:
            response = await client.post("/scrape", json=payload)
        if response.status_code != 200:
            raise RenderWorkerClientError(response.status_code, _error_message(response))
        return RenderResponse.model_validate(response.json())

    async def health(self) -> WorkerHealth:
        async with self._client() as client:
            response = await client.get("/health")
        if response.status_code not in {200, 503}:
            response.raise_for_status()
        return WorkerHealth.model_validate(response.json())


def _error_message(response: httpx.Response) -> str:
    try:
        data: Any = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict) and "error" in data:
        return str(data["error"])
    return response.text
