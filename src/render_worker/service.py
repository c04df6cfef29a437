"""HTTP service exposing the render operation to orchestrators."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import load_config
from .errors import (
    EngineUnavailableError,
    InvalidRenderRequestError,
    RequiredSelectorNotFoundError,
)
from .models import RenderRequest
from .worker import RenderWorker

LOGGER = logging.getLogger(__name__)

GENERIC_ERROR = "An error occurred while fetching the page."

worker = RenderWorker(load_config())


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    current = worker
    if current.config.service.warm_start:
        try:
            await current.engine.ensure_started()
        except EngineUnavailableError:
            LOGGER.error("Browser unavailable at startup; will retry on first request")
    LOGGER.info(
        "Render worker ready (max concurrent pages: %d)", current.config.max_concurrent_pages
    )
    try:
        yield
    finally:
        await current.shutdown()
        LOGGER.info("Browser closed")


app = FastAPI(title="Render Worker", lifespan=lifespan)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(RequestValidationError)
async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(400, _describe_validation_error(exc))


def _describe_validation_error(exc: RequestValidationError) -> str:
    messages: list[str] = []
    for item in exc.errors():
        loc = [str(part) for part in item.get("loc", ()) if part != "body"]
        if loc == ["url"]:
            if item.get("type") == "missing":
                return "URL is required"
            error = (item.get("ctx") or {}).get("error")
            return str(error) if error else "Invalid URL"
        message = str(item.get("msg", "invalid value"))
        messages.append(f"{'.'.join(loc)}: {message}" if loc else message)
    return "; ".join(messages) or "Invalid request"


# API routes -----------------------------------------------------------------


@app.get("/health")
async def get_health() -> Any:
    try:
        health = await worker.health()
    except Exception as exc:
        LOGGER.exception("Health check failed")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "error": str(exc)})
    return health.model_dump(by_alias=True, exclude_none=True)


@app.post("/scrape")
async def scrape(payload: RenderRequest) -> Any:
    try:
        response = await worker.render(payload)
    except InvalidRenderRequestError as exc:
        return _error(400, str(exc))
    except EngineUnavailableError as exc:
        return _error(503, str(exc))
    except RequiredSelectorNotFoundError as exc:
        LOGGER.warning("Required selector %r not found on %s", exc.selector, payload.url)
        return _error(500, str(exc))
    except Exception:
        LOGGER.exception("Render of %s failed", payload.url)
        return _error(500, GENERIC_ERROR)
    return response.to_payload()
