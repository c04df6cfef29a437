"""Command line interface for render-worker."""

from __future__ import annotations

import asyncio
import json
import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console

from .config import WorkerConfig, load_config
from .errors import InvalidRenderRequestError
from .models import RenderRequest, RenderResponse
from .worker import RenderWorker, render_summary

app = typer.Typer(help="Render Worker entry point")
console = Console()


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure logging before executing any command."""

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def version() -> None:
    """Print the package version."""

    try:
        typer.echo(get_version("render-worker"))
    except PackageNotFoundError:  # pragma: no cover - when running from source tree
        typer.echo("0.0.0")


@app.command()
def serve(
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to YAML configuration."),
    ] = None,
    env_file: Annotated[
        Optional[Path],
        typer.Option("--env-file", help="Path to an .env file with default configuration values."),
    ] = None,
    host: Annotated[
        Optional[str],
        typer.Option("--host", help="Binding address for the HTTP service."),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", help="HTTP port for the service."),
    ] = None,
    max_pages: Annotated[
        Optional[int],
        typer.Option("--max-pages", help="Maximum number of concurrently open pages."),
    ] = None,
    headless: Annotated[
        Optional[bool],
        typer.Option("--headless/--headed", help="Run the browser in headless mode (or headed)."),
    ] = None,
    block_media: Annotated[
        Optional[bool],
        typer.Option("--block-media/--allow-media", help="Abort image and media requests."),
    ] = None,
) -> None:
    """Serve the render API over HTTP."""

    overrides: dict[str, Any] = {}
    if host is not None or port is not None:
        overrides.setdefault("service", {})
        if host is not None:
            overrides["service"]["host"] = host
        if port is not None:
            overrides["service"]["port"] = port
    if headless is not None or block_media is not None:
        overrides.setdefault("browser", {})
        if headless is not None:
            overrides["browser"]["headless"] = headless
        if block_media is not None:
            overrides["browser"]["block_media"] = block_media
    if max_pages is not None:
        overrides["max_concurrent_pages"] = max_pages

    config = load_config(config_path, env_file=env_file, **overrides)

    import uvicorn

    from . import service

    service.worker = RenderWorker(config)
    typer.echo(f"Server is running on {config.service.host}:{config.service.port}")
    uvicorn.run(service.app, host=config.service.host, port=config.service.port)


@app.command()
def render(
    url: Annotated[str, typer.Argument(help="Page to render.")],
    actions_path: Annotated[
        Optional[Path],
        typer.Option("--actions", "-a", help="JSON or YAML file with an action list."),
    ] = None,
    screenshot: Annotated[
        bool,
        typer.Option("--screenshot", help="Capture a viewport screenshot."),
    ] = False,
    full_page: Annotated[
        bool,
        typer.Option("--full-page", help="Capture a full page screenshot."),
    ] = False,
    timeout: Annotated[
        Optional[int],
        typer.Option("--timeout", help="Navigation timeout in milliseconds."),
    ] = None,
    wait: Annotated[
        int,
        typer.Option("--wait", help="Delay after load in milliseconds."),
    ] = 0,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the full JSON response to this file."),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to YAML configuration."),
    ] = None,
) -> None:
    """Render a single page in-process and print a summary."""

    try:
        request = RenderRequest(
            url=url,
            wait_after_load=wait,
            timeout=timeout,
            actions=_load_actions(actions_path) if actions_path else [],
            screenshot=screenshot,
            full_page_screenshot=full_page,
        )
    except (ValueError, InvalidRenderRequestError) as exc:
        typer.echo(f"Invalid request: {exc}", err=True)
        raise typer.Exit(code=2) from exc

    config = load_config(config_path)
    response = asyncio.run(_render_once(config, request))
    if output is not None:
        output.write_text(json.dumps(response.to_payload()))
    console.print_json(data=render_summary(response))
    if response.page_error:
        raise typer.Exit(code=1)


async def _render_once(config: WorkerConfig, request: RenderRequest) -> RenderResponse:
    worker = RenderWorker(config)
    try:
        return await worker.render(request)
    finally:
        await worker.shutdown()


def _load_actions(path: Path) -> list[Any]:
    text = path.read_text()
    if path.suffix.lower() in {".yaml", ".yml"}:
        import yaml

        try:
            data = yaml.safe_load(text) or []
        except yaml.YAMLError as exc:
            raise InvalidRenderRequestError(f"{path} is not valid YAML: {exc}") from exc
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise InvalidRenderRequestError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise InvalidRenderRequestError(f"{path} must contain a list of actions")
    return data


if __name__ == "__main__":
    app()
