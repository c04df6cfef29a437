from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from render_worker import cli
from render_worker import service as render_service
from render_worker.cli import app
from render_worker.config import WorkerConfig
from render_worker.models import RenderRequest, RenderResponse


def test_version_command() -> None:
    result = CliRunner().invoke(app, ["version"])

    assert result.exit_code == 0
    assert result.stdout.strip()


def test_serve_applies_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: dict[str, object] = {}

    def fake_run(application: object, *, host: str, port: int) -> None:
        calls.update(app=application, host=host, port=port)

    monkeypatch.setattr("uvicorn.run", fake_run)
    monkeypatch.setattr(render_service, "worker", render_service.worker)

    result = CliRunner().invoke(
        app,
        ["serve", "--host", "127.0.0.1", "--port", "9100", "--max-pages", "2", "--block-media", "--headed"],
    )

    assert result.exit_code == 0, result.output
    assert calls == {"app": render_service.app, "host": "127.0.0.1", "port": 9100}
    config = render_service.worker.config
    assert config.max_concurrent_pages == 2
    assert config.browser.block_media is True
    assert config.browser.headless is False
    assert render_service.worker.admission.capacity == 2


def test_render_command_prints_summary(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    seen: dict[str, object] = {}

    async def fake_render_once(config: WorkerConfig, request: RenderRequest) -> RenderResponse:
        seen["request"] = request
        return RenderResponse(content="<html/>", page_status_code=200, content_type="text/html")

    monkeypatch.setattr(cli, "_render_once", fake_render_once)
    actions_path = tmp_path / "actions.yaml"
    actions_path.write_text("- type: wait\n  milliseconds: 200\n- type: scrape\n")
    output_path = tmp_path / "out.json"

    result = CliRunner().invoke(
        app,
        [
            "render",
            "https://example.com",
            "--actions",
            str(actions_path),
            "--screenshot",
            "--timeout",
            "5000",
            "--output",
            str(output_path),
        ],
    )

    assert result.exit_code == 0, result.output
    request = seen["request"]
    assert isinstance(request, RenderRequest)
    assert [action.type for action in request.actions] == ["wait", "scrape"]
    assert request.screenshot is True
    assert request.timeout == 5000
    assert json.loads(output_path.read_text())["pageStatusCode"] == 200
    assert '"pageStatusCode": 200' in result.stdout


def test_render_command_exits_non_zero_on_page_error(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_render_once(config: WorkerConfig, request: RenderRequest) -> RenderResponse:
        return RenderResponse(content="", page_status_code=None, page_error="Navigation failed")

    monkeypatch.setattr(cli, "_render_once", fake_render_once)

    result = CliRunner().invoke(app, ["render", "https://unreachable.example"])

    assert result.exit_code == 1


def test_render_command_rejects_invalid_url() -> None:
    result = CliRunner().invoke(app, ["render", "nope"])

    assert result.exit_code == 2


def test_render_command_rejects_non_list_action_file(tmp_path: Path) -> None:
    actions_path = tmp_path / "actions.json"
    actions_path.write_text('{"type": "scrape"}')

    result = CliRunner().invoke(app, ["render", "https://example.com", "--actions", str(actions_path)])

    assert result.exit_code == 2


def test_render_command_rejects_malformed_yaml_action_file(tmp_path: Path) -> None:
    actions_path = tmp_path / "actions.yaml"
    actions_path.write_text("- type: wait\n  milliseconds: [200\n")

    result = CliRunner().invoke(app, ["render", "https://example.com", "--actions", str(actions_path)])

    assert result.exit_code == 2
    assert "not valid YAML" in result.output
