from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from photo_story.api.contracts import StoryExportResponse
from photo_story.cli import api as api_cli
from photo_story.cli import export as export_cli


@pytest.fixture(autouse=True)
def _no_runtime_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(api_cli, "configure_runtime_logging", lambda: None)
    monkeypatch.setattr(export_cli, "configure_runtime_logging", lambda: None)


def test_api_main_runs_uvicorn_with_app_path(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, Any] = {}

    def fake_run(app_path: str, **kwargs: Any) -> None:
        seen["app_path"] = app_path
        seen.update(kwargs)

    monkeypatch.setattr(api_cli.uvicorn, "run", fake_run)
    api_cli.main(["--host", "0.0.0.0", "--port", "9001", "--reload"])
    assert seen == {
        "app_path": "photo_story.api.app:app",
        "host": "0.0.0.0",
        "port": 9001,
        "reload": True,
    }


def test_export_main_writes_output_file(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    export = StoryExportResponse.model_validate(
        {"title": "Visual Story - 0 Chapters", "createdAt": "2026-01-01T00:00:00Z", "chapters": []}
    )
    monkeypatch.setattr(export_cli.StoryApiClient, "export_story", lambda self: export)
    output = tmp_path / "story.json"

    export_cli.main(["--api-base-url", "http://api.local", "--output", str(output)])

    saved = json.loads(output.read_text(encoding="utf-8"))
    assert saved["title"] == "Visual Story - 0 Chapters"
    assert saved["chapters"] == []
    assert "wrote 0 chapter(s)" in capsys.readouterr().out


def test_export_main_exits_on_http_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def failing_export(self: object) -> StoryExportResponse:
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(export_cli.StoryApiClient, "export_story", failing_export)
    with pytest.raises(SystemExit, match="Story export failed"):
        export_cli.main(["--output", str(tmp_path / "never.json")])
    assert not (tmp_path / "never.json").exists()
