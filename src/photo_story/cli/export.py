"""CLI for downloading a story export from a running API."""

from __future__ import annotations

import argparse
import logging
from datetime import UTC, datetime
from pathlib import Path

import httpx

from photo_story.adapters.observability import configure_runtime_logging
from photo_story.api.python_interface import StoryApiClient, save_export_json
from photo_story.application.export import export_filename

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    """Define CLI flags for story export."""
    parser = argparse.ArgumentParser(description="Download the current story as JSON.")
    parser.add_argument("--api-base-url", default="http://127.0.0.1:8000")
    parser.add_argument(
        "--output",
        default="",
        help="Output file path (default: ./visual-story-<epoch-ms>.json).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    configure_runtime_logging()
    parsed = build_arg_parser().parse_args(argv)
    output = str(parsed.output).strip()
    output_path = Path(output) if output else Path(export_filename(datetime.now(UTC)))

    client = StoryApiClient(api_base_url=str(parsed.api_base_url))
    try:
        export = client.export_story()
    except httpx.HTTPError as exc:
        raise SystemExit(f"Story export failed: {exc}") from exc
    save_export_json(output_path, export)
    logger.info("export.saved path=%s chapters=%s", output_path, len(export.chapters))
    print(f"wrote {len(export.chapters)} chapter(s) to {output_path}")


if __name__ == "__main__":
    main()
