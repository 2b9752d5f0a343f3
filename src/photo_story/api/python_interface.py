"""Python-first interface for the photo story HTTP API."""

from __future__ import annotations

import json
import mimetypes
from pathlib import Path

import httpx

from photo_story.api.contracts import (
    ChapterCreateRequest,
    ChapterResponse,
    MessageResponse,
    StoryExportResponse,
    UploadUrlResponse,
)


class StoryApiClient:
    """Tiny typed API client for Python users."""

    def __init__(self, api_base_url: str = "http://127.0.0.1:8000", timeout: float = 120.0) -> None:
        """Initialize client with an API base URL."""
        self._api_base_url = api_base_url.rstrip("/")
        self._timeout = timeout

    @property
    def api_base_url(self) -> str:
        """Return normalized API base URL."""
        return self._api_base_url

    def list_chapters(self) -> list[ChapterResponse]:
        """Return every chapter in story order."""
        response = httpx.get(f"{self._api_base_url}/api/chapters", timeout=self._timeout)
        response.raise_for_status()
        return [ChapterResponse.model_validate(item) for item in response.json()]

    def get_chapter(self, chapter_id: str) -> ChapterResponse:
        response = httpx.get(
            f"{self._api_base_url}/api/chapters/{chapter_id}", timeout=self._timeout
        )
        response.raise_for_status()
        return ChapterResponse.model_validate(response.json())

    def upload_image(self, path: Path) -> ChapterResponse:
        """Upload one local photo and return the chapter it produced."""
        media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        with path.open("rb") as handle:
            response = httpx.post(
                f"{self._api_base_url}/api/analyze-image",
                files={"image": (path.name, handle, media_type)},
                timeout=self._timeout,
            )
        response.raise_for_status()
        return ChapterResponse.model_validate(response.json())

    def create_chapter_from_url(
        self, image_url: str, *, base64_image: str | None = None
    ) -> ChapterResponse:
        """Create a chapter from an already-hosted image."""
        request = ChapterCreateRequest(image_url=image_url, base64_image=base64_image)
        response = httpx.post(
            f"{self._api_base_url}/api/chapters",
            json=request.model_dump(by_alias=True, exclude_none=True),
            timeout=self._timeout,
        )
        response.raise_for_status()
        return ChapterResponse.model_validate(response.json())

    def reset_story(self) -> MessageResponse:
        response = httpx.delete(f"{self._api_base_url}/api/chapters", timeout=self._timeout)
        response.raise_for_status()
        return MessageResponse.model_validate(response.json())

    def export_story(self) -> StoryExportResponse:
        response = httpx.get(f"{self._api_base_url}/api/export", timeout=self._timeout)
        response.raise_for_status()
        return StoryExportResponse.model_validate(response.json())

    def request_upload_url(self) -> str:
        response = httpx.post(f"{self._api_base_url}/api/upload-url", timeout=self._timeout)
        response.raise_for_status()
        return UploadUrlResponse.model_validate(response.json()).upload_url


def save_export_json(path: Path, export: StoryExportResponse) -> None:
    """Write an export document as indented camelCase JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = export.model_dump(mode="json", by_alias=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
