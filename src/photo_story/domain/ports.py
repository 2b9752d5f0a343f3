"""Ports for chapter storage, narrative analysis, and image sources."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from photo_story.domain.models import Chapter, ChapterContext, ImagePayload, NarrativeAnalysis


class ChapterStore(Protocol):
    """Owns chapter lifetime for the single global story."""

    def create(
        self,
        *,
        image_url: str,
        narrative: str,
        chapter_number: int,
        connections: Sequence[str] = (),
        tags: Sequence[str] = (),
        user_id: str | None = None,
    ) -> Chapter: ...

    def list_all(self) -> list[Chapter]: ...

    def get_by_id(self, chapter_id: str) -> Chapter | None: ...

    def delete_all(self) -> None: ...

    def count(self) -> int: ...


class NarrativeAnalyzer(Protocol):
    """Turns one image plus prior context into the next chapter's narrative."""

    name: str

    def analyze(
        self, *, image: ImagePayload, context: Sequence[ChapterContext]
    ) -> NarrativeAnalysis: ...


class ImageFetcher(Protocol):
    """Downloads a remote image referenced by URL."""

    def fetch(self, url: str) -> ImagePayload: ...


class UploadUrlIssuer(Protocol):
    """Issues one-shot upload URLs for direct-to-storage image uploads."""

    def issue_upload_url(self) -> str: ...
