"""Typed contracts shared by API handlers and Python interfaces."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from photo_story.application.export import StoryExport
from photo_story.domain.models import Chapter


class ContractModel(BaseModel):
    """Base model config used by all API contracts; camelCase on the wire."""

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class HealthResponse(ContractModel):
    """Simple health payload used by probes."""

    status: Literal["ok"] = "ok"
    service: str = "photo_story"


class ChapterResponse(ContractModel):
    """One stored chapter."""

    id: str
    user_id: str | None = None
    image_url: str
    narrative: str
    connections: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    chapter_number: int = Field(ge=1)
    created_at: datetime

    @classmethod
    def from_chapter(cls, chapter: Chapter) -> ChapterResponse:
        return cls(
            id=chapter.chapter_id,
            user_id=chapter.user_id,
            image_url=chapter.image_url,
            narrative=chapter.narrative,
            connections=list(chapter.connections),
            tags=list(chapter.tags),
            chapter_number=chapter.chapter_number,
            created_at=chapter.created_at_utc,
        )


class ChapterCreateRequest(ContractModel):
    """URL-based chapter creation; `base64Image` skips the remote fetch."""

    model_config = ConfigDict(extra="ignore")

    image_url: str = Field(min_length=1)
    base64_image: str | None = None

    @field_validator("image_url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if not parts.scheme:
            raise ValueError("Invalid url")
        if parts.scheme.lower() == "data":
            return value
        if not parts.netloc:
            raise ValueError("Invalid url")
        return value


class ExportedChapterResponse(ContractModel):
    chapter_number: int
    narrative: str
    connections: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    created_at: datetime


class StoryExportResponse(ContractModel):
    """Downloadable whole-story document."""

    title: str
    created_at: datetime
    chapters: list[ExportedChapterResponse] = Field(default_factory=list)

    @classmethod
    def from_export(cls, export: StoryExport) -> StoryExportResponse:
        return cls(
            title=export.title,
            created_at=export.created_at_utc,
            chapters=[
                ExportedChapterResponse(
                    chapter_number=chapter.chapter_number,
                    narrative=chapter.narrative,
                    connections=list(chapter.connections),
                    tags=list(chapter.tags),
                    created_at=chapter.created_at_utc,
                )
                for chapter in export.chapters
            ],
        )


class UploadUrlResponse(ContractModel):
    # The browser client reads `uploadURL`, which to_camel would not produce.
    upload_url: str = Field(alias="uploadURL")


class MessageResponse(ContractModel):
    message: str


class ErrorResponse(ContractModel):
    """JSON error envelope for every non-2xx response."""

    error: str
    details: str | list[Any] | None = None
