"""Core photo story domain models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Chapter:
    """One story unit produced from one photo plus its generated narrative."""

    chapter_id: str
    image_url: str
    narrative: str
    chapter_number: int
    created_at_utc: datetime
    connections: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    user_id: str | None = None


@dataclass(frozen=True)
class ChapterContext:
    """Prior-chapter summary handed to the analyzer for continuity."""

    narrative: str
    tags: tuple[str, ...]
    chapter_number: int


@dataclass(frozen=True)
class NarrativeAnalysis:
    """Analyzer output for one image."""

    narrative: str
    connections: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class ImagePayload:
    """Raw image bytes with their declared or sniffed media type."""

    data: bytes
    media_type: str

    @property
    def size_bytes(self) -> int:
        return len(self.data)
