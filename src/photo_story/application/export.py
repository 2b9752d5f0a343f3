"""Story export snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from photo_story.domain.ports import ChapterStore


@dataclass(frozen=True)
class ExportedChapter:
    """Chapter fields included in a story export."""

    chapter_number: int
    narrative: str
    connections: tuple[str, ...]
    tags: tuple[str, ...]
    created_at_utc: datetime


@dataclass(frozen=True)
class StoryExport:
    """Whole-story snapshot."""

    title: str
    created_at_utc: datetime
    chapters: tuple[ExportedChapter, ...]


def export_title(chapter_count: int) -> str:
    return f"Visual Story - {chapter_count} Chapters"


def export_filename(now: datetime) -> str:
    """Download filename keyed by epoch milliseconds."""
    return f"visual-story-{int(now.timestamp() * 1000)}.json"


class ExportService:
    def __init__(self, *, store: ChapterStore) -> None:
        self._store = store

    def export_story(self, now: datetime | None = None) -> StoryExport:
        chapters = self._store.list_all()
        return StoryExport(
            title=export_title(len(chapters)),
            created_at_utc=now or datetime.now(UTC),
            chapters=tuple(
                ExportedChapter(
                    chapter_number=chapter.chapter_number,
                    narrative=chapter.narrative,
                    connections=chapter.connections,
                    tags=chapter.tags,
                    created_at_utc=chapter.created_at_utc,
                )
                for chapter in chapters
            ),
        )
