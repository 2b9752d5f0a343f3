"""In-process chapter persistence for the single global story."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import uuid4

from photo_story.domain.errors import StorageFailureError
from photo_story.domain.models import Chapter

logger = logging.getLogger(__name__)


class InMemoryChapterStore:
    """Hold chapters keyed by id; every operation is atomic under one lock."""

    def __init__(self) -> None:
        self._chapters: dict[str, Chapter] = {}
        self._numbers: set[int] = set()
        self._lock = threading.Lock()

    def create(
        self,
        *,
        image_url: str,
        narrative: str,
        chapter_number: int,
        connections: Sequence[str] = (),
        tags: Sequence[str] = (),
        user_id: str | None = None,
    ) -> Chapter:
        """Insert a new chapter with a fresh id and creation timestamp."""
        if chapter_number < 1:
            raise StorageFailureError(f"Chapter number must be positive, got {chapter_number}.")
        chapter = Chapter(
            chapter_id=uuid4().hex,
            user_id=user_id,
            image_url=image_url,
            narrative=narrative,
            connections=tuple(connections),
            tags=tuple(tags),
            chapter_number=chapter_number,
            created_at_utc=datetime.now(UTC),
        )
        with self._lock:
            if chapter_number in self._numbers:
                raise StorageFailureError(f"Chapter number {chapter_number} is already taken.")
            self._chapters[chapter.chapter_id] = chapter
            self._numbers.add(chapter_number)
        logger.debug(
            "chapter.created id=%s chapter_number=%s", chapter.chapter_id, chapter_number
        )
        return chapter

    def list_all(self) -> list[Chapter]:
        """Return every chapter ordered by ascending chapter number."""
        with self._lock:
            chapters = list(self._chapters.values())
        return sorted(chapters, key=lambda chapter: chapter.chapter_number)

    def get_by_id(self, chapter_id: str) -> Chapter | None:
        with self._lock:
            return self._chapters.get(chapter_id)

    def count(self) -> int:
        with self._lock:
            return len(self._chapters)

    def delete_all(self) -> None:
        with self._lock:
            removed = len(self._chapters)
            self._chapters.clear()
            self._numbers.clear()
        logger.info("chapters.cleared removed=%s", removed)
