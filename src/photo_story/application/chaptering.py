"""Chaptering service: one validated photo in, one stored chapter out."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence

from photo_story.core.image_validation import MAX_IMAGE_BYTES, to_data_url, validate_image
from photo_story.domain.errors import AnalysisFailureError, PhotoStoryError
from photo_story.domain.models import Chapter, ChapterContext, ImagePayload
from photo_story.domain.ports import ChapterStore, NarrativeAnalyzer

logger = logging.getLogger(__name__)


def context_for(chapters: Sequence[Chapter]) -> list[ChapterContext]:
    """Project stored chapters into analyzer context, ascending by number."""
    return [
        ChapterContext(
            narrative=chapter.narrative,
            tags=chapter.tags,
            chapter_number=chapter.chapter_number,
        )
        for chapter in sorted(chapters, key=lambda item: item.chapter_number)
    ]


class ChapteringService:
    """Orchestrates analysis and storage for new chapters.

    Chapter creation and story reset share one writer lock, so the
    "read count, analyze, insert" sequence never interleaves with another
    writer and chapter numbers stay equal to their creation rank.
    """

    def __init__(
        self,
        *,
        store: ChapterStore,
        analyzer: NarrativeAnalyzer,
        max_image_bytes: int = MAX_IMAGE_BYTES,
    ) -> None:
        self._store = store
        self._analyzer = analyzer
        self._max_image_bytes = max_image_bytes
        self._writer_lock = threading.Lock()

    @property
    def max_image_bytes(self) -> int:
        return self._max_image_bytes

    def add_chapter(
        self,
        image: ImagePayload | None,
        *,
        image_url: str | None = None,
    ) -> Chapter:
        """Analyze one photo against the story so far and append it as a chapter."""
        validated = validate_image(image, max_bytes=self._max_image_bytes)
        stored_url = image_url or to_data_url(validated)

        with self._writer_lock:
            existing = self._store.list_all()
            context = context_for(existing)
            started = time.monotonic()
            try:
                analysis = self._analyzer.analyze(image=validated, context=context)
            except AnalysisFailureError:
                raise
            except PhotoStoryError as exc:
                raise AnalysisFailureError(str(exc)) from exc
            except Exception as exc:  # noqa: BLE001
                raise AnalysisFailureError(f"Narrative analysis failed: {exc}") from exc

            chapter = self._store.create(
                image_url=stored_url,
                narrative=analysis.narrative,
                connections=analysis.connections,
                tags=analysis.tags,
                chapter_number=len(existing) + 1,
                user_id=None,
            )

        logger.info(
            "chapter.added id=%s chapter_number=%s analyzer=%s tags=%s elapsed_ms=%s",
            chapter.chapter_id,
            chapter.chapter_number,
            getattr(self._analyzer, "name", type(self._analyzer).__name__),
            len(chapter.tags),
            int((time.monotonic() - started) * 1000),
        )
        return chapter

    def reset_story(self) -> None:
        """Remove every chapter."""
        with self._writer_lock:
            self._store.delete_all()
