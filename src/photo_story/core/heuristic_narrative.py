"""Deterministic offline narrative analyzer for local runs and tests."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Final

from photo_story.core.image_validation import normalize_media_type, sniff_media_type
from photo_story.domain.models import ChapterContext, ImagePayload, NarrativeAnalysis

_SIZE_BANDS: Final[tuple[tuple[int, str], ...]] = (
    (256 * 1024, "snapshot"),
    (2 * 1024 * 1024, "photograph"),
    (10 * 1024 * 1024 + 1, "high-resolution"),
)
_MAX_CARRIED_TAGS: Final[int] = 2


class HeuristicNarrativeAnalyzer:
    """Builds chapter text from image metadata and prior chapters only."""

    name = "heuristic.v1"

    def analyze(
        self, *, image: ImagePayload, context: Sequence[ChapterContext]
    ) -> NarrativeAnalysis:
        media_type = sniff_media_type(image.data) or normalize_media_type(image.media_type)
        format_tag = media_type.split("/", maxsplit=1)[-1] or "image"
        size_tag = _size_band(image.size_bytes)
        chapter_number = len(context) + 1

        if not context:
            narrative = (
                f"The story opens on a single {size_tag} ({format_tag}). "
                "Nothing has happened yet, and everything is about to."
            )
            return NarrativeAnalysis(
                narrative=narrative,
                connections=(),
                tags=_dedupe((format_tag, size_tag, "beginning")),
            )

        previous = max(context, key=lambda item: item.chapter_number)
        carried = previous.tags[:_MAX_CARRIED_TAGS]
        if carried:
            thread = ", ".join(carried)
            narrative = (
                f"Chapter {chapter_number} picks up where chapter {previous.chapter_number} "
                f"left off, carrying the threads of {thread} into a new {size_tag}."
            )
        else:
            narrative = (
                f"Chapter {chapter_number} follows chapter {previous.chapter_number} "
                f"with a new {size_tag}."
            )
        connections = (f"Continues from Chapter {previous.chapter_number}",)
        return NarrativeAnalysis(
            narrative=narrative,
            connections=connections,
            tags=_dedupe((format_tag, size_tag, *carried)),
        )


def _size_band(size_bytes: int) -> str:
    for limit, label in _SIZE_BANDS:
        if size_bytes < limit:
            return label
    return _SIZE_BANDS[-1][1]


def _dedupe(values: Sequence[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(value for value in values if value))
