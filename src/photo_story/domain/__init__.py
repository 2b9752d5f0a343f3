"""Domain models, errors, and ports for photo stories."""

from photo_story.domain.errors import (
    AnalysisFailureError,
    InvalidInputError,
    PhotoStoryError,
    StorageFailureError,
)
from photo_story.domain.models import Chapter, ChapterContext, ImagePayload, NarrativeAnalysis
from photo_story.domain.ports import ChapterStore, ImageFetcher, NarrativeAnalyzer, UploadUrlIssuer

__all__ = [
    "AnalysisFailureError",
    "Chapter",
    "ChapterContext",
    "ChapterStore",
    "ImageFetcher",
    "ImagePayload",
    "InvalidInputError",
    "NarrativeAnalysis",
    "NarrativeAnalyzer",
    "PhotoStoryError",
    "StorageFailureError",
    "UploadUrlIssuer",
]
