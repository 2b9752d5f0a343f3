"""Public API surface for HTTP serving and Python-first interfaces."""

from photo_story.api.app import create_app
from photo_story.api.contracts import (
    ChapterCreateRequest,
    ChapterResponse,
    StoryExportResponse,
)
from photo_story.api.python_interface import StoryApiClient, save_export_json

__all__ = [
    "ChapterCreateRequest",
    "ChapterResponse",
    "StoryApiClient",
    "StoryExportResponse",
    "create_app",
    "save_export_json",
]
