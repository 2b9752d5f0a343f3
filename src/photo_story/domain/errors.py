"""Error taxonomy shared by services, adapters, and the HTTP boundary."""

from __future__ import annotations


class PhotoStoryError(RuntimeError):
    """Base class for expected photo story failures."""


class InvalidInputError(PhotoStoryError):
    """Raised when an upload or request body cannot be used to build a chapter."""


class AnalysisFailureError(PhotoStoryError):
    """Raised when the narrative analyzer errors or times out."""


class StorageFailureError(PhotoStoryError):
    """Raised when chapter storage or upload URL issuance fails."""
