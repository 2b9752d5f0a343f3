"""Bounded remote image downloads for URL-based chapter creation."""

from __future__ import annotations

import logging
import os

import httpx

from photo_story.core.image_validation import (
    MAX_IMAGE_BYTES,
    normalize_media_type,
    sniff_media_type,
)
from photo_story.domain.errors import InvalidInputError
from photo_story.domain.models import ImagePayload

DEFAULT_TIMEOUT_SECONDS = 30.0
FETCH_FAILED_MESSAGE = "Failed to fetch image from URL"

logger = logging.getLogger(__name__)


def _float_env(name: str, default: float, *, minimum: float, maximum: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


class HttpImageFetcher:
    """Download one image over HTTP(S), stopping at the size bound."""

    def __init__(
        self,
        *,
        max_bytes: int = MAX_IMAGE_BYTES,
        timeout_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._max_bytes = max_bytes
        self._timeout_seconds = (
            timeout_seconds
            if timeout_seconds is not None
            else _float_env(
                "PHOTO_STORY_FETCH_TIMEOUT_SECONDS",
                DEFAULT_TIMEOUT_SECONDS,
                minimum=1.0,
                maximum=300.0,
            )
        )
        self._transport = transport

    def fetch(self, url: str) -> ImagePayload:
        """Return the image bytes at `url` or raise InvalidInputError."""
        try:
            with httpx.Client(
                timeout=self._timeout_seconds,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                with client.stream("GET", url) as response:
                    if not response.is_success:
                        logger.warning(
                            "image.fetch.rejected url=%s status=%s", url, response.status_code
                        )
                        raise InvalidInputError(FETCH_FAILED_MESSAGE)
                    declared = normalize_media_type(response.headers.get("content-type"))
                    chunks: list[bytes] = []
                    received = 0
                    for chunk in response.iter_bytes():
                        received += len(chunk)
                        if received > self._max_bytes:
                            raise InvalidInputError(
                                f"File too large: more than {self._max_bytes} bytes"
                            )
                        chunks.append(chunk)
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as exc:
            logger.warning("image.fetch.failed url=%s error=%s", url, exc)
            raise InvalidInputError(FETCH_FAILED_MESSAGE) from exc

        data = b"".join(chunks)
        if not data:
            raise InvalidInputError(FETCH_FAILED_MESSAGE)
        sniffed = sniff_media_type(data)
        if declared.startswith("image/"):
            media_type = declared
        elif sniffed is not None:
            media_type = sniffed
        else:
            raise InvalidInputError("Only image files are allowed")
        return ImagePayload(data=data, media_type=media_type)
