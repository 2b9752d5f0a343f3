"""Image payload validation, sniffing, and data URL helpers."""

from __future__ import annotations

import base64
import binascii
import re
from typing import Final

from photo_story.domain.errors import InvalidInputError
from photo_story.domain.models import ImagePayload

MAX_IMAGE_BYTES: Final[int] = 10 * 1024 * 1024
DEFAULT_MEDIA_TYPE: Final[str] = "image/jpeg"

_DATA_URL_RE = re.compile(r"^data:(?P<media_type>[\w.+-]+/[\w.+-]+)?(?:;[^,]*)?,", re.IGNORECASE)
_MAGIC_PREFIXES: Final[tuple[tuple[bytes, str], ...]] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
)


def sniff_media_type(data: bytes) -> str | None:
    """Return the image media type implied by magic bytes, if recognizable."""
    for prefix, media_type in _MAGIC_PREFIXES:
        if data.startswith(prefix):
            return media_type
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if len(data) >= 12 and data[4:8] == b"ftyp":
        brand = data[8:12]
        if brand in {b"heic", b"heix", b"mif1", b"msf1"}:
            return "image/heic"
        if brand in {b"avif", b"avis"}:
            return "image/avif"
    return None


def normalize_media_type(raw: str | None) -> str:
    """Strip parameters and case from a Content-Type style value."""
    if not raw:
        return ""
    return raw.split(";", maxsplit=1)[0].strip().lower()


def validate_image(
    image: ImagePayload | None,
    *,
    max_bytes: int = MAX_IMAGE_BYTES,
) -> ImagePayload:
    """Reject missing, non-image, and oversized payloads."""
    if image is None or not image.data:
        raise InvalidInputError("No image file provided")
    media_type = normalize_media_type(image.media_type)
    if not media_type.startswith("image/"):
        raise InvalidInputError("Only image files are allowed")
    if image.size_bytes > max_bytes:
        raise InvalidInputError(
            f"File too large: {image.size_bytes} bytes (max: {max_bytes})"
        )
    if media_type == image.media_type:
        return image
    return ImagePayload(data=image.data, media_type=media_type)


def decode_base64_image(encoded: str) -> ImagePayload:
    """Decode a bare base64 string or a base64 data URL into a sniffed payload."""
    declared = ""
    body = encoded.strip()
    match = _DATA_URL_RE.match(body)
    if match is not None:
        declared = normalize_media_type(match.group("media_type"))
        body = body[match.end() :]
    # MIME encoders wrap base64 at 76 columns.
    body = "".join(body.split())
    try:
        data = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidInputError("Unable to process image") from exc
    if not data:
        raise InvalidInputError("Unable to process image")
    media_type = sniff_media_type(data) or declared
    if not media_type:
        raise InvalidInputError("Only image files are allowed")
    return ImagePayload(data=data, media_type=media_type)


def to_data_url(image: ImagePayload) -> str:
    """Embed image bytes as a `data:` URL for in-memory chapters."""
    media_type = normalize_media_type(image.media_type) or DEFAULT_MEDIA_TYPE
    encoded = base64.b64encode(image.data).decode("ascii")
    return f"data:{media_type};base64,{encoded}"
