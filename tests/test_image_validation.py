from __future__ import annotations

import base64

import pytest

from photo_story.core.image_validation import (
    MAX_IMAGE_BYTES,
    decode_base64_image,
    normalize_media_type,
    sniff_media_type,
    to_data_url,
    validate_image,
)
from photo_story.domain.errors import InvalidInputError
from photo_story.domain.models import ImagePayload

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 16
WEBP_BYTES = b"RIFF\x00\x00\x00\x00WEBPVP8 " + b"\x00" * 8


def test_default_limit_is_ten_megabytes() -> None:
    assert MAX_IMAGE_BYTES == 10 * 1024 * 1024


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        (PNG_BYTES, "image/png"),
        (JPEG_BYTES, "image/jpeg"),
        (b"GIF89a" + b"\x00" * 8, "image/gif"),
        (WEBP_BYTES, "image/webp"),
        (b"\x00\x00\x00\x18ftypheic" + b"\x00" * 8, "image/heic"),
        (b"hello world", None),
    ],
)
def test_sniff_media_type(data: bytes, expected: str | None) -> None:
    assert sniff_media_type(data) == expected


def test_validate_image_accepts_boundary_size_and_normalizes_type() -> None:
    image = ImagePayload(data=b"x" * 100, media_type="Image/PNG; charset=binary")
    validated = validate_image(image, max_bytes=100)
    assert validated.media_type == "image/png"
    assert validated.data == image.data


def test_validate_image_rejects_one_byte_over_limit() -> None:
    image = ImagePayload(data=b"x" * 101, media_type="image/png")
    with pytest.raises(InvalidInputError, match="File too large"):
        validate_image(image, max_bytes=100)


def test_validate_image_rejects_missing_and_non_image() -> None:
    with pytest.raises(InvalidInputError, match="No image file provided"):
        validate_image(None)
    with pytest.raises(InvalidInputError, match="Only image files are allowed"):
        validate_image(ImagePayload(data=b"%PDF-1.7", media_type="application/pdf"))
    assert normalize_media_type(None) == ""


def test_decode_base64_image_handles_bare_and_data_url_forms() -> None:
    encoded = base64.b64encode(PNG_BYTES).decode("ascii")
    bare = decode_base64_image(encoded)
    data_url = decode_base64_image(f"data:image/png;base64,{encoded}")
    assert bare == data_url
    assert bare.media_type == "image/png"
    assert bare.data == PNG_BYTES


def test_decode_base64_image_ignores_mime_line_breaks() -> None:
    encoded = base64.encodebytes(PNG_BYTES * 4).decode("ascii")
    assert encoded.count("\n") > 1
    assert decode_base64_image(encoded).data == PNG_BYTES * 4
    assert decode_base64_image(f"data:image/png;base64,\r\n{encoded}").data == PNG_BYTES * 4

def test_decode_base64_image_trusts_declared_type_when_unsniffable() -> None:
    encoded = base64.b64encode(b"opaque-image-bytes").decode("ascii")
    decoded = decode_base64_image(f"data:image/x-custom;base64,{encoded}")
    assert decoded.media_type == "image/x-custom"


def test_decode_base64_image_rejects_garbage_and_non_images() -> None:
    with pytest.raises(InvalidInputError, match="Unable to process image"):
        decode_base64_image("not base64 !!")
    with pytest.raises(InvalidInputError, match="Only image files are allowed"):
        decode_base64_image(base64.b64encode(b"just some text").decode("ascii"))


def test_to_data_url_embeds_media_type() -> None:
    url = to_data_url(ImagePayload(data=JPEG_BYTES, media_type="image/jpeg"))
    assert url == "data:image/jpeg;base64," + base64.b64encode(JPEG_BYTES).decode("ascii")
