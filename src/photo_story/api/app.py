"""FastAPI application for photo-driven story chaptering."""

from __future__ import annotations

import logging
import os
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from photo_story.adapters.http_image_fetcher import HttpImageFetcher
from photo_story.adapters.memory_chapter_store import InMemoryChapterStore
from photo_story.adapters.narrative_analyzer_factory import create_narrative_analyzer
from photo_story.adapters.object_storage import S3UploadUrlIssuer
from photo_story.api.contracts import (
    ChapterCreateRequest,
    ChapterResponse,
    ErrorResponse,
    HealthResponse,
    MessageResponse,
    StoryExportResponse,
    UploadUrlResponse,
)
from photo_story.application.chaptering import ChapteringService
from photo_story.application.export import ExportService, export_filename
from photo_story.core.image_validation import MAX_IMAGE_BYTES, decode_base64_image
from photo_story.domain.errors import InvalidInputError
from photo_story.domain.models import ImagePayload
from photo_story.domain.ports import ChapterStore, ImageFetcher, NarrativeAnalyzer, UploadUrlIssuer

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Route-boundary failure rendered as the JSON error envelope."""

    def __init__(self, *, status_code: int, error: str, details: Any = None) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details


def _cors_origins() -> list[str]:
    raw = os.environ.get("PHOTO_STORY_CORS_ORIGINS", "").strip()
    if raw:
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    return [
        "http://127.0.0.1:5173",
        "http://localhost:5173",
        "http://127.0.0.1:5000",
        "http://localhost:5000",
    ]


def _int_env(name: str, default: int, *, minimum: int, maximum: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


def _error_body(error: str, details: Any = None) -> dict[str, Any]:
    return jsonable_encoder(
        ErrorResponse(error=error, details=details), by_alias=True, exclude_none=True
    )


def _failure(error: str, exc: Exception) -> ApiError:
    """Map a caught exception onto a 400 or 500 envelope."""
    if isinstance(exc, InvalidInputError):
        logger.warning("request.invalid error=%s details=%s", error, exc)
        return ApiError(status_code=400, error=str(exc))
    logger.exception("request.failed error=%s", error)
    return ApiError(status_code=500, error=error, details=str(exc) or type(exc).__name__)


def create_app(
    *,
    store: ChapterStore | None = None,
    analyzer: NarrativeAnalyzer | None = None,
    image_fetcher: ImageFetcher | None = None,
    upload_url_issuer: UploadUrlIssuer | None = None,
    max_image_bytes: int | None = None,
) -> FastAPI:
    """Create the API application."""
    effective_max_bytes = (
        max_image_bytes
        if max_image_bytes is not None
        else _int_env(
            "PHOTO_STORY_MAX_IMAGE_BYTES",
            MAX_IMAGE_BYTES,
            minimum=1024,
            maximum=50 * 1024 * 1024,
        )
    )
    chapter_store = store if store is not None else InMemoryChapterStore()
    narrative_analyzer = analyzer if analyzer is not None else create_narrative_analyzer()
    fetcher = (
        image_fetcher
        if image_fetcher is not None
        else HttpImageFetcher(max_bytes=effective_max_bytes)
    )
    issuer = upload_url_issuer if upload_url_issuer is not None else S3UploadUrlIssuer()
    chaptering = ChapteringService(
        store=chapter_store,
        analyzer=narrative_analyzer,
        max_image_bytes=effective_max_bytes,
    )
    exporter = ExportService(store=chapter_store)

    app = FastAPI(
        title="photo_story API",
        version="0.1.0",
        description=(
            "Turns uploaded photos into an evolving story, one AI-written chapter per photo. "
            "Chapters are held in process memory."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=[
            {"name": "system", "description": "Service health."},
            {"name": "chapters", "description": "Chapter creation, listing, and reset."},
            {"name": "export", "description": "Whole-story JSON export."},
            {"name": "uploads", "description": "Direct-to-storage upload URLs."},
        ],
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    logger.info(
        "api.start analyzer=%s max_image_bytes=%s",
        getattr(narrative_analyzer, "name", type(narrative_analyzer).__name__),
        effective_max_bytes,
    )

    @app.exception_handler(ApiError)
    async def api_error_handler(_: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code, content=_error_body(exc.error, exc.details)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("request.invalid error_count=%s", len(exc.errors()))
        return JSONResponse(
            status_code=400,
            content=_error_body("Invalid request data", jsonable_encoder(exc.errors())),
        )

    @app.get("/healthz", response_model=HealthResponse, tags=["system"])
    def healthz() -> HealthResponse:
        return HealthResponse()

    @app.get("/api/chapters", response_model=list[ChapterResponse], tags=["chapters"])
    def list_chapters() -> list[ChapterResponse]:
        try:
            chapters = chapter_store.list_all()
        except Exception as exc:  # noqa: BLE001
            raise _failure("Failed to fetch chapters", exc) from exc
        return [ChapterResponse.from_chapter(chapter) for chapter in chapters]

    @app.get(
        "/api/chapters/{chapter_id}",
        response_model=ChapterResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["chapters"],
    )
    def get_chapter(chapter_id: str) -> ChapterResponse:
        chapter = chapter_store.get_by_id(chapter_id)
        if chapter is None:
            raise ApiError(status_code=404, error="Chapter not found")
        return ChapterResponse.from_chapter(chapter)

    @app.post(
        "/api/analyze-image",
        response_model=ChapterResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
        tags=["chapters"],
    )
    def analyze_image(image: UploadFile | None = File(default=None)) -> ChapterResponse:
        if image is None:
            raise ApiError(status_code=400, error="No image file provided")
        try:
            # One byte past the limit is enough to reject without buffering the rest.
            data = image.file.read(effective_max_bytes + 1)
            payload = ImagePayload(data=data, media_type=image.content_type or "")
            chapter = chaptering.add_chapter(payload)
        except Exception as exc:  # noqa: BLE001
            raise _failure("Failed to analyze image", exc) from exc
        finally:
            image.file.close()
        return ChapterResponse.from_chapter(chapter)

    @app.post(
        "/api/chapters",
        response_model=ChapterResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
        tags=["chapters"],
    )
    def create_chapter(payload: ChapterCreateRequest) -> ChapterResponse:
        try:
            if payload.base64_image:
                image = decode_base64_image(payload.base64_image)
            elif payload.image_url.lower().startswith("http"):
                image = fetcher.fetch(payload.image_url)
            elif payload.image_url.lower().startswith("data:"):
                image = decode_base64_image(payload.image_url)
            else:
                raise InvalidInputError("Unable to process image")
            chapter = chaptering.add_chapter(image, image_url=payload.image_url)
        except Exception as exc:  # noqa: BLE001
            raise _failure("Failed to create chapter", exc) from exc
        return ChapterResponse.from_chapter(chapter)

    @app.delete("/api/chapters", response_model=MessageResponse, tags=["chapters"])
    def delete_chapters() -> MessageResponse:
        try:
            chaptering.reset_story()
        except Exception as exc:  # noqa: BLE001
            raise _failure("Failed to delete chapters", exc) from exc
        return MessageResponse(message="All chapters deleted successfully")

    @app.get("/api/export", response_model=StoryExportResponse, tags=["export"])
    def export_story() -> JSONResponse:
        now = datetime.now(UTC)
        try:
            export = exporter.export_story(now=now)
        except Exception as exc:  # noqa: BLE001
            raise _failure("Failed to export story", exc) from exc
        body = StoryExportResponse.from_export(export)
        return JSONResponse(
            content=jsonable_encoder(body, by_alias=True),
            headers={"Content-Disposition": f'attachment; filename="{export_filename(now)}"'},
        )

    @app.post(
        "/api/upload-url",
        response_model=UploadUrlResponse,
        responses={500: {"model": ErrorResponse}},
        tags=["uploads"],
    )
    def upload_url() -> UploadUrlResponse:
        try:
            url = issuer.issue_upload_url()
        except Exception as exc:  # noqa: BLE001
            raise _failure("Failed to get upload URL", exc) from exc
        return UploadUrlResponse(upload_url=url)

    return app


app = create_app()
