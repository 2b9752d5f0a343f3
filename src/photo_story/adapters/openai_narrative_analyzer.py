"""Vision-model narrative analyzer backed by the OpenAI chat completions API."""

from __future__ import annotations

import base64
import logging
import os
import time
from collections.abc import Sequence
from typing import Any, Final

from openai import OpenAI
from pydantic import BaseModel, Field, ValidationError, field_validator

from photo_story.domain.errors import AnalysisFailureError
from photo_story.domain.models import ChapterContext, ImagePayload, NarrativeAnalysis

DEFAULT_MODEL: Final[str] = "gpt-4o"
DEFAULT_TIMEOUT_SECONDS: Final[float] = 60.0
MAX_TAGS: Final[int] = 8
MAX_COMPLETION_TOKENS: Final[int] = 800

SYSTEM_PROMPT: Final[str] = (
    "You are a visual storyteller. Each photo the user sends becomes the next chapter "
    "of one evolving story. Write a short narrative (2-4 sentences) describing what "
    "happens in this photo as part of the story so far. When earlier chapters exist, "
    "reference the ones this photo continues, echoes, or contrasts with. "
    "Respond with a JSON object of the form "
    '{"narrative": string, "connections": [string], "tags": [string]} where each '
    'connection names an earlier chapter, e.g. "Chapter 2: the same red umbrella returns", '
    "and tags are 3-6 short lowercase descriptors of the photo's subjects, setting, and mood."
)

logger = logging.getLogger(__name__)


class _AnalysisReply(BaseModel):
    narrative: str = Field(min_length=1)
    connections: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    @field_validator("narrative")
    @classmethod
    def _strip_narrative(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("narrative must be non-empty")
        return stripped

    @field_validator("connections")
    @classmethod
    def _clean_connections(cls, values: list[str]) -> list[str]:
        return [value.strip() for value in values if value.strip()]

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, values: list[str]) -> list[str]:
        normalized = [value.strip().lower() for value in values if value.strip()]
        return list(dict.fromkeys(normalized))[:MAX_TAGS]


def _float_env(name: str, default: float, *, minimum: float, maximum: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


def format_context(context: Sequence[ChapterContext]) -> str:
    """Render prior chapters as prompt text, oldest first."""
    if not context:
        return "This is the first chapter of the story. There are no earlier chapters."
    lines = ["Story so far:"]
    for item in sorted(context, key=lambda entry: entry.chapter_number):
        tag_text = ", ".join(item.tags) if item.tags else "none"
        lines.append(f"Chapter {item.chapter_number}: {item.narrative} (tags: {tag_text})")
    lines.append(f"Write chapter {len(context) + 1}.")
    return "\n".join(lines)


def build_messages(
    *, image: ImagePayload, context: Sequence[ChapterContext]
) -> list[dict[str, Any]]:
    """Build the chat messages for one photo plus its story context."""
    encoded = base64.b64encode(image.data).decode("ascii")
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": format_context(context)},
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{image.media_type};base64,{encoded}"},
                },
            ],
        },
    ]


class OpenAINarrativeAnalyzer:
    """Analyze photos with an OpenAI vision model; one attempt, no retries."""

    name = "openai"

    def __init__(
        self,
        *,
        client: Any | None = None,
        api_key: str | None = None,
        model: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self.model = (
            model or os.environ.get("PHOTO_STORY_OPENAI_MODEL", "").strip() or DEFAULT_MODEL
        )
        self.timeout_seconds = (
            timeout_seconds
            if timeout_seconds is not None
            else _float_env(
                "PHOTO_STORY_ANALYZER_TIMEOUT_SECONDS",
                DEFAULT_TIMEOUT_SECONDS,
                minimum=1.0,
                maximum=600.0,
            )
        )

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = OpenAI(
                api_key=self._api_key,
                timeout=self.timeout_seconds,
                max_retries=0,
            )
        return self._client

    def analyze(
        self, *, image: ImagePayload, context: Sequence[ChapterContext]
    ) -> NarrativeAnalysis:
        started = time.monotonic()
        try:
            response = self._get_client().chat.completions.create(
                model=self.model,
                messages=build_messages(image=image, context=context),
                response_format={"type": "json_object"},
                max_tokens=MAX_COMPLETION_TOKENS,
            )
        except Exception as exc:  # noqa: BLE001
            raise AnalysisFailureError(f"Narrative analysis request failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise AnalysisFailureError("Narrative analysis returned an empty response.")
        try:
            reply = _AnalysisReply.model_validate_json(content)
        except ValidationError as exc:
            raise AnalysisFailureError(
                f"Narrative analysis returned an invalid payload: {exc.error_count()} error(s)."
            ) from exc

        logger.info(
            "analyzer.openai.done model=%s context_chapters=%s elapsed_ms=%s",
            self.model,
            len(context),
            int((time.monotonic() - started) * 1000),
        )
        return NarrativeAnalysis(
            narrative=reply.narrative,
            connections=tuple(reply.connections),
            tags=tuple(reply.tags),
        )
