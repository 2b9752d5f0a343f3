from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any

import pytest

from photo_story.adapters.openai_narrative_analyzer import (
    DEFAULT_MODEL,
    MAX_TAGS,
    OpenAINarrativeAnalyzer,
    build_messages,
    format_context,
)
from photo_story.domain.errors import AnalysisFailureError
from photo_story.domain.models import ChapterContext, ImagePayload

PNG = ImagePayload(data=b"\x89PNG\r\n\x1a\n", media_type="image/png")


class FakeCompletions:
    def __init__(self, content: str | None = None, error: Exception | None = None) -> None:
        self.content = content
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def create(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(completions: FakeCompletions) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_analyze_parses_json_reply_and_normalizes_tags() -> None:
    completions = FakeCompletions(
        json.dumps(
            {
                "narrative": "  A cat sits on a mat  ",
                "connections": ["Chapter 1: same cat", "  "],
                "tags": ["Cat", "indoor", "cat", ""],
            }
        )
    )
    analyzer = OpenAINarrativeAnalyzer(client=_client(completions), model="vision-test")

    analysis = analyzer.analyze(
        image=PNG,
        context=[ChapterContext(narrative="Earlier", tags=("cat",), chapter_number=1)],
    )

    assert analysis.narrative == "A cat sits on a mat"
    assert analysis.connections == ("Chapter 1: same cat",)
    assert analysis.tags == ("cat", "indoor")
    call = completions.calls[0]
    assert call["model"] == "vision-test"
    assert call["response_format"] == {"type": "json_object"}


def test_tags_are_capped() -> None:
    completions = FakeCompletions(
        json.dumps({"narrative": "n", "tags": [f"t{index}" for index in range(20)]})
    )
    analysis = OpenAINarrativeAnalyzer(client=_client(completions)).analyze(image=PNG, context=[])
    assert len(analysis.tags) == MAX_TAGS
    assert analysis.connections == ()


@pytest.mark.parametrize("content", [None, "", "not json", json.dumps({"narrative": "   "})])
def test_unusable_replies_raise_analysis_failure(content: str | None) -> None:
    analyzer = OpenAINarrativeAnalyzer(client=_client(FakeCompletions(content)))
    with pytest.raises(AnalysisFailureError):
        analyzer.analyze(image=PNG, context=[])


def test_transport_errors_raise_analysis_failure() -> None:
    completions = FakeCompletions(error=ConnectionError("connection reset"))
    analyzer = OpenAINarrativeAnalyzer(client=_client(completions))
    with pytest.raises(AnalysisFailureError, match="connection reset"):
        analyzer.analyze(image=PNG, context=[])
    assert len(completions.calls) == 1


def test_model_and_timeout_come_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PHOTO_STORY_OPENAI_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("PHOTO_STORY_ANALYZER_TIMEOUT_SECONDS", "9999")
    analyzer = OpenAINarrativeAnalyzer(client=object())
    assert analyzer.model == "gpt-4o-mini"
    assert analyzer.timeout_seconds == 600.0

    monkeypatch.delenv("PHOTO_STORY_OPENAI_MODEL")
    monkeypatch.setenv("PHOTO_STORY_ANALYZER_TIMEOUT_SECONDS", "abc")
    fallback = OpenAINarrativeAnalyzer(client=object())
    assert fallback.model == DEFAULT_MODEL
    assert fallback.timeout_seconds == 60.0


def test_prompt_lists_prior_chapters_in_order_and_embeds_image() -> None:
    context = [
        ChapterContext(narrative="Second", tags=(), chapter_number=2),
        ChapterContext(narrative="First", tags=("beach", "dog"), chapter_number=1),
    ]
    text = format_context(context)
    assert text.index("Chapter 1: First (tags: beach, dog)") < text.index("Chapter 2: Second")
    assert text.endswith("Write chapter 3.")
    assert "first chapter" in format_context([])

    messages = build_messages(image=PNG, context=context)
    assert messages[0]["role"] == "system"
    image_part = messages[1]["content"][1]
    assert image_part["type"] == "image_url"
    assert image_part["image_url"]["url"].startswith("data:image/png;base64,")
