"""Factory for selecting the narrative analyzer backend."""

from __future__ import annotations

import logging
import os

from photo_story.adapters.openai_narrative_analyzer import OpenAINarrativeAnalyzer
from photo_story.core.heuristic_narrative import HeuristicNarrativeAnalyzer
from photo_story.domain.ports import NarrativeAnalyzer

logger = logging.getLogger(__name__)


def create_narrative_analyzer() -> NarrativeAnalyzer:
    """Build the configured analyzer; default follows OPENAI_API_KEY presence."""
    backend = os.environ.get("PHOTO_STORY_ANALYZER", "").strip().lower()
    if not backend:
        backend = "openai" if os.environ.get("OPENAI_API_KEY", "").strip() else "heuristic"
        if backend == "heuristic":
            logger.warning(
                "analyzer.default backend=heuristic reason=OPENAI_API_KEY unset"
            )
    if backend == "openai":
        return OpenAINarrativeAnalyzer()
    if backend in {"heuristic", "heuristic.v1"}:
        return HeuristicNarrativeAnalyzer()
    raise RuntimeError(
        "Unsupported PHOTO_STORY_ANALYZER value. Expected openai or heuristic."
    )
