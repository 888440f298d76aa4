"""External step collaborators.

The workflow never produces text or scores itself. It calls out to these
pluggable operations, each of which may suspend (model latency of a remote
system). The implementations here are placeholders; real translation and
scoring belong in separate adapters.
"""

from __future__ import annotations

import random
from typing import Protocol

from .models import TranslationItem
from .state_machine import QualityAssessment, ValidationScore


class DraftGenerator(Protocol):
    """Produce the intermediate-language draft for a source string."""

    async def generate_draft(self, source_text: str) -> str: ...


class Translator(Protocol):
    """Translate the approved intermediate text into the target language."""

    async def translate(self, intermediate_text: str) -> str: ...


class QualityScorer(Protocol):
    """Score a translated item. Scorers do not decide transitions."""

    async def validate_quality(self, item: TranslationItem) -> QualityAssessment: ...


class TranslationMemory(Protocol):
    """Receives finalized translations."""

    async def store(self, item: TranslationItem) -> None: ...


class PlaceholderDraftGenerator:
    def __init__(self, language: str = "ko", source_language: str = "zu") -> None:
        self.language = language
        self.source_language = source_language

    async def generate_draft(self, source_text: str) -> str:
        return f"[{self.source_language}->{self.language}] {source_text}"


class PlaceholderTranslator:
    def __init__(self, language: str = "en") -> None:
        self.language = language

    async def translate(self, intermediate_text: str) -> str:
        # Strip a previous placeholder tag so chained stubs stay readable.
        text = intermediate_text
        if text.startswith("[") and "] " in text:
            text = text.split("] ", 1)[1]
        return f"[{self.language}] {text}"


class RandomQualityScorer:
    """Uniform random choice among the three scores.

    A stand-in for a real heuristic; pass `seed` for reproducible runs.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    async def validate_quality(self, item: TranslationItem) -> QualityAssessment:
        score = self._rng.choice(list(ValidationScore))
        return QualityAssessment(score=score, notes=f"Random placeholder score: {score.value}")


class InMemoryTranslationMemory:
    """Keeps the last stored translation per key."""

    def __init__(self) -> None:
        self.entries: dict[str, TranslationItem] = {}

    async def store(self, item: TranslationItem) -> None:
        self.entries[item.key] = item.model_copy()
