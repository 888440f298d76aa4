"""Test configuration and fixtures.

Every external collaborator is replaced with a deterministic fake, and the
settle delay is zero unless a test gates it explicitly.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from translation_watchtower.orchestrator.orchestrator import DelayStrategy, Orchestrator, no_delay
from translation_watchtower.workflow.collaborators import InMemoryTranslationMemory
from translation_watchtower.workflow.models import TranslationItem
from translation_watchtower.workflow.state_machine import QualityAssessment, ValidationScore


class EchoDraftGenerator:
    def __init__(self) -> None:
        self.calls: list[str] = []

    async def generate_draft(self, source_text: str) -> str:
        self.calls.append(source_text)
        return f"ko:{source_text}"


class EchoTranslator:
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[str] = []
        self.error = error

    async def translate(self, intermediate_text: str) -> str:
        self.calls.append(intermediate_text)
        if self.error is not None:
            raise self.error
        return f"en:{intermediate_text}"


class ScriptedScorer:
    """Returns (or raises) the scripted outcomes in order, repeating the last one."""

    def __init__(self, *outcomes: str | Exception) -> None:
        self._outcomes = list(outcomes) or ["high"]
        self.calls = 0

    async def validate_quality(self, item: TranslationItem) -> QualityAssessment:
        self.calls += 1
        outcome = self._outcomes.pop(0) if len(self._outcomes) > 1 else self._outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return QualityAssessment(score=ValidationScore(outcome), notes=f"scripted {outcome}")


class SlowScorer:
    async def validate_quality(self, item: TranslationItem) -> QualityAssessment:
        await asyncio.sleep(5)
        return QualityAssessment(score=ValidationScore.HIGH)


class BlockingScorer:
    """Holds the first validation open until released; later calls score high at once."""

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self._release = asyncio.Event()
        self.calls = 0

    async def validate_quality(self, item: TranslationItem) -> QualityAssessment:
        self.calls += 1
        if self.calls == 1:
            self.started.set()
            await self._release.wait()
        return QualityAssessment(score=ValidationScore.HIGH, notes="blocking")

    def release(self) -> None:
        self._release.set()


class Gate:
    """A settle delay that blocks until opened."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.waits = 0

    async def __call__(self) -> None:
        self.waits += 1
        await self._event.wait()

    def open(self) -> None:
        self._event.set()


@pytest.fixture
def draft_generator() -> EchoDraftGenerator:
    return EchoDraftGenerator()


@pytest.fixture
def translator() -> EchoTranslator:
    return EchoTranslator()


@pytest.fixture
def memory() -> InMemoryTranslationMemory:
    return InMemoryTranslationMemory()


@pytest.fixture
def make_orchestrator(
    draft_generator: EchoDraftGenerator,
    translator: EchoTranslator,
    memory: InMemoryTranslationMemory,
) -> Callable[..., Orchestrator]:
    """Build an orchestrator around the fakes; override any collaborator by keyword."""

    def _make(
        *outcomes: str | Exception,
        settle_delay: DelayStrategy = no_delay,
        **overrides: object,
    ) -> Orchestrator:
        kwargs: dict[str, object] = {
            "draft_generator": draft_generator,
            "translator": translator,
            "quality_scorer": ScriptedScorer(*outcomes),
            "translation_memory": memory,
            "settle_delay": settle_delay,
        }
        kwargs.update(overrides)
        return Orchestrator(**kwargs)  # type: ignore[arg-type]

    return _make
