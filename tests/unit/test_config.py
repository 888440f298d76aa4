"""Unit tests for configuration."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from pydantic import ValidationError

from translation_watchtower.orchestrator.config import WorkflowSettings
from translation_watchtower.orchestrator.orchestrator import Orchestrator
from translation_watchtower.server.config import ServerSettings
from translation_watchtower.workflow.collaborators import PlaceholderDraftGenerator


def test_workflow_settings_defaults(tmp_path: Path) -> None:
    settings = WorkflowSettings(_env_file=tmp_path / "missing.env")

    assert settings.log_level == "INFO"
    assert settings.settle_delay_seconds == 0.6
    assert settings.step_timeout_seconds is None
    assert settings.max_filter_conditions == 5
    assert (settings.source_language, settings.intermediate_language, settings.target_language) == (
        "zu",
        "ko",
        "en",
    )


def test_workflow_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("WATCHTOWER_SETTLE_DELAY_SECONDS", "0")
    monkeypatch.setenv("WATCHTOWER_STEP_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("WATCHTOWER_INTERMEDIATE_LANGUAGE", "ja")
    monkeypatch.setenv("WATCHTOWER_SOURCE_LANGUAGE", "xh")

    settings = WorkflowSettings(_env_file=tmp_path / "missing.env")
    assert settings.settle_delay_seconds == 0
    assert settings.step_timeout_seconds == 2.5

    orch = Orchestrator.from_settings(settings)
    assert isinstance(orch.draft_generator, PlaceholderDraftGenerator)
    assert orch.draft_generator.language == "ja"
    assert asyncio.run(orch.draft_generator.generate_draft("Molo")) == "[xh->ja] Molo"


def test_workflow_settings_from_env_file(tmp_path: Path) -> None:
    env = tmp_path / ".env"
    env.write_text("WATCHTOWER_LOG_LEVEL=DEBUG\nWATCHTOWER_SCORER_SEED=7\n", encoding="utf-8")

    settings = WorkflowSettings(_env_file=env)
    assert settings.log_level == "DEBUG"
    assert settings.scorer_seed == 7


def test_negative_settle_delay_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WATCHTOWER_SETTLE_DELAY_SECONDS", "-1")
    with pytest.raises(ValidationError):
        WorkflowSettings()


def test_server_settings_cors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WATCHTOWER_CORS_ORIGINS", "http://a.test, ,http://b.test")
    assert ServerSettings().parsed_cors_origins() == ["http://a.test", "http://b.test"]
