"""Configuration for the translation workflow orchestrator.

Configuration is loaded from:
- environment variables (prefix `WATCHTOWER_`)
- and a local `.env` file (if present)
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from translation_watchtower.filtering import MAX_FILTER_CONDITIONS


class WorkflowSettings(BaseSettings):
    """Settings for the orchestrator and its placeholder collaborators.

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `WorkflowSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(default="INFO", description="Root logging level")

    settle_delay_seconds: float = Field(
        default=0.6,
        ge=0.0,
        description="Pause before each automatic step call (UI pacing only)",
    )
    step_timeout_seconds: float | None = Field(
        default=None,
        gt=0.0,
        description="Fail an external step that runs longer than this. None disables the limit.",
    )

    event_log_limit: int = Field(
        default=500,
        ge=1,
        description="Maximum number of workflow events kept in memory",
    )
    max_filter_conditions: int = Field(
        default=MAX_FILTER_CONDITIONS,
        ge=1,
        le=50,
        description="Maximum number of filter conditions accepted per search",
    )

    source_language: str = Field(default="zu", description="Language of submitted source text")
    intermediate_language: str = Field(default="ko", description="Language of generated drafts")
    target_language: str = Field(default="en", description="Language of final translations")

    scorer_seed: int | None = Field(
        default=None,
        description="Seed for the placeholder quality scorer (reproducible runs)",
    )

    model_config = SettingsConfigDict(
        env_prefix="WATCHTOWER_",
        env_file=".env",
        extra="ignore",
    )
