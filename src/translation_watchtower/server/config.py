"""Configuration for the REST server."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """Settings for the REST API.

    Workflow behaviour (delays, timeouts, languages) is configured separately
    through :class:`translation_watchtower.orchestrator.config.WorkflowSettings`.
    """

    title: str = Field(default="Translation Watchtower", validation_alias="WATCHTOWER_API_TITLE")

    # Dev-friendly CORS (Vite). Override via WATCHTOWER_CORS_ORIGINS=...
    cors_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        validation_alias="WATCHTOWER_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
