from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from .state_machine import TranslationState, ValidationScore


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class TranslationItem(BaseModel):
    """A tracked UI translation key and its pipeline artefacts.

    `intermediate_text` and `target_text` stay empty until their producing step
    runs; `score` is only set once the item has been through validation.
    """

    id: str
    key: str
    context: str
    source_text: str
    intermediate_text: str | None = None
    target_text: str | None = None
    state: TranslationState = TranslationState.RECEIVED
    score: ValidationScore | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
