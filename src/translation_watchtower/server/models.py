"""Pydantic models for the REST server."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from translation_watchtower.filtering import FilterCondition, FilterField, FilterOperator
from translation_watchtower.workflow.state_machine import (
    ItemEdits,
    TranslationState,
    ValidationScore,
    WorkflowAction,
)

KEY_PATTERN = r"^[A-Za-z0-9._-]+$"
# Review edits may send "" for an untouched field; it falls back to the current value.
EDIT_KEY_PATTERN = r"^[A-Za-z0-9._-]*$"


class NewItemRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    key: str = Field(min_length=1, max_length=100, pattern=KEY_PATTERN)
    source_text: str = Field(min_length=1, max_length=500)
    context: str = Field(min_length=1, max_length=50)


class EditsModel(BaseModel):
    key: str | None = Field(default=None, max_length=100, pattern=EDIT_KEY_PATTERN)
    source_text: str | None = Field(default=None, max_length=500)
    intermediate_text: str | None = None
    target_text: str | None = None

    def to_edits(self) -> ItemEdits:
        return ItemEdits(
            key=self.key,
            source_text=self.source_text,
            intermediate_text=self.intermediate_text,
            target_text=self.target_text,
        )


class ActionRequest(BaseModel):
    action: WorkflowAction
    edits: EditsModel | None = None


class FilterConditionModel(BaseModel):
    field: FilterField
    operator: FilterOperator = FilterOperator.CONTAINS
    value: str = ""

    def to_condition(self) -> FilterCondition:
        return FilterCondition(field=self.field, operator=self.operator, value=self.value)


class SearchRequest(BaseModel):
    state: TranslationState | Literal["all"] = "all"
    conditions: list[FilterConditionModel] = Field(default_factory=list)


class ApiItem(BaseModel):
    id: str
    key: str
    context: str
    source_text: str
    intermediate_text: str | None = None
    target_text: str | None = None
    state: TranslationState
    state_label: str
    score: ValidationScore | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    processing: bool = False
    stuck: bool = False
    last_error: str | None = None
    manual_actions: list[WorkflowAction] = Field(default_factory=list)
    progress_index: int


class ApiSummary(BaseModel):
    pending: int
    in_progress: int
    needs_review: int
    stored: int
    rejected: int
    stuck: int
    processing: int


class ApiEvent(BaseModel):
    kind: str
    item_id: str
    message: str
    payload: dict[str, object] = Field(default_factory=dict)
    ts: datetime
