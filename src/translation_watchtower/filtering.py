"""Read-side filtering over tracked items.

Pure predicate composition; nothing here touches the orchestrator.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from translation_watchtower.workflow.models import TranslationItem
from translation_watchtower.workflow.state_machine import TranslationState

MAX_FILTER_CONDITIONS = 5


class FilterField(str, Enum):
    CONTEXT = "context"
    KEY = "key"
    SOURCE_TEXT = "source_text"


class FilterOperator(str, Enum):
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    EQUALS = "equals"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"


@dataclass(frozen=True, slots=True)
class FilterCondition:
    field: FilterField
    operator: FilterOperator
    value: str = ""

    def matches(self, item: TranslationItem) -> bool:
        if not self.value:
            return True
        haystack = str(getattr(item, FilterField(self.field).value) or "").lower()
        needle = self.value.lower()

        op = FilterOperator(self.operator)
        if op is FilterOperator.CONTAINS:
            return needle in haystack
        if op is FilterOperator.NOT_CONTAINS:
            return needle not in haystack
        if op is FilterOperator.EQUALS:
            return haystack == needle
        if op is FilterOperator.STARTS_WITH:
            return haystack.startswith(needle)
        return haystack.endswith(needle)


def apply_filter_conditions(
    items: Iterable[TranslationItem], conditions: Sequence[FilterCondition]
) -> list[TranslationItem]:
    """Keep items matching every condition (case-insensitive, AND-ed)."""

    if not conditions:
        return list(items)
    return [item for item in items if all(c.matches(item) for c in conditions)]


def filter_by_state(
    items: Iterable[TranslationItem], state: TranslationState | Literal["all"]
) -> list[TranslationItem]:
    if state == "all":
        return list(items)
    wanted = TranslationState(state)
    return [item for item in items if item.state is wanted]
