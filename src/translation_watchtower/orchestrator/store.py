"""In-memory item collection.

The store is the only owner of tracked items. Every read hands out a copy so
callers can never mutate an item behind the orchestrator's back.
"""

from __future__ import annotations

import uuid

from translation_watchtower.workflow.errors import DuplicateKey, ItemNotFound
from translation_watchtower.workflow.models import TranslationItem, utc_now
from translation_watchtower.workflow.state_machine import TranslationState, TransitionResult


def _new_item_id() -> str:
    return f"item-{uuid.uuid4().hex}"


class ItemStore:
    def __init__(self) -> None:
        # Newest first.
        self._items: list[TranslationItem] = []

    def _index_of(self, item_id: str) -> int:
        for idx, item in enumerate(self._items):
            if item.id == item_id:
                return idx
        raise ItemNotFound(item_id)

    def _key_taken(self, key: str, *, ignore_id: str | None = None) -> bool:
        return any(item.key == key and item.id != ignore_id for item in self._items)

    def add(self, *, key: str, source_text: str, context: str) -> TranslationItem:
        if self._key_taken(key):
            raise DuplicateKey(key)
        now = utc_now()
        item = TranslationItem(
            id=_new_item_id(),
            key=key,
            context=context,
            source_text=source_text,
            created_at=now,
            updated_at=now,
        )
        self._items.insert(0, item)
        return item.model_copy()

    def get(self, item_id: str) -> TranslationItem:
        return self._items[self._index_of(item_id)].model_copy()

    def find(self, item_id: str) -> TranslationItem | None:
        try:
            return self.get(item_id)
        except ItemNotFound:
            return None

    def list(self, *, state: TranslationState | None = None) -> list[TranslationItem]:
        return [
            item.model_copy() for item in self._items if state is None or item.state is state
        ]

    def apply(self, item_id: str, result: TransitionResult) -> TranslationItem:
        idx = self._index_of(item_id)
        current = self._items[idx]
        new_key = result.field_updates.get("key")
        if isinstance(new_key, str) and self._key_taken(new_key, ignore_id=item_id):
            raise DuplicateKey(new_key)
        updated = current.model_copy(
            update={**result.field_updates, "state": result.next_state, "updated_at": utc_now()}
        )
        self._items[idx] = updated
        return updated.model_copy()

    def counts(self) -> dict[str, int]:
        out: dict[str, int] = {"all": len(self._items)}
        for state in TranslationState:
            out[state.value] = 0
        for item in self._items:
            out[item.state.value] += 1
        return out
