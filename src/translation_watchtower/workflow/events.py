from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from .models import utc_now

logger = logging.getLogger(__name__)

ITEM_ADDED = "item_added"
TRANSITION = "transition"
STEP_FAILED = "step_failed"
AUTO_PROGRESS_ABORTED = "auto_progress_aborted"


@dataclass(frozen=True, slots=True)
class WorkflowEvent:
    """An outward notification about an item.

    Each kind is distinguishable so a presentation layer can render success,
    failure and cancellation differently.
    """

    kind: str
    item_id: str
    message: str
    payload: dict[str, object] = field(default_factory=dict)
    ts: datetime = field(default_factory=utc_now)

    def to_json(self) -> dict[str, object]:
        return {
            "kind": self.kind,
            "item_id": self.item_id,
            "message": self.message,
            "payload": dict(self.payload),
            "ts": self.ts.isoformat(),
        }


EventListener = Callable[[WorkflowEvent], None]


class EventLog:
    """Bounded in-memory history of workflow events with simple fan-out."""

    def __init__(self, limit: int = 500) -> None:
        self._events: deque[WorkflowEvent] = deque(maxlen=limit)
        self._listeners: list[EventListener] = []

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def emit(self, event: WorkflowEvent) -> None:
        self._events.append(event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # A broken listener must not stall the workflow.
                logger.exception("Event listener failed", extra={"kind": event.kind})

    def list(self, *, item_id: str | None = None, limit: int | None = None) -> list[WorkflowEvent]:
        events = [e for e in self._events if item_id is None or e.item_id == item_id]
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events

    def latest(self) -> WorkflowEvent | None:
        if not self._events:
            return None
        return self._events[-1]
