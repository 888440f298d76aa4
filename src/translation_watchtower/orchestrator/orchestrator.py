"""Item orchestration: applies transitions and drives automatic steps.

All mutation of tracked items funnels through :class:`Orchestrator`. It runs
on a single asyncio event loop; the only suspension points are the settle
delay and external collaborator calls, so every store update between them is
atomic with respect to other actions.

Automatic progression runs detached from the caller in one task per item. The
task re-reads the item after every suspension and abandons its run if a manual
action moved the item in the meantime.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from translation_watchtower.workflow import events as ev
from translation_watchtower.workflow.collaborators import (
    DraftGenerator,
    InMemoryTranslationMemory,
    PlaceholderDraftGenerator,
    PlaceholderTranslator,
    QualityScorer,
    RandomQualityScorer,
    TranslationMemory,
    Translator,
)
from translation_watchtower.workflow.errors import ExternalStepFailure, InvalidTransition
from translation_watchtower.workflow.events import EventLog, WorkflowEvent
from translation_watchtower.workflow.models import TranslationItem
from translation_watchtower.workflow.state_machine import (
    AUTO_PROGRESS_STATES,
    AUTO_STEP_ACTIONS,
    ItemEdits,
    QualityAssessment,
    StepContext,
    TranslationState,
    TransitionResult,
    WorkflowAction,
    ensure_legal,
    normalize_action,
    required_step,
    transition,
)

from .config import WorkflowSettings
from .store import ItemStore

logger = logging.getLogger(__name__)

DelayStrategy = Callable[[], Awaitable[None]]


async def no_delay() -> None:
    return None


def fixed_delay(seconds: float) -> DelayStrategy:
    if seconds <= 0:
        return no_delay

    async def _sleep() -> None:
        await asyncio.sleep(seconds)

    return _sleep


class Orchestrator:
    """Owns the item store and the set of in-flight automatic runs."""

    def __init__(
        self,
        *,
        store: ItemStore | None = None,
        draft_generator: DraftGenerator | None = None,
        translator: Translator | None = None,
        quality_scorer: QualityScorer | None = None,
        translation_memory: TranslationMemory | None = None,
        settle_delay: DelayStrategy = no_delay,
        step_timeout_seconds: float | None = None,
        event_log: EventLog | None = None,
    ) -> None:
        self._store = store or ItemStore()
        self.draft_generator = draft_generator or PlaceholderDraftGenerator()
        self.translator = translator or PlaceholderTranslator()
        self.quality_scorer = quality_scorer or RandomQualityScorer()
        self.translation_memory = translation_memory or InMemoryTranslationMemory()
        self._settle = settle_delay
        self._step_timeout = step_timeout_seconds
        self.events = event_log or EventLog()

        # item id -> in-flight automatic run. Membership is the "processing" flag.
        self._runs: dict[str, asyncio.Task[None]] = {}
        self._last_errors: dict[str, str] = {}

    @classmethod
    def from_settings(cls, settings: WorkflowSettings, **overrides: object) -> Orchestrator:
        """Build an orchestrator with the placeholder collaborators configured by settings."""

        kwargs: dict[str, object] = {
            "draft_generator": PlaceholderDraftGenerator(
                settings.intermediate_language, settings.source_language
            ),
            "translator": PlaceholderTranslator(settings.target_language),
            "quality_scorer": RandomQualityScorer(settings.scorer_seed),
            "settle_delay": fixed_delay(settings.settle_delay_seconds),
            "step_timeout_seconds": settings.step_timeout_seconds,
            "event_log": EventLog(limit=settings.event_log_limit),
        }
        kwargs.update(overrides)
        return cls(**kwargs)  # type: ignore[arg-type]

    # Read side

    def items(self, *, state: TranslationState | None = None) -> list[TranslationItem]:
        return self._store.list(state=state)

    def get_item(self, item_id: str) -> TranslationItem:
        return self._store.get(item_id)

    def counts(self) -> dict[str, int]:
        return self._store.counts()

    def processing_ids(self) -> frozenset[str]:
        return frozenset(self._runs)

    def is_processing(self, item_id: str) -> bool:
        return item_id in self._runs

    def is_stuck(self, item_id: str) -> bool:
        item = self._store.get(item_id)
        return item.state in AUTO_PROGRESS_STATES and item_id not in self._runs

    def stuck_ids(self) -> frozenset[str]:
        return frozenset(
            item.id
            for item in self._store.list()
            if item.state in AUTO_PROGRESS_STATES and item.id not in self._runs
        )

    def last_error(self, item_id: str) -> str | None:
        return self._last_errors.get(item_id)

    # Write side

    def add_item(self, *, key: str, source_text: str, context: str) -> TranslationItem:
        item = self._store.add(key=key, source_text=source_text, context=context)
        logger.info("Translation item added", extra={"item_id": item.id, "key": item.key})
        self._emit(ev.ITEM_ADDED, item.id, f"Added {item.key}", key=item.key)
        return item

    async def perform_action(
        self,
        item_id: str,
        action: WorkflowAction | str,
        edits: ItemEdits | None = None,
    ) -> TranslationItem:
        """Apply a manual action and return the item as it stands afterwards.

        Automatic follow-up steps are scheduled but not awaited; their outcome
        is only visible through item state, `processing_ids` and `stuck_ids`.

        Raises:
            ItemNotFound: No item with `item_id`.
            InvalidTransition: `action` is not legal in the item's state.
            ExternalStepFailure: The collaborator behind `action` faulted; the
                item is unchanged.
            DuplicateKey: A review edit renamed the key onto another item.
        """

        item = self._store.get(item_id)
        resolved = normalize_action(item.state, action)

        if resolved is WorkflowAction.RETRY_STEP:
            if item.state not in AUTO_PROGRESS_STATES:
                raise InvalidTransition(item.state.value, resolved.value)
            if self._schedule(item_id):
                logger.info(
                    "Retrying automatic step",
                    extra={"item_id": item_id, "state": item.state.value},
                )
            return self._store.get(item_id)

        ensure_legal(item.state, resolved)
        try:
            context = await self._run_step(item, resolved, edits)
        except ExternalStepFailure as e:
            self._report_failure(e, item.state, automatic=False)
            raise

        # The step may have suspended; legality is judged against the current state.
        current = self._store.get(item_id)
        result = transition(current=current.state, action=resolved, context=context)
        updated = self._apply(current, resolved, result, automatic=False)

        if updated.state in AUTO_PROGRESS_STATES:
            self._schedule(item_id)
        return updated

    async def join(self) -> None:
        """Wait until no automatic run is in flight."""

        while self._runs:
            await asyncio.gather(*list(self._runs.values()), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel every in-flight run; affected items are left stuck."""

        runs = list(self._runs.values())
        for task in runs:
            task.cancel()
        if runs:
            await asyncio.gather(*runs, return_exceptions=True)

    # Internals

    def _emit(self, kind: str, item_id: str, message: str, **payload: object) -> None:
        self.events.emit(WorkflowEvent(kind=kind, item_id=item_id, message=message, payload=payload))

    def _apply(
        self,
        before: TranslationItem,
        action: WorkflowAction,
        result: TransitionResult,
        *,
        automatic: bool,
    ) -> TranslationItem:
        updated = self._store.apply(before.id, result)
        self._last_errors.pop(before.id, None)
        logger.info(
            "Translation item transitioned",
            extra={
                "item_id": before.id,
                "action": action.value,
                "from_state": before.state.value,
                "to_state": updated.state.value,
                "automatic": automatic,
            },
        )
        self._emit(
            ev.TRANSITION,
            before.id,
            f"{before.key}: {before.state.value} -> {updated.state.value}",
            action=action.value,
            from_state=before.state.value,
            to_state=updated.state.value,
            automatic=automatic,
            score=updated.score.value if updated.score else None,
        )
        return updated

    def _report_failure(
        self, error: ExternalStepFailure, state: TranslationState, *, automatic: bool
    ) -> None:
        self._last_errors[error.item_id] = str(error)
        logger.warning(
            "Automatic step failed; item is stuck" if automatic else "External step failed",
            extra={"item_id": error.item_id, "state": state.value, "step": error.step},
        )
        self._emit(
            ev.STEP_FAILED,
            error.item_id,
            str(error),
            state=state.value,
            step=error.step,
            reason=error.reason,
            automatic=automatic,
        )

    async def _call(
        self, step: WorkflowAction, item_id: str, call: Callable[[], Awaitable[object]]
    ) -> object:
        try:
            if self._step_timeout is None:
                return await call()
            return await asyncio.wait_for(call(), timeout=self._step_timeout)
        except TimeoutError as e:
            raise ExternalStepFailure(step.value, item_id, "timed out") from e
        except Exception as e:
            raise ExternalStepFailure(step.value, item_id, str(e) or type(e).__name__) from e

    async def _run_step(
        self,
        item: TranslationItem,
        action: WorkflowAction,
        edits: ItemEdits | None = None,
    ) -> StepContext:
        """Invoke the collaborator `action` depends on and package its result."""

        if required_step(action) is None:
            return StepContext(edits=edits)

        if action is WorkflowAction.GENERATE_DRAFT:
            draft = await self._call(
                action, item.id, lambda: self.draft_generator.generate_draft(item.source_text)
            )
            return StepContext(edits=edits, draft_text=str(draft))

        if action is WorkflowAction.TRANSLATE:
            translated = await self._call(
                action, item.id, lambda: self.translator.translate(item.intermediate_text or "")
            )
            return StepContext(edits=edits, translated_text=str(translated))

        if action is WorkflowAction.VALIDATE:
            assessment = await self._call(
                action, item.id, lambda: self.quality_scorer.validate_quality(item)
            )
            if not isinstance(assessment, QualityAssessment):
                raise ExternalStepFailure(
                    action.value, item.id, f"scorer returned {type(assessment).__name__}"
                )
            return StepContext(edits=edits, assessment=assessment)

        if action is WorkflowAction.STORE:
            await self._call(action, item.id, lambda: self.translation_memory.store(item))

        return StepContext(edits=edits)

    def _schedule(self, item_id: str) -> bool:
        """Start an automatic run unless one is already in flight for the item."""

        if item_id in self._runs:
            return False
        task = asyncio.create_task(self._auto_progress(item_id), name=f"auto-progress-{item_id}")
        self._runs[item_id] = task
        return True

    async def _auto_progress(self, item_id: str) -> None:
        state: TranslationState | None = None
        try:
            item = self._store.find(item_id)
            state = item.state if item else None
            while state in AUTO_PROGRESS_STATES:
                await self._settle()
                if not self._still_in(item_id, state):
                    return

                item = self._store.get(item_id)
                action = AUTO_STEP_ACTIONS[state]
                try:
                    context = await self._run_step(item, action)
                except ExternalStepFailure as e:
                    self._report_failure(e, state, automatic=True)
                    return

                if not self._still_in(item_id, state):
                    return

                result = transition(current=state, action=action, context=context)
                state = self._apply(item, action, result, automatic=True).state
        except Exception as e:
            # Faults outside the collaborator call (settle delay, store) park the item too.
            logger.exception("Automatic run crashed", extra={"item_id": item_id})
            if state in AUTO_STEP_ACTIONS:
                step = AUTO_STEP_ACTIONS[state].value
                reason = str(e) or type(e).__name__
                self._report_failure(
                    ExternalStepFailure(step, item_id, reason), state, automatic=True
                )
        finally:
            self._runs.pop(item_id, None)

    def _still_in(self, item_id: str, state: TranslationState) -> bool:
        item = self._store.find(item_id)
        if item is not None and item.state is state:
            return True
        logger.info(
            "Automatic run abandoned; item moved underneath it",
            extra={
                "item_id": item_id,
                "expected_state": state.value,
                "actual_state": item.state.value if item else None,
            },
        )
        self._emit(
            ev.AUTO_PROGRESS_ABORTED,
            item_id,
            f"Automatic {state.value} step abandoned",
            expected_state=state.value,
            actual_state=item.state.value if item else None,
        )
        return False
