from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .errors import InvalidTransition


class TranslationState(str, Enum):
    RECEIVED = "received"
    DRAFT = "draft"
    APPROVED = "approved"
    TRANSLATED = "translated"
    VALIDATED = "validated"
    REVIEW_REQUIRED = "review_required"
    REJECTED = "rejected"
    STORED = "stored"


class ValidationScore(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class WorkflowAction(str, Enum):
    GENERATE_DRAFT = "generate_draft"
    APPROVE = "approve"
    REVIEW_APPROVE = "review_approve"
    REJECT = "reject"
    TRANSLATE = "translate"
    VALIDATE = "validate"
    STORE = "store"
    RETRY = "retry"
    RETRY_STEP = "retry_step"


S = TranslationState
A = WorkflowAction

LEGAL_ACTIONS: dict[TranslationState, frozenset[WorkflowAction]] = {
    S.RECEIVED: frozenset({A.GENERATE_DRAFT}),
    S.DRAFT: frozenset({A.APPROVE, A.REJECT}),
    S.APPROVED: frozenset({A.TRANSLATE}),
    S.TRANSLATED: frozenset({A.VALIDATE}),
    S.VALIDATED: frozenset({A.STORE}),
    S.REVIEW_REQUIRED: frozenset({A.REVIEW_APPROVE, A.REJECT}),
    S.REJECTED: frozenset({A.RETRY}),
    S.STORED: frozenset(),
}

# What a human is offered per state. Auto-progress exits are not listed.
MANUAL_ACTIONS: dict[TranslationState, tuple[WorkflowAction, ...]] = {
    S.RECEIVED: (A.GENERATE_DRAFT,),
    S.DRAFT: (),
    S.APPROVED: (A.TRANSLATE,),
    S.TRANSLATED: (),
    S.VALIDATED: (),
    S.REVIEW_REQUIRED: (A.REVIEW_APPROVE, A.REJECT),
    S.REJECTED: (A.RETRY,),
    S.STORED: (),
}

AUTO_STEP_ACTIONS: dict[TranslationState, WorkflowAction] = {
    S.DRAFT: A.APPROVE,
    S.TRANSLATED: A.VALIDATE,
    S.VALIDATED: A.STORE,
}

AUTO_PROGRESS_STATES: frozenset[TranslationState] = frozenset(AUTO_STEP_ACTIONS)

TERMINAL_STATES: frozenset[TranslationState] = frozenset({S.STORED})

VALIDATION_BRANCHES: dict[ValidationScore, TranslationState] = {
    ValidationScore.HIGH: S.VALIDATED,
    ValidationScore.MEDIUM: S.REVIEW_REQUIRED,
    ValidationScore.LOW: S.REJECTED,
}

# Which external collaborator an action calls out to before it can transition.
STEP_COLLABORATORS: dict[WorkflowAction, str] = {
    A.GENERATE_DRAFT: "draft_generator",
    A.TRANSLATE: "translator",
    A.VALIDATE: "quality_scorer",
    A.STORE: "translation_memory",
}

STATE_LABELS: dict[TranslationState, str] = {
    S.RECEIVED: "Received",
    S.DRAFT: "Draft (KO)",
    S.APPROVED: "Approved",
    S.TRANSLATED: "Translated",
    S.VALIDATED: "Validated",
    S.REVIEW_REQUIRED: "Review Required",
    S.REJECTED: "Rejected",
    S.STORED: "Stored",
}

PROGRESS_STEPS: tuple[str, ...] = (
    "Received",
    "Draft",
    "Approved",
    "Translated",
    "Validated",
    "Stored",
)

_PROGRESS_INDEX: dict[TranslationState, int] = {
    S.RECEIVED: 0,
    S.DRAFT: 1,
    S.APPROVED: 2,
    S.TRANSLATED: 3,
    S.VALIDATED: 4,
    S.REVIEW_REQUIRED: 4,
    S.REJECTED: -1,
    S.STORED: 5,
}


@dataclass(frozen=True, slots=True)
class ItemEdits:
    """Human edits supplied with `approve` or `review_approve`.

    Empty strings count as "not supplied".
    """

    key: str | None = None
    source_text: str | None = None
    intermediate_text: str | None = None
    target_text: str | None = None

    def supplied(self) -> dict[str, str]:
        out: dict[str, str] = {}
        for name in ("key", "source_text", "intermediate_text", "target_text"):
            value = getattr(self, name)
            if value:
                out[name] = value
        return out


@dataclass(frozen=True, slots=True)
class QualityAssessment:
    score: ValidationScore
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class StepContext:
    """Inputs to a transition: caller edits plus the result of any external step."""

    edits: ItemEdits | None = None
    draft_text: str | None = None
    translated_text: str | None = None
    assessment: QualityAssessment | None = None


@dataclass(frozen=True, slots=True)
class TransitionResult:
    next_state: TranslationState
    field_updates: dict[str, object] = field(default_factory=dict)


def normalize_action(state: TranslationState, action: WorkflowAction | str) -> WorkflowAction:
    """Resolve string actions and the `approve` alias used during review."""

    try:
        resolved = WorkflowAction(action)
    except ValueError:
        raise InvalidTransition(state.value, str(action)) from None
    if state is S.REVIEW_REQUIRED and resolved is A.APPROVE:
        return A.REVIEW_APPROVE
    return resolved


def is_legal(state: TranslationState, action: WorkflowAction | str) -> bool:
    try:
        resolved = normalize_action(state, action)
    except InvalidTransition:
        return False
    return resolved in LEGAL_ACTIONS[state]


def ensure_legal(state: TranslationState, action: WorkflowAction | str) -> WorkflowAction:
    resolved = normalize_action(state, action)
    if resolved not in LEGAL_ACTIONS[state]:
        raise InvalidTransition(state.value, resolved.value)
    return resolved


def is_auto_progress(state: TranslationState) -> bool:
    return state in AUTO_PROGRESS_STATES


def required_step(action: WorkflowAction) -> str | None:
    """Name of the collaborator `action` calls, or None for pure transitions."""

    return STEP_COLLABORATORS.get(action)


def progress_index(state: TranslationState) -> int:
    """Position of `state` on the happy-path progress bar; -1 for rejected."""

    return _PROGRESS_INDEX[state]


def transition(
    *,
    current: TranslationState,
    action: WorkflowAction | str,
    context: StepContext | None = None,
) -> TransitionResult:
    """Compute the next state and field updates for `action` taken in `current`.

    Pure: performs no I/O and holds no item references. External step results
    arrive through `context`.
    """

    resolved = ensure_legal(current, action)
    ctx = context or StepContext()
    edits = ctx.edits or ItemEdits()

    if resolved is A.GENERATE_DRAFT:
        return TransitionResult(S.DRAFT, {"intermediate_text": ctx.draft_text})

    if resolved is A.APPROVE:
        updates: dict[str, object] = {}
        if edits.intermediate_text:
            updates["intermediate_text"] = edits.intermediate_text
        return TransitionResult(S.APPROVED, updates)

    if resolved is A.REVIEW_APPROVE:
        # Human override always lands on the top score.
        updates = dict(edits.supplied())
        updates["score"] = ValidationScore.HIGH
        return TransitionResult(S.VALIDATED, updates)

    if resolved is A.REJECT:
        return TransitionResult(S.REJECTED)

    if resolved is A.TRANSLATE:
        return TransitionResult(S.TRANSLATED, {"target_text": ctx.translated_text})

    if resolved is A.VALIDATE:
        if ctx.assessment is None:
            raise ValueError("validate requires a quality assessment")
        score = ValidationScore(ctx.assessment.score)
        return TransitionResult(
            VALIDATION_BRANCHES[score],
            {"score": score, "notes": ctx.assessment.notes},
        )

    if resolved is A.STORE:
        return TransitionResult(S.STORED)

    if resolved is A.RETRY:
        return TransitionResult(
            S.RECEIVED,
            {"intermediate_text": None, "target_text": None, "score": None, "notes": None},
        )

    # retry_step is handled by the orchestrator and never appears in LEGAL_ACTIONS.
    raise InvalidTransition(current.value, resolved.value)
