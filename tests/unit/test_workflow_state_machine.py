"""Unit tests for the pure translation state machine."""

from __future__ import annotations

import pytest

from translation_watchtower.workflow.errors import InvalidTransition
from translation_watchtower.workflow.state_machine import (
    AUTO_PROGRESS_STATES,
    AUTO_STEP_ACTIONS,
    LEGAL_ACTIONS,
    MANUAL_ACTIONS,
    ItemEdits,
    QualityAssessment,
    StepContext,
    TranslationState,
    ValidationScore,
    WorkflowAction,
    is_legal,
    progress_index,
    required_step,
    transition,
)

S = TranslationState
A = WorkflowAction

_CONTEXTS = {
    A.GENERATE_DRAFT: StepContext(draft_text="draft"),
    A.TRANSLATE: StepContext(translated_text="target"),
    A.VALIDATE: StepContext(assessment=QualityAssessment(score=ValidationScore.HIGH)),
}


@pytest.mark.parametrize("state", list(S))
@pytest.mark.parametrize("action", [a for a in A if a is not A.RETRY_STEP])
def test_transition_succeeds_iff_action_is_legal(state: S, action: A) -> None:
    legal = action in LEGAL_ACTIONS[state] or (state is S.REVIEW_REQUIRED and action is A.APPROVE)
    if legal:
        result = transition(current=state, action=action, context=_CONTEXTS.get(action))
        assert isinstance(result.next_state, S)
    else:
        with pytest.raises(InvalidTransition):
            transition(current=state, action=action, context=_CONTEXTS.get(action))


@pytest.mark.parametrize("state", list(S))
def test_retry_step_is_never_a_transition(state: S) -> None:
    with pytest.raises(InvalidTransition):
        transition(current=state, action=A.RETRY_STEP)


def test_unknown_action_string_is_invalid() -> None:
    with pytest.raises(InvalidTransition):
        transition(current=S.RECEIVED, action="publish")
    assert not is_legal(S.RECEIVED, "publish")


def test_generate_draft_sets_intermediate_text() -> None:
    result = transition(
        current=S.RECEIVED, action="generate_draft", context=StepContext(draft_text="Gcina")
    )
    assert result.next_state is S.DRAFT
    assert result.field_updates == {"intermediate_text": "Gcina"}


def test_approve_keeps_generated_draft_unless_edited() -> None:
    plain = transition(current=S.DRAFT, action=A.APPROVE)
    assert plain.next_state is S.APPROVED
    assert plain.field_updates == {}

    edited = transition(
        current=S.DRAFT,
        action=A.APPROVE,
        context=StepContext(edits=ItemEdits(intermediate_text="저장")),
    )
    assert edited.field_updates == {"intermediate_text": "저장"}

    empty = transition(
        current=S.DRAFT, action=A.APPROVE, context=StepContext(edits=ItemEdits(intermediate_text=""))
    )
    assert empty.field_updates == {}


def test_review_approve_copies_supplied_edits_and_forces_high_score() -> None:
    result = transition(
        current=S.REVIEW_REQUIRED,
        action=A.REVIEW_APPROVE,
        context=StepContext(edits=ItemEdits(target_text="Save")),
    )
    assert result.next_state is S.VALIDATED
    assert result.field_updates == {"target_text": "Save", "score": ValidationScore.HIGH}


def test_approve_in_review_is_treated_as_review_approve() -> None:
    result = transition(current=S.REVIEW_REQUIRED, action=A.APPROVE)
    assert result.next_state is S.VALIDATED
    assert result.field_updates["score"] is ValidationScore.HIGH


@pytest.mark.parametrize(
    ("score", "expected"),
    [
        (ValidationScore.HIGH, S.VALIDATED),
        (ValidationScore.MEDIUM, S.REVIEW_REQUIRED),
        (ValidationScore.LOW, S.REJECTED),
    ],
)
def test_validate_branches_on_every_score(score: ValidationScore, expected: S) -> None:
    result = transition(
        current=S.TRANSLATED,
        action=A.VALIDATE,
        context=StepContext(assessment=QualityAssessment(score=score, notes="n")),
    )
    assert result.next_state is expected
    assert result.next_state is not S.TRANSLATED
    assert result.field_updates == {"score": score, "notes": "n"}


def test_validate_without_assessment_is_an_error() -> None:
    with pytest.raises(ValueError):
        transition(current=S.TRANSLATED, action=A.VALIDATE)


def test_retry_resets_pipeline_artefacts() -> None:
    result = transition(current=S.REJECTED, action=A.RETRY)
    assert result.next_state is S.RECEIVED
    assert result.field_updates == {
        "intermediate_text": None,
        "target_text": None,
        "score": None,
        "notes": None,
    }


@pytest.mark.parametrize("state", [S.DRAFT, S.REVIEW_REQUIRED])
def test_reject_changes_no_fields(state: S) -> None:
    result = transition(current=state, action=A.REJECT)
    assert result.next_state is S.REJECTED
    assert result.field_updates == {}


def test_auto_progress_classification() -> None:
    assert AUTO_PROGRESS_STATES == {S.DRAFT, S.TRANSLATED, S.VALIDATED}
    for state, action in AUTO_STEP_ACTIONS.items():
        assert action in LEGAL_ACTIONS[state]
        assert MANUAL_ACTIONS[state] == ()
    assert LEGAL_ACTIONS[S.STORED] == frozenset()


def test_manual_actions_are_legal() -> None:
    for state, actions in MANUAL_ACTIONS.items():
        for action in actions:
            assert is_legal(state, action)


def test_progress_index() -> None:
    assert progress_index(S.RECEIVED) == 0
    assert progress_index(S.REVIEW_REQUIRED) == progress_index(S.VALIDATED)
    assert progress_index(S.STORED) == 5
    assert progress_index(S.REJECTED) == -1


def test_required_step_names_the_collaborator() -> None:
    assert required_step(A.GENERATE_DRAFT) == "draft_generator"
    assert required_step(A.STORE) == "translation_memory"
    assert required_step(A.APPROVE) is None
    assert required_step(A.RETRY) is None
