from __future__ import annotations


class WorkflowError(Exception):
    """Base class for translation workflow failures."""


class InvalidTransition(WorkflowError, ValueError):
    """An action was requested that the item's current state does not allow.

    Correctly gated callers never see this; it signals a programming error.
    """

    def __init__(self, state: str, action: str) -> None:
        super().__init__(f"Illegal action '{action}' in state '{state}'")
        self.state = state
        self.action = action


class DuplicateKey(WorkflowError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Translation key already exists: {key}")
        self.key = key


class ItemNotFound(WorkflowError, KeyError):
    def __init__(self, item_id: str) -> None:
        super().__init__(item_id)
        self.item_id = item_id

    def __str__(self) -> str:
        return f"Translation item not found: {self.item_id}"


class ExternalStepFailure(WorkflowError):
    """A draft/translate/validate/store collaborator faulted.

    Recoverable: the item stays parked in its pre-step state until retried.
    """

    def __init__(self, step: str, item_id: str, reason: str) -> None:
        super().__init__(f"External step '{step}' failed for item {item_id}: {reason}")
        self.step = step
        self.item_id = item_id
        self.reason = reason
