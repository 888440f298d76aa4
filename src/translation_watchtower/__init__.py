"""Translation Watchtower.

Tracks UI translation keys through a staged localization pipeline:
intake, draft generation, approval, machine translation, validation,
optional human review and storage in a translation memory.
"""

__version__ = "0.1.0"

from translation_watchtower.orchestrator.config import WorkflowSettings

__all__ = ["__version__", "WorkflowSettings"]
