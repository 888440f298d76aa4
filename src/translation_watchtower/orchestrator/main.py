"""CLI entrypoint for the translation workflow.

The workflow is in-memory only, so each command runs a complete session:
items are loaded, driven as far as the pipeline allows, and reported.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import re
import sys
from pathlib import Path

from pydantic import ValidationError

from translation_watchtower import __version__
from translation_watchtower.orchestrator.config import WorkflowSettings
from translation_watchtower.orchestrator.logging import configure_logging
from translation_watchtower.orchestrator.orchestrator import Orchestrator, fixed_delay
from translation_watchtower.workflow.errors import ExternalStepFailure
from translation_watchtower.workflow.models import TranslationItem
from translation_watchtower.workflow.state_machine import (
    LEGAL_ACTIONS,
    MANUAL_ACTIONS,
    STATE_LABELS,
    TranslationState,
    WorkflowAction,
    is_auto_progress,
    required_step,
)

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^[a-z0-9._-]+$", re.IGNORECASE)


def _preview(values: list[str]) -> str:
    suffix = "..." if len(values) > 3 else ""
    return ", ".join(values[:3]) + suffix


def load_entries(path: Path) -> dict[str, str]:
    """Read a JSON object of `key -> source text`.

    Raises:
        ValueError: The file is not a non-empty object of valid keys to strings.
    """

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError("Invalid JSON format") from e

    if not isinstance(raw, dict):
        raise ValueError("JSON must be an object with key-value pairs")
    if not raw:
        raise ValueError("JSON object is empty")

    for key, value in raw.items():
        if not isinstance(value, str):
            raise ValueError(f'Value for key "{key}" must be a string')

    invalid = [k for k in raw if not _KEY_RE.match(k)]
    if invalid:
        raise ValueError(f"Invalid key format: {_preview(invalid)}")
    return dict(raw)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="translation-watchtower",
        description="Drive UI translation keys through the localization workflow",
    )
    parser.add_argument(
        "--version", action="version", version=f"translation-watchtower {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser(
        "run",
        help="Load keys from a JSON file and run them through the pipeline",
    )
    run.add_argument(
        "--input",
        required=True,
        help='JSON file holding an object of key -> source text, e.g. {"app.btn.save": "Sala"}',
    )
    run.add_argument("--context", required=True, help="Context (category) for every loaded key")
    run.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the placeholder quality scorer (overrides WATCHTOWER_SCORER_SEED)",
    )
    run.add_argument(
        "--settle-delay",
        type=float,
        default=None,
        help="Seconds to pause before each automatic step (overrides settings)",
    )
    run.add_argument(
        "--approve-reviews",
        action="store_true",
        help="Approve every item that lands in review_required without edits",
    )

    actions = subparsers.add_parser("actions", help="Show the actions allowed in a state")
    actions.add_argument(
        "--state",
        required=True,
        choices=[s.value for s in TranslationState],
        help="Workflow state",
    )

    return parser


async def run_pipeline(
    orchestrator: Orchestrator,
    entries: dict[str, str],
    *,
    context: str,
    approve_reviews: bool = False,
) -> list[TranslationItem]:
    """Add every entry and push it as far as the pipeline goes without human edits."""

    item_ids = [
        orchestrator.add_item(key=key, source_text=source, context=context).id
        for key, source in entries.items()
    ]

    async def _each(state: TranslationState, action: WorkflowAction) -> None:
        for item_id in item_ids:
            if orchestrator.get_item(item_id).state is not state:
                continue
            try:
                await orchestrator.perform_action(item_id, action)
            except ExternalStepFailure:
                logger.warning(
                    "Step failed; leaving item in place",
                    extra={"item_id": item_id, "action": action.value},
                )
        await orchestrator.join()

    await _each(TranslationState.RECEIVED, WorkflowAction.GENERATE_DRAFT)
    await _each(TranslationState.APPROVED, WorkflowAction.TRANSLATE)
    if approve_reviews:
        await _each(TranslationState.REVIEW_REQUIRED, WorkflowAction.REVIEW_APPROVE)

    return [orchestrator.get_item(item_id) for item_id in item_ids]


def _describe(item: TranslationItem, orchestrator: Orchestrator) -> str:
    line = f"{item.key}: {item.state.value}"
    if item.score is not None:
        line += f" (score={item.score.value})"
    if is_auto_progress(item.state) and orchestrator.is_stuck(item.id):
        line += f" STUCK: {orchestrator.last_error(item.id) or 'no automatic run'}"
    return line


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = WorkflowSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    if args.command == "actions":
        state = TranslationState(args.state)
        legal = sorted(a.value for a in LEGAL_ACTIONS[state])
        manual = [a.value for a in MANUAL_ACTIONS[state]]
        print(f"{STATE_LABELS[state]} ({state.value})")
        print(f"  legal:  {', '.join(legal) or '-'}")
        print(f"  manual: {', '.join(manual) or '-'}")
        print(f"  automatic: {'yes' if is_auto_progress(state) else 'no'}")
        steps = sorted(
            f"{a.value} -> {required_step(a)}" for a in LEGAL_ACTIONS[state] if required_step(a)
        )
        print(f"  steps:  {', '.join(steps) or '-'}")
        return 0

    if args.command == "run":
        try:
            entries = load_entries(Path(args.input))
        except (OSError, ValueError) as e:
            print(f"Cannot load {args.input}: {e}", file=sys.stderr)
            return 1

        overrides: dict[str, object] = {}
        if args.settle_delay is not None:
            overrides["settle_delay"] = fixed_delay(args.settle_delay)
        if args.seed is not None:
            settings = settings.model_copy(update={"scorer_seed": args.seed})
        orchestrator = Orchestrator.from_settings(settings, **overrides)

        items = asyncio.run(
            run_pipeline(
                orchestrator,
                entries,
                context=args.context.strip(),
                approve_reviews=args.approve_reviews,
            )
        )

        for item in items:
            print(_describe(item, orchestrator))

        counts = orchestrator.counts()
        print(" ".join(f"{name}={count}" for name, count in counts.items() if count))

        # Exit codes are designed to be CI-friendly.
        if counts["stored"] == counts["all"]:
            return 0
        return 4

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
