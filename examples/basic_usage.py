#!/usr/bin/env python3
"""Programmatic workflow example.

This demonstrates using the orchestrator directly:

* load settings from `.env`
* add a translation key
* generate a draft and let it auto-approve
* translate and let validation/storage run automatically
* approve the item by hand if validation asked for review
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Sequence

from translation_watchtower.orchestrator.config import WorkflowSettings
from translation_watchtower.orchestrator.logging import configure_logging
from translation_watchtower.orchestrator.orchestrator import Orchestrator
from translation_watchtower.workflow.state_machine import ItemEdits, TranslationState


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one key through the workflow.")
    parser.add_argument("--key", default="app.btn.save", help="Translation key")
    parser.add_argument("--source", default="Sala", help="Source text")
    parser.add_argument("--context", default="ui", help="Context (category)")
    parser.add_argument("--target", default="", help="Target text to use if review is required")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    settings = WorkflowSettings()
    configure_logging(settings.log_level)
    orchestrator = Orchestrator.from_settings(settings)

    item = orchestrator.add_item(key=args.key, source_text=args.source, context=args.context)
    await orchestrator.perform_action(item.id, "generate_draft")
    await orchestrator.join()

    await orchestrator.perform_action(item.id, "translate")
    await orchestrator.join()

    item = orchestrator.get_item(item.id)
    if item.state is TranslationState.REVIEW_REQUIRED:
        print(f"Review required ({item.notes}); approving")
        await orchestrator.perform_action(
            item.id, "review_approve", ItemEdits(target_text=args.target or None)
        )
        await orchestrator.join()
        item = orchestrator.get_item(item.id)

    print(f"{item.key}: {item.state.value}")
    print(f"  draft:  {item.intermediate_text}")
    print(f"  target: {item.target_text}")
    print(f"  score:  {item.score.value if item.score else '-'}")
    for event in orchestrator.events.list(item_id=item.id):
        print(f"  [{event.kind}] {event.message}")
    return 0 if item.state is TranslationState.STORED else 4


def main(argv: Sequence[str] | None = None) -> int:
    return asyncio.run(_run(_parse_args(argv)))


if __name__ == "__main__":
    raise SystemExit(main())
