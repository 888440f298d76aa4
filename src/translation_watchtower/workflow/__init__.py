"""Translation workflow domain concepts.

This package introduces first-class types for:
- The translation state machine (states, legal actions, pure transitions)
- Tracked translation items
- External step collaborators (draft, translate, score, store)
- Outward workflow events

The state machine is pure; everything that suspends or mutates lives in
`translation_watchtower.orchestrator`.
"""

__all__: list[str] = []
