"""FastAPI server adapter for translation-watchtower.

Design intent:
- Keep workflow logic in `translation_watchtower.workflow` / `.orchestrator`
- Keep server-specific concerns (routing, CORS, HTTP error mapping) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from translation_watchtower.server.app import create_app
