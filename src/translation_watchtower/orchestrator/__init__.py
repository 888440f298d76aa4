"""Item store and orchestration.

Provides:
- Settings loaded from the environment / `.env`
- Structured logging
- The in-memory item store
- The orchestrator that applies actions and drives automatic steps
- A small CLI surface
"""
