"""FastAPI app factory.

Endpoints are intentionally thin wrappers over :class:`Orchestrator`. Handlers
are `async` so automatic runs are scheduled on the server's event loop.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Literal

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from translation_watchtower import __version__
from translation_watchtower.filtering import apply_filter_conditions, filter_by_state
from translation_watchtower.orchestrator.config import WorkflowSettings
from translation_watchtower.orchestrator.orchestrator import Orchestrator
from translation_watchtower.server.config import ServerSettings
from translation_watchtower.server.models import (
    ActionRequest,
    ApiEvent,
    ApiItem,
    ApiSummary,
    NewItemRequest,
    SearchRequest,
)
from translation_watchtower.workflow.errors import (
    DuplicateKey,
    ExternalStepFailure,
    InvalidTransition,
    ItemNotFound,
)
from translation_watchtower.workflow.models import TranslationItem
from translation_watchtower.workflow.state_machine import (
    MANUAL_ACTIONS,
    STATE_LABELS,
    TranslationState,
    progress_index,
)

logger = logging.getLogger(__name__)


def _to_api_item(orchestrator: Orchestrator, item: TranslationItem) -> ApiItem:
    return ApiItem(
        **item.model_dump(),
        state_label=STATE_LABELS[item.state],
        processing=orchestrator.is_processing(item.id),
        stuck=orchestrator.is_stuck(item.id),
        last_error=orchestrator.last_error(item.id),
        manual_actions=list(MANUAL_ACTIONS[item.state]),
        progress_index=progress_index(item.state),
    )


def _state(value: str) -> TranslationState | Literal["all"]:
    if value == "all":
        return "all"
    try:
        return TranslationState(value)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown state: {value}") from None


def create_app(
    orchestrator: Orchestrator | None = None,
    workflow_settings: WorkflowSettings | None = None,
) -> FastAPI:
    settings = ServerSettings()
    wf_settings = workflow_settings or WorkflowSettings()
    orch = orchestrator or Orchestrator.from_settings(wf_settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        # Automatic runs die with the loop; cancel them explicitly.
        pending = orch.processing_ids()
        if pending:
            logger.info("Cancelling automatic runs", extra={"count": len(pending)})
        await orch.aclose()

    app = FastAPI(
        title=settings.title,
        version=__version__,
        description="REST API over the translation workflow orchestrator.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.workflow_settings = wf_settings
    app.state.orchestrator = orch

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ItemNotFound)
    async def _not_found(_request: Request, exc: ItemNotFound) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(DuplicateKey)
    async def _duplicate(_request: Request, exc: DuplicateKey) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc), "key": exc.key})

    @app.exception_handler(InvalidTransition)
    async def _invalid(_request: Request, exc: InvalidTransition) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"detail": str(exc), "state": exc.state, "action": exc.action},
        )

    @app.exception_handler(ExternalStepFailure)
    async def _step_failed(_request: Request, exc: ExternalStepFailure) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": str(exc), "step": exc.step})

    @app.get("/api/health")
    async def health() -> dict[str, object]:
        return {"status": "ok", "ok": True, "version": __version__}

    @app.get("/api/items", response_model=list[ApiItem])
    async def list_items(state: str = "all") -> list[ApiItem]:
        return [_to_api_item(orch, item) for item in filter_by_state(orch.items(), _state(state))]

    @app.post("/api/items/search", response_model=list[ApiItem])
    async def search_items(req: SearchRequest) -> list[ApiItem]:
        limit = wf_settings.max_filter_conditions
        if len(req.conditions) > limit:
            raise HTTPException(
                status_code=422, detail=f"At most {limit} filter conditions are allowed"
            )
        items = filter_by_state(orch.items(), req.state)
        items = apply_filter_conditions(items, [c.to_condition() for c in req.conditions])
        return [_to_api_item(orch, item) for item in items]

    @app.post("/api/items", response_model=ApiItem, status_code=201)
    async def add_item(req: NewItemRequest) -> ApiItem:
        item = orch.add_item(key=req.key, source_text=req.source_text, context=req.context)
        return _to_api_item(orch, item)

    @app.get("/api/items/{item_id}", response_model=ApiItem)
    async def get_item(item_id: str) -> ApiItem:
        return _to_api_item(orch, orch.get_item(item_id))

    @app.post("/api/items/{item_id}/actions", response_model=ApiItem)
    async def perform_action(item_id: str, req: ActionRequest) -> ApiItem:
        edits = req.edits.to_edits() if req.edits is not None else None
        item = await orch.perform_action(item_id, req.action, edits)
        return _to_api_item(orch, item)

    @app.get("/api/counts")
    async def counts() -> dict[str, int]:
        return orch.counts()

    @app.get("/api/summary", response_model=ApiSummary)
    async def summary() -> ApiSummary:
        c = orch.counts()
        return ApiSummary(
            pending=c["received"] + c["draft"],
            in_progress=c["approved"] + c["translated"],
            needs_review=c["review_required"],
            stored=c["stored"],
            rejected=c["rejected"],
            stuck=len(orch.stuck_ids()),
            processing=len(orch.processing_ids()),
        )

    @app.get("/api/processing")
    async def processing() -> dict[str, list[str]]:
        return {
            "processing": sorted(orch.processing_ids()),
            "stuck": sorted(orch.stuck_ids()),
        }

    @app.get("/api/events", response_model=list[ApiEvent])
    async def list_events(item_id: str | None = None, limit: int = 100) -> list[ApiEvent]:
        events = orch.events.list(item_id=item_id, limit=limit)
        return [ApiEvent.model_validate(e.to_json()) for e in events]

    return app
