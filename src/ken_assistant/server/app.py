"""FastAPI app factory.

Endpoints are intentionally thin wrappers over `QueryOrchestrator`.

Run with: `uvicorn ken_assistant.server.app:create_app --factory`
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException

from ken_assistant import __version__
from ken_assistant.config import AssistantSettings
from ken_assistant.context.models import ProjectContext
from ken_assistant.errors import (
    REFRESH_SUGGESTION,
    AllStrategiesFailedError,
    FetchError,
    NoContextError,
    OrchestrationError,
)
from ken_assistant.logging import configure_logging
from ken_assistant.query.aggregator import AggregatedResponse
from ken_assistant.server.models import ContextRefreshResult, ErrorDetail, QueryRequest
from ken_assistant.service import QueryOrchestrator

logger = logging.getLogger(__name__)


def _orchestration_error(e: OrchestrationError, status_code: int) -> HTTPException:
    detail = ErrorDetail(reason=e.reason, message=str(e), suggestion=e.suggestion)
    return HTTPException(status_code=status_code, detail=detail.model_dump())


def create_app(orchestrator: QueryOrchestrator | None = None) -> FastAPI:
    if orchestrator is None:
        settings = AssistantSettings()
        configure_logging(settings.log_level)
        orchestrator = QueryOrchestrator.from_settings(settings)

    app = FastAPI(
        title="Ken Issue Assistant",
        version=__version__,
        description="REST API over the context-aware issue query orchestrator.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.orchestrator = orchestrator

    @app.get("/api/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.post("/api/projects/{project_id:path}/query", response_model=AggregatedResponse)
    def query(project_id: str, req: QueryRequest) -> AggregatedResponse:
        try:
            return orchestrator.plan_and_execute(
                req.query, project_id, project_override=req.project_override
            )
        except NoContextError as e:
            raise _orchestration_error(e, 409) from e
        except AllStrategiesFailedError as e:
            raise _orchestration_error(e, 502) from e
        except FetchError as e:
            raise HTTPException(
                status_code=502,
                detail=ErrorDetail(
                    reason="fetch_failed", message=str(e), suggestion=REFRESH_SUGGESTION
                ).model_dump(),
            ) from e

    @app.post(
        "/api/projects/{project_id:path}/context/refresh", response_model=ContextRefreshResult
    )
    def refresh_context(project_id: str) -> ContextRefreshResult:
        try:
            context = orchestrator.refresh_context(project_id)
        except FetchError as e:
            raise HTTPException(
                status_code=502,
                detail=ErrorDetail(reason="fetch_failed", message=str(e)).model_dump(),
            ) from e
        return ContextRefreshResult(
            project_id=context.project_id,
            labels=len(context.labels),
            members=len(context.members),
            milestones=len(context.milestones),
            fetched_at=context.fetched_at.isoformat(),
        )

    @app.get("/api/projects/{project_id:path}/context", response_model=ProjectContext)
    def get_context(project_id: str) -> ProjectContext:
        context = orchestrator.store.get(project_id)
        if context is None:
            raise HTTPException(
                status_code=404,
                detail=ErrorDetail(
                    reason="no_context",
                    message=f"No cached context for {project_id!r}",
                    suggestion=REFRESH_SUGGESTION,
                ).model_dump(),
            )
        return context

    return app
