"""Entry point tying the context cache, planner and executor together."""

from __future__ import annotations

import logging
from datetime import timedelta

from ken_assistant.config import AssistantSettings
from ken_assistant.context.fetcher import ContextFetcher
from ken_assistant.context.models import ProjectContext
from ken_assistant.context.store import ContextSnapshotFile, ContextStore
from ken_assistant.errors import FetchError, NoContextError
from ken_assistant.query.aggregator import AggregatedResponse
from ken_assistant.query.executor import ExecutorConfig, StrategyExecutor
from ken_assistant.query.planner import PlannerConfig, Query, QueryPlanner, SearchStrategy
from ken_assistant.trackers.base import TrackerClient
from ken_assistant.trackers.factory import TrackerFactory
from ken_assistant.trackers.tools import ToolInvoker, TrackerToolInvoker

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_MAX_AGE = timedelta(hours=3)


class QueryOrchestrator:
    """Plans and executes natural-language issue queries for a project.

    The active project is always passed in explicitly; the orchestrator keeps no
    notion of a "current" project.
    """

    def __init__(
        self,
        *,
        store: ContextStore,
        fetcher: ContextFetcher,
        invoker: ToolInvoker,
        planner: QueryPlanner | None = None,
        executor_config: ExecutorConfig | None = None,
        context_max_age: timedelta = DEFAULT_CONTEXT_MAX_AGE,
        allow_stale_context: bool = True,
        tracker: TrackerClient | None = None,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.planner = planner or QueryPlanner()
        self.executor = StrategyExecutor(invoker, executor_config)
        self.context_max_age = context_max_age
        self.allow_stale_context = allow_stale_context
        self._tracker = tracker

    @classmethod
    def from_settings(
        cls, settings: AssistantSettings, *, tracker: TrackerClient | None = None
    ) -> QueryOrchestrator:
        tracker = tracker or TrackerFactory.create(settings)
        store = ContextStore(ContextSnapshotFile(settings.contexts_dir))
        return cls(
            store=store,
            fetcher=ContextFetcher(tracker, store),
            invoker=TrackerToolInvoker(tracker, default_project_id=settings.default_project_id),
            planner=QueryPlanner(
                PlannerConfig(
                    max_strategy_dimensions=settings.max_strategy_dimensions,
                    max_strategies=settings.max_strategies,
                )
            ),
            executor_config=ExecutorConfig(result_limit=settings.result_limit),
            context_max_age=settings.context_max_age,
            allow_stale_context=settings.allow_stale_context,
            tracker=tracker,
        )

    def refresh_context(self, project_id: str) -> ProjectContext:
        """Force a fresh snapshot for the project.

        Raises:
            FetchError: If the tracker metadata could not be fetched.
        """

        return self.fetcher.refresh(project_id.strip())

    def _ensure_context(self, project_id: str) -> tuple[ProjectContext, str | None]:
        """Return a usable snapshot plus a warning when it is stale."""

        cached = self.store.get(project_id)
        if cached is not None and not self.store.is_stale(project_id, self.context_max_age):
            return cached, None

        try:
            return self.fetcher.refresh(project_id), None
        except FetchError as e:
            if cached is None:
                logger.error(
                    "No context available and refresh failed",
                    extra={"project_id": project_id, "error": str(e)},
                )
                raise NoContextError(project_id) from e
            if not self.allow_stale_context:
                raise

            warning = (
                f"Context refresh failed ({e}); using snapshot from "
                f"{cached.fetched_at.isoformat()}"
            )
            logger.warning(
                "Planning against stale context",
                extra={"project_id": project_id, "fetched_at": cached.fetched_at.isoformat()},
            )
            return cached, warning

    def plan(
        self, query_text: str, project_id: str, *, project_override: str | None = None
    ) -> list[SearchStrategy]:
        """Plan without executing; useful to inspect how a query is interpreted."""

        query = Query(text=query_text, project_id=project_id, project_override=project_override)
        context, _ = self._ensure_context(query.effective_project_id)
        return self.planner.plan(query, context)

    def plan_and_execute(
        self, query_text: str, project_id: str, *, project_override: str | None = None
    ) -> AggregatedResponse:
        """Answer one natural-language query against a project.

        Raises:
            NoContextError: If no context snapshot exists and none could be fetched.
            AllStrategiesFailedError: If every strategy's tool invocation failed.
            FetchError: If a stale snapshot could not be refreshed and stale use is disabled.
        """

        query = Query(text=query_text, project_id=project_id, project_override=project_override)
        target = query.effective_project_id
        logger.info("Handling query", extra={"project_id": target, "query": query_text})

        context, warning = self._ensure_context(target)
        strategies = self.planner.plan(query, context)
        response = self.executor.execute(strategies, target, query_text=query_text)

        if warning is not None:
            response = response.model_copy(update={"context_warning": warning})

        logger.info(
            "Query answered",
            extra={
                "project_id": target,
                "records": len(response.records),
                "sufficient_strategy": response.sufficient_strategy,
                "partial": response.partial,
            },
        )
        return response

    def context_summary(self, project_id: str) -> str | None:
        context = self.store.get(project_id)
        return context.to_prompt_context() if context is not None else None

    def close(self) -> None:
        if self._tracker is not None:
            self._tracker.close()
