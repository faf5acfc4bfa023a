"""Run ranked strategies against the tracker until one yields a usable answer."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ken_assistant.errors import AllStrategiesFailedError, ToolInvocationError
from ken_assistant.query.aggregator import AggregatedResponse, ToolResult, build_response
from ken_assistant.query.planner import SearchStrategy
from ken_assistant.trackers.tools import LIST_ISSUES_TOOL, MAX_LIMIT, ToolInvoker

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExecutorConfig:
    tool_name: str = LIST_ISSUES_TOOL
    result_limit: int = 20

    def __post_init__(self) -> None:
        if not 1 <= self.result_limit <= MAX_LIMIT:
            raise ValueError(f"result_limit must be between 1 and {MAX_LIMIT}")


class StrategyExecutor:
    """Executes strategies strictly in rank order, one tool call at a time.

    A result is sufficient when it is non-empty and came from a strategy with at
    least one filter besides state; a bare state search only counts when it is the
    sole strategy. Execution stops at the first sufficient result, whose records
    lead the response, followed by whatever earlier strategies found.
    """

    def __init__(self, invoker: ToolInvoker, config: ExecutorConfig | None = None) -> None:
        self._invoker = invoker
        self.config = config or ExecutorConfig()

    def execute(
        self,
        strategies: Sequence[SearchStrategy],
        project_id: str,
        *,
        query_text: str | None = None,
    ) -> AggregatedResponse:
        """Run the strategies and aggregate what they return.

        Raises:
            ValueError: If no strategies are given.
            AllStrategiesFailedError: If every tool invocation failed.
        """

        if not strategies:
            raise ValueError("At least one strategy is required")

        sole_strategy = len(strategies) == 1
        attempted: list[SearchStrategy] = []
        results: list[ToolResult] = []
        failures: list[ToolInvocationError] = []
        limit_reached = False

        for rank, strategy in enumerate(strategies):
            attempted.append(strategy)
            args = strategy.to_tool_arguments(project_id, limit=self.config.result_limit)
            try:
                records = self._invoker.invoke(self.config.tool_name, args)
            except ToolInvocationError as e:
                failure = e.for_strategy(strategy.name)
                failures.append(failure)
                logger.warning(
                    "Strategy invocation failed; trying next",
                    extra={"project_id": project_id, "rank": rank, "error": str(failure)},
                )
                continue

            limit_reached = limit_reached or len(records) >= self.config.result_limit
            sufficient = bool(records) and (sole_strategy or not strategy.is_default)
            result = ToolResult(strategy=strategy, records=tuple(records), sufficient=sufficient)
            logger.debug(
                "Strategy executed",
                extra={
                    "project_id": project_id,
                    "rank": rank,
                    "strategy": strategy.name,
                    "records": len(records),
                    "sufficient": sufficient,
                },
            )

            if sufficient:
                return build_response(
                    project_id=project_id,
                    results=[result, *results],
                    attempted=attempted,
                    failures=failures,
                    query=query_text,
                    limit_reached=limit_reached,
                )
            results.append(result)

        if len(failures) == len(strategies):
            raise AllStrategiesFailedError(failures)

        logger.info(
            "No strategy was sufficient; returning partial results",
            extra={"project_id": project_id, "attempted": len(attempted)},
        )
        return build_response(
            project_id=project_id,
            results=results,
            attempted=attempted,
            failures=failures,
            query=query_text,
            limit_reached=limit_reached,
        )
