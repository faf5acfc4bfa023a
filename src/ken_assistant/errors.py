"""Exception taxonomy for context fetching and query orchestration."""

from __future__ import annotations

from collections.abc import Sequence

REFRESH_SUGGESTION = "Run 'ken refresh-context' to fetch the project's labels, members and milestones."


class FetchError(Exception):
    """Tracker metadata retrieval failed; no snapshot was stored."""

    def __init__(self, project_id: str, retrieval: str, message: str) -> None:
        super().__init__(f"Failed to fetch {retrieval} for project {project_id!r}: {message}")
        self.project_id = project_id
        self.retrieval = retrieval


class ToolInvocationError(Exception):
    """A single strategy's tool invocation failed."""

    def __init__(self, tool_name: str, message: str, *, strategy: str | None = None) -> None:
        where = f" (strategy {strategy!r})" if strategy else ""
        super().__init__(f"Tool {tool_name!r} failed{where}: {message}")
        self.tool_name = tool_name
        self.strategy = strategy
        self.detail = message

    def for_strategy(self, strategy: str) -> ToolInvocationError:
        """Return a copy tagged with the strategy that triggered it."""

        tagged = ToolInvocationError(self.tool_name, self.detail, strategy=strategy)
        tagged.__cause__ = self.__cause__
        return tagged


class OrchestrationError(Exception):
    """A plan/execute cycle could not produce an answer."""

    reason: str = "orchestration_failed"

    def __init__(self, message: str, *, suggestion: str | None = None) -> None:
        super().__init__(message)
        self.suggestion = suggestion


class NoContextError(OrchestrationError):
    """No context snapshot has ever been fetched successfully for the project."""

    reason = "no_context"

    def __init__(self, project_id: str) -> None:
        super().__init__(
            f"No project context available for {project_id!r}",
            suggestion=REFRESH_SUGGESTION,
        )
        self.project_id = project_id


class AllStrategiesFailedError(OrchestrationError):
    """Every candidate strategy's tool invocation failed."""

    reason = "all_strategies_failed"

    def __init__(self, failures: Sequence[ToolInvocationError]) -> None:
        lines = "; ".join(str(f) for f in failures)
        super().__init__(
            f"All {len(failures)} search strategies failed: {lines}",
            suggestion=(
                "Check tracker connectivity and credentials. If labels or members changed "
                "recently, " + REFRESH_SUGGESTION[0].lower() + REFRESH_SUGGESTION[1:]
            ),
        )
        self.failures = list(failures)
