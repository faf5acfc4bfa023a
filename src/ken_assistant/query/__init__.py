"""Query planning, strategy execution and result aggregation."""

from ken_assistant.query.aggregator import (
    AggregatedResponse,
    MatchedRecord,
    StrategyFailure,
    ToolResult,
    aggregate,
)
from ken_assistant.query.executor import ExecutorConfig, StrategyExecutor
from ken_assistant.query.planner import PlannerConfig, Query, QueryPlanner, SearchStrategy

__all__ = [
    "AggregatedResponse",
    "ExecutorConfig",
    "MatchedRecord",
    "PlannerConfig",
    "Query",
    "QueryPlanner",
    "SearchStrategy",
    "StrategyExecutor",
    "StrategyFailure",
    "ToolResult",
    "aggregate",
]
