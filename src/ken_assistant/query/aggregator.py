"""Merge per-strategy tool results into one deduplicated, attributed response."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ken_assistant.errors import ToolInvocationError
from ken_assistant.query.planner import SearchStrategy
from ken_assistant.trackers.base import STATE_CLOSED, STATE_OPENED, TrackerIssue


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Records returned by running one strategy."""

    strategy: SearchStrategy
    records: tuple[TrackerIssue, ...]
    sufficient: bool


class MatchedRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    issue: TrackerIssue
    strategies: tuple[str, ...] = Field(description="Strategies that surfaced this issue")


class StrategyFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategy: str
    error: str


class AggregatedResponse(BaseModel):
    """Final answer of a plan/execute cycle."""

    project_id: str
    query: str | None = None
    records: tuple[MatchedRecord, ...] = ()
    attempted: tuple[str, ...] = ()
    sufficient_strategy: str | None = None
    partial: bool = False
    failures: tuple[StrategyFailure, ...] = ()
    limit_reached: bool = Field(
        default=False,
        description="A strategy returned a full page; narrower filters may reveal more issues",
    )
    context_warning: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def stats(self) -> dict[str, int]:
        """Open and closed counts over the returned records."""

        states = [record.issue.state for record in self.records]
        return {"open": states.count(STATE_OPENED), "closed": states.count(STATE_CLOSED)}

    @property
    def issues(self) -> list[TrackerIssue]:
        return [record.issue for record in self.records]


def aggregate(results: Sequence[ToolResult]) -> tuple[MatchedRecord, ...]:
    """Deduplicate by issue id, keeping first-seen order and every contributing strategy.

    Raises:
        TypeError: If an input is not a ToolResult or carries non-issue records.
    """

    order: list[int] = []
    issues: dict[int, TrackerIssue] = {}
    provenance: dict[int, list[str]] = {}

    for result in results:
        if not isinstance(result, ToolResult):
            raise TypeError(f"Expected ToolResult, got {type(result).__name__}")
        name = result.strategy.name
        for issue in result.records:
            if not isinstance(issue, TrackerIssue):
                raise TypeError(f"Expected TrackerIssue record, got {type(issue).__name__}")
            if issue.id not in issues:
                issues[issue.id] = issue
                provenance[issue.id] = []
                order.append(issue.id)
            if name not in provenance[issue.id]:
                provenance[issue.id].append(name)

    return tuple(
        MatchedRecord(issue=issues[issue_id], strategies=tuple(provenance[issue_id]))
        for issue_id in order
    )


def build_response(
    *,
    project_id: str,
    results: Sequence[ToolResult],
    attempted: Sequence[SearchStrategy],
    failures: Sequence[ToolInvocationError] = (),
    query: str | None = None,
    limit_reached: bool = False,
) -> AggregatedResponse:
    """Assemble the response; `results` must already be in presentation order."""

    sufficient = next((r.strategy.name for r in results if r.sufficient), None)
    return AggregatedResponse(
        project_id=project_id,
        query=query,
        records=aggregate(results),
        attempted=tuple(s.name for s in attempted),
        sufficient_strategy=sufficient,
        partial=sufficient is None,
        failures=tuple(
            StrategyFailure(strategy=f.strategy or "", error=f.detail) for f in failures
        ),
        limit_reached=limit_reached,
    )
