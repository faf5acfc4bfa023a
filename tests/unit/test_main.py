"""Unit tests for the `ken` CLI."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from unittest.mock import Mock

import pytest

import ken_assistant.main as cli
from ken_assistant.errors import AllStrategiesFailedError, NoContextError, ToolInvocationError
from ken_assistant.query.aggregator import AggregatedResponse, MatchedRecord
from ken_assistant.query.planner import SearchStrategy
from ken_assistant.service import QueryOrchestrator
from ken_assistant.trackers.base import TrackerIssue


@pytest.fixture
def orchestrator(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Mock:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("KEN_TRACKER_TOKEN", "glpat-test")
    monkeypatch.setenv("KEN_DEFAULT_PROJECT", "acme/app")
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)

    mock = Mock(spec=QueryOrchestrator)
    monkeypatch.setattr(cli.QueryOrchestrator, "from_settings", Mock(return_value=mock))
    return mock


def test_ask_prints_matching_issues(
    orchestrator: Mock,
    make_issue: Callable[..., TrackerIssue],
    capsys: pytest.CaptureFixture[str],
) -> None:
    orchestrator.plan_and_execute.return_value = AggregatedResponse(
        project_id="acme/app",
        records=(
            MatchedRecord(
                issue=make_issue(42, title="Crash on login", assignees=("alice",)),
                strategies=("assignee=alice state=opened",),
            ),
        ),
        attempted=("assignee=alice state=opened",),
        sufficient_strategy="assignee=alice state=opened",
    )

    assert cli.main(["ask", "issues for alice"]) == cli.EXIT_OK

    out = capsys.readouterr().out
    assert "#42 [opened] Crash on login (alice; no labels)" in out
    orchestrator.plan_and_execute.assert_called_once_with("issues for alice", "acme/app")
    orchestrator.close.assert_called_once_with()


def test_plan_lists_ranked_strategies(
    orchestrator: Mock, capsys: pytest.CaptureFixture[str]
) -> None:
    orchestrator.plan.return_value = [
        SearchStrategy(assignee="alice", labels=("bug",)),
        SearchStrategy(assignee="alice"),
    ]

    assert cli.main(["plan", "bugs for alice", "--project", "other/repo"]) == cli.EXIT_OK

    assert capsys.readouterr().out.splitlines() == [
        "1. label=bug assignee=alice state=opened",
        "2. assignee=alice state=opened",
    ]
    orchestrator.plan.assert_called_once_with("bugs for alice", "other/repo")


def test_no_context_exit_code(orchestrator: Mock) -> None:
    orchestrator.plan_and_execute.side_effect = NoContextError("acme/app")

    assert cli.main(["ask", "bugs"]) == cli.EXIT_NO_CONTEXT
    orchestrator.close.assert_called_once_with()


def test_all_strategies_failed_exit_code(orchestrator: Mock) -> None:
    orchestrator.plan_and_execute.side_effect = AllStrategiesFailedError(
        [ToolInvocationError("list_issues", "timed out", strategy="state=opened")]
    )

    assert cli.main(["ask", "bugs"]) == cli.EXIT_ALL_FAILED


def test_show_context_without_snapshot(
    orchestrator: Mock, capsys: pytest.CaptureFixture[str]
) -> None:
    orchestrator.context_summary.return_value = None

    assert cli.main(["show-context"]) == cli.EXIT_NO_CONTEXT
    assert "refresh-context" in capsys.readouterr().out


def test_missing_token_is_config_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("KEN_TRACKER_TOKEN", raising=False)

    assert cli.main(["plan", "bugs", "--project", "acme/app"]) == cli.EXIT_CONFIG
