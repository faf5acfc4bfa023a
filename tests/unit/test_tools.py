"""Unit tests for the tracker tool invoker."""

from __future__ import annotations

from unittest.mock import Mock

import pytest
import requests

from ken_assistant.errors import ToolInvocationError
from ken_assistant.trackers.base import TrackerAPIError
from ken_assistant.trackers.tools import (
    DEFAULT_LIMIT,
    LIST_ISSUES_TOOL,
    MAX_LIMIT,
    TrackerToolInvoker,
    clamp_limit,
)


def test_list_issues_maps_arguments_to_search(tracker: Mock) -> None:
    invoker = TrackerToolInvoker(tracker)

    invoker.invoke(
        LIST_ISSUES_TOOL,
        {
            "project_id": "acme/app",
            "state": "closed",
            "labels": "bug, feature",
            "assignee_username": "alice",
            "milestone": "v2.0",
            "limit": 10,
        },
    )

    tracker.search_issues.assert_called_once_with(
        "acme/app",
        state="closed",
        labels=["bug", "feature"],
        assignee="alice",
        milestone="v2.0",
        search=None,
        limit=10,
        include_descriptions=False,
    )


def test_defaults_apply_when_arguments_are_missing(tracker: Mock) -> None:
    invoker = TrackerToolInvoker(tracker, default_project_id="acme/app")

    invoker.invoke(LIST_ISSUES_TOOL, {})

    tracker.search_issues.assert_called_once_with(
        "acme/app",
        state="opened",
        labels=[],
        assignee=None,
        milestone=None,
        search=None,
        limit=DEFAULT_LIMIT,
        include_descriptions=False,
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0, 1), (-3, 1), (7, 7), (500, MAX_LIMIT), (None, DEFAULT_LIMIT), ("10", DEFAULT_LIMIT)],
)
def test_clamp_limit(value: object, expected: int) -> None:
    assert clamp_limit(value) == expected


def test_missing_project_is_an_invocation_error(tracker: Mock) -> None:
    with pytest.raises(ToolInvocationError, match="no project_id"):
        TrackerToolInvoker(tracker).invoke(LIST_ISSUES_TOOL, {"state": "opened"})

    tracker.search_issues.assert_not_called()


def test_unknown_tool_is_rejected(tracker: Mock) -> None:
    invoker = TrackerToolInvoker(tracker)

    with pytest.raises(ToolInvocationError, match="unknown tool"):
        invoker.invoke("delete_project", {"project_id": "acme/app"})

    assert invoker.tool_names == [LIST_ISSUES_TOOL]


@pytest.mark.parametrize(
    ("error", "fragment"),
    [
        (TrackerAPIError("GitLab API error 500", status_code=500), "GitLab API error 500"),
        (requests.Timeout("read timed out"), "timed out"),
        (requests.ConnectionError("connection refused"), "connection refused"),
        (KeyError("iid"), "malformed"),
    ],
)
def test_tracker_errors_become_invocation_errors(
    tracker: Mock, error: Exception, fragment: str
) -> None:
    tracker.search_issues.side_effect = error

    with pytest.raises(ToolInvocationError) as exc_info:
        TrackerToolInvoker(tracker).invoke(LIST_ISSUES_TOOL, {"project_id": "acme/app"})

    assert fragment in exc_info.value.detail
    assert exc_info.value.tool_name == LIST_ISSUES_TOOL
    assert exc_info.value.__cause__ is error


def test_bad_labels_argument_is_malformed_input(tracker: Mock) -> None:
    with pytest.raises(ToolInvocationError, match="malformed"):
        TrackerToolInvoker(tracker).invoke(
            LIST_ISSUES_TOOL, {"project_id": "acme/app", "labels": {"bug": True}}
        )


def test_for_strategy_tags_the_error() -> None:
    cause = TrackerAPIError("boom")
    error = ToolInvocationError(LIST_ISSUES_TOOL, "boom")
    error.__cause__ = cause

    tagged = error.for_strategy("label=bug state=opened")

    assert tagged.strategy == "label=bug state=opened"
    assert "label=bug state=opened" in str(tagged)
    assert tagged.__cause__ is cause


def test_search_text_is_passed_through(tracker: Mock) -> None:
    TrackerToolInvoker(tracker).invoke(
        LIST_ISSUES_TOOL, {"project_id": "acme/app", "search": "  login crash "}
    )

    assert tracker.search_issues.call_args.kwargs["search"] == "login crash"


def test_non_text_search_is_malformed_input(tracker: Mock) -> None:
    with pytest.raises(ToolInvocationError, match="malformed"):
        TrackerToolInvoker(tracker).invoke(
            LIST_ISSUES_TOOL, {"project_id": "acme/app", "search": ["login"]}
        )
