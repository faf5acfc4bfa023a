"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from unittest.mock import Mock

import pytest

from ken_assistant.context.models import Label, Member, Milestone, ProjectContext
from ken_assistant.trackers.base import TrackerIssue
from ken_assistant.trackers.gitlab import GitLabClient


@pytest.fixture
def project_context() -> ProjectContext:
    """Labels {bug, feature}, members {alice, bob}, one milestone."""
    return ProjectContext(
        project_id="acme/app",
        labels=(
            Label(name="bug", description="Something is broken", open_issue_count=12),
            Label(name="feature", description="New functionality", open_issue_count=4),
        ),
        members=(
            Member(username="alice", role="Developer", display_name="Alice Liddell"),
            Member(username="bob", role="Maintainer", display_name="Bob Stone"),
        ),
        milestones=(Milestone(title="v2.0", due_date="2025-03-01", state="active"),),
        fetched_at=datetime(2025, 1, 1, 12, 0, tzinfo=UTC),
    )


@pytest.fixture
def make_issue() -> Callable[..., TrackerIssue]:
    """Build a minimal TrackerIssue with the given number."""

    def _make(number: int, **overrides: object) -> TrackerIssue:
        fields: dict[str, object] = {"id": number, "title": f"Issue {number}", "state": "opened"}
        fields.update(overrides)
        return TrackerIssue.model_validate(fields)

    return _make


@pytest.fixture
def tracker(project_context: ProjectContext) -> Mock:
    """A tracker mock that serves `project_context` and finds no issues."""
    mock = Mock(spec=GitLabClient)
    mock.list_labels.return_value = list(project_context.labels)
    mock.list_members.return_value = list(project_context.members)
    mock.list_milestones.return_value = list(project_context.milestones)
    mock.search_issues.return_value = []
    return mock
