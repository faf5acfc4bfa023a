"""Tracker client protocol and the normalized issue record."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from ken_assistant.context.models import Label, Member, Milestone

STATE_OPENED = "opened"
STATE_CLOSED = "closed"
STATE_ALL = "all"

DESCRIPTION_PREVIEW_CHARS = 100


class TrackerAPIError(Exception):
    """The tracker API returned an error or could not be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TrackerIssue(BaseModel):
    """An issue as returned by a search, normalized across trackers."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Tracker-assigned issue number within the project")
    title: str
    state: str
    assignees: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    milestone: str | None = None
    author: str | None = None
    web_url: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    description: str | None = None


def preview(text: str | None, limit: int = DESCRIPTION_PREVIEW_CHARS) -> str | None:
    """Truncate long descriptions so they don't flood prompts."""

    if not text:
        return None
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class TrackerClient(Protocol):
    """Operations the assistant needs from an issue tracker."""

    def list_labels(self, project_id: str) -> Sequence[Label]: ...

    def list_members(self, project_id: str) -> Sequence[Member]: ...

    def list_milestones(self, project_id: str) -> Sequence[Milestone]: ...

    def search_issues(
        self,
        project_id: str,
        *,
        state: str = STATE_OPENED,
        labels: Sequence[str] = (),
        assignee: str | None = None,
        milestone: str | None = None,
        search: str | None = None,
        limit: int = 20,
        include_descriptions: bool = False,
    ) -> list[TrackerIssue]: ...

    def close(self) -> None: ...
